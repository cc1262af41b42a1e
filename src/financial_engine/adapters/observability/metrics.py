from prometheus_client import Counter, Histogram

# Liquidação de vendas
SALES_CREATED = Counter(
    "financial_sales_created_total",
    "Vendas persistidas com sucesso",
)
INSTALLMENTS_SCHEDULED = Counter(
    "financial_installments_scheduled_total",
    "Parcelas de recebimento geradas",
    ["payment_method"],
)
FEE_RULE_FALLBACKS = Counter(
    "financial_fee_rule_fallbacks_total",
    "Splits de cartão sem regra de taxa configurada (taxa zero aplicada)",
    ["card_type"],
)
SETTLEMENTS = Counter(
    "financial_installment_settlements_total",
    "Tentativas de baixa de parcela",
    ["outcome"],
)

# Relatórios
AGGREGATION_DURATION = Histogram(
    "financial_aggregation_duration_seconds",
    "Duração da montagem de relatórios financeiros",
    ["report"],
)
