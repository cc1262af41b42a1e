from __future__ import annotations

import uuid
from collections import Counter, defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal

from financial_engine.core.domain.entities.card_fee_rule_entity import CardFeeRuleEntity
from financial_engine.core.domain.entities.enums import PaymentMethod
from financial_engine.core.domain.services.fee_rule_resolver import FeeRuleResolver

ZERO = Decimal("0")


# ───────────────────────────────────────────────
# Read models (carregados pelo serviço de aplicação)
# ───────────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class SupplyLine:
    cost_per_unit: Decimal
    quantity: Decimal


@dataclass(frozen=True, slots=True)
class CommissionLine:
    commission_type: str           # PERCENTAGE | FIXED
    commission_value: Decimal


@dataclass(frozen=True, slots=True)
class RevenueItem:
    procedure_id: uuid.UUID
    procedure_name: str
    quantity: int
    unit_price: Decimal
    supplies: tuple[SupplyLine, ...] = ()
    commissions: tuple[CommissionLine, ...] = ()


@dataclass(frozen=True, slots=True)
class RevenueSplit:
    payment_method: PaymentMethod
    amount: Decimal
    installments: int
    card_operator: str | None = None


@dataclass(frozen=True, slots=True)
class RevenueSale:
    total_amount: Decimal
    items: tuple[RevenueItem, ...] = ()
    splits: tuple[RevenueSplit, ...] = ()
    session_statuses: tuple[str, ...] = ()
    legacy_payment_method: str | None = None


@dataclass(frozen=True, slots=True)
class CollaboratorCost:
    role: str
    base_salary: Decimal
    charges: Decimal
    monthly_hours: int


@dataclass(frozen=True, slots=True)
class PendingReceivable:
    due_date: date
    amount: Decimal


# ───────────────────────────────────────────────
# Resultados
# ───────────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class FinancialSummary:
    gross_revenue: Decimal
    supply_costs: Decimal
    labor_costs: Decimal
    estimated_taxes: Decimal
    card_fees: Decimal

    @property
    def total_deductions(self) -> Decimal:
        return self.supply_costs + self.labor_costs + self.estimated_taxes + self.card_fees

    @property
    def net_revenue(self) -> Decimal:
        return self.gross_revenue - self.total_deductions


@dataclass(frozen=True, slots=True)
class OperationsSummary:
    completed_sales: int
    total_sales: int
    completed_sessions: int
    pending_sessions: int
    total_sessions: int


@dataclass(frozen=True, slots=True)
class ProcedureRanking:
    name: str
    count: int
    revenue: Decimal


@dataclass(frozen=True, slots=True)
class RoleCost:
    role: str
    hourly_cost: Decimal
    professionals: int


@dataclass(frozen=True, slots=True)
class ConversionSummary:
    total_quotes: int
    converted_quotes: int
    by_status: dict[str, int] = field(default_factory=dict)

    @property
    def conversion_rate(self) -> Decimal:
        if not self.total_quotes:
            return ZERO
        return Decimal(self.converted_quotes) / Decimal(self.total_quotes) * 100


@dataclass(frozen=True, slots=True)
class AgingSummary:
    next_30_days: Decimal
    next_60_days: Decimal
    next_90_days: Decimal
    total: Decimal
    count: int


# ───────────────────────────────────────────────
# Engine
# ───────────────────────────────────────────────
class RevenueRecognitionEngine:
    """
    Receita líquida = bruto − insumos − mão de obra − impostos estimados − taxas de cartão.

    A alíquota de imposto é parâmetro (configuração do workspace); as taxas de
    cartão usam a mesma seleção de regra do FeeRuleResolver.
    """

    def __init__(self, fee_rules: Sequence[CardFeeRuleEntity] = ()) -> None:
        self.fee_rules = list(fee_rules)

    # ▶ financeiro
    def financials(self, sales: Iterable[RevenueSale], tax_rate: Decimal) -> FinancialSummary:
        gross = supplies = labor = fees = ZERO
        for sale in sales:
            gross += sale.total_amount
            for item in sale.items:
                supplies += self.item_supply_cost(item)
                labor += self.item_labor_cost(item)
            fees += self.card_fees(sale.splits)
        return FinancialSummary(
            gross_revenue=gross,
            supply_costs=supplies,
            labor_costs=labor,
            estimated_taxes=gross * tax_rate,
            card_fees=fees,
        )

    @staticmethod
    def item_supply_cost(item: RevenueItem) -> Decimal:
        return sum((s.cost_per_unit * s.quantity * item.quantity for s in item.supplies), ZERO)

    @staticmethod
    def item_labor_cost(item: RevenueItem) -> Decimal:
        total = ZERO
        for c in item.commissions:
            if c.commission_type == "PERCENTAGE":
                total += item.unit_price * c.commission_value / 100 * item.quantity
            else:
                total += c.commission_value * item.quantity
        return total

    def card_fees(self, splits: Iterable[RevenueSplit]) -> Decimal:
        total = ZERO
        for split in splits:
            if split.payment_method != PaymentMethod.CREDIT_CARD or split.installments < 1:
                continue
            rule = FeeRuleResolver.match(
                self.fee_rules, split.payment_method.card_type, split.installments, split.card_operator
            )
            if rule is not None:
                total += split.amount * Decimal(rule.fee_percentage) / 100
        return total

    # ▶ operacional
    @staticmethod
    def operations(sales: Sequence[RevenueSale]) -> OperationsSummary:
        completed_sales = 0
        total_sessions = completed_sessions = 0
        for sale in sales:
            done = sum(1 for s in sale.session_statuses if s == "COMPLETED")
            if sale.session_statuses and done == len(sale.session_statuses):
                completed_sales += 1
            total_sessions += len(sale.session_statuses)
            completed_sessions += done
        return OperationsSummary(
            completed_sales=completed_sales,
            total_sales=len(sales),
            completed_sessions=completed_sessions,
            pending_sessions=total_sessions - completed_sessions,
            total_sessions=total_sessions,
        )

    @staticmethod
    def payment_methods(sales: Iterable[RevenueSale]) -> dict[str, Decimal]:
        """Distribuição por método: splits quando existem, senão o campo legado da venda."""
        acc: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for sale in sales:
            if sale.splits:
                for split in sale.splits:
                    acc[split.payment_method.value] += split.amount
            elif sale.legacy_payment_method:
                acc[sale.legacy_payment_method] += sale.total_amount
        return dict(acc)

    @staticmethod
    def top_procedures(sales: Iterable[RevenueSale], limit: int = 5) -> list[ProcedureRanking]:
        names: dict[uuid.UUID, str] = {}
        counts: Counter[uuid.UUID] = Counter()
        revenue: dict[uuid.UUID, Decimal] = defaultdict(lambda: ZERO)
        for sale in sales:
            for item in sale.items:
                names[item.procedure_id] = item.procedure_name
                counts[item.procedure_id] += item.quantity
                revenue[item.procedure_id] += item.unit_price * item.quantity
        return [
            ProcedureRanking(name=names[pid], count=count, revenue=revenue[pid])
            for pid, count in counts.most_common(limit)
        ]

    @staticmethod
    def hourly_costs(collaborators: Iterable[CollaboratorCost]) -> list[RoleCost]:
        """(salário base + encargos) / horas mensais, agregado por função."""
        cost: dict[str, Decimal] = defaultdict(lambda: ZERO)
        hours: dict[str, int] = defaultdict(int)
        count: dict[str, int] = defaultdict(int)
        for c in collaborators:
            cost[c.role] += c.base_salary + c.charges
            hours[c.role] += c.monthly_hours
            count[c.role] += 1
        out = [
            RoleCost(
                role=role,
                hourly_cost=(cost[role] / hours[role]) if hours[role] > 0 else ZERO,
                professionals=count[role],
            )
            for role in cost
        ]
        return sorted(out, key=lambda r: r.hourly_cost, reverse=True)

    @staticmethod
    def conversion(quote_statuses: Iterable[str]) -> ConversionSummary:
        by_status = Counter(quote_statuses)
        return ConversionSummary(
            total_quotes=sum(by_status.values()),
            converted_quotes=by_status.get("ACCEPTED", 0),
            by_status=dict(by_status),
        )

    @staticmethod
    def aging(pending: Iterable[PendingReceivable], today: date) -> AgingSummary:
        """
        Recebíveis pendentes com vencimento a partir de hoje, em faixas de
        0–30 / 31–60 / 61–90 dias. Não depende do período do relatório.
        """
        d30, d60, d90 = (today + timedelta(days=n) for n in (30, 60, 90))
        b30 = b60 = b90 = total = ZERO
        count = 0
        for r in pending:
            if r.due_date < today:
                continue
            count += 1
            total += r.amount
            if r.due_date <= d30:
                b30 += r.amount
            elif r.due_date <= d60:
                b60 += r.amount
            elif r.due_date <= d90:
                b90 += r.amount
        return AgingSummary(next_30_days=b30, next_60_days=b60, next_90_days=b90, total=total, count=count)
