# =========================================================
# Serializers compatíveis com as *entities* do motor financeiro
# (e não com os modelos Django). Saída em camelCase, como o
# front do dashboard consome; valores monetários como string.
# =========================================================
from rest_framework import serializers


def _money(**kwargs):
    return serializers.DecimalField(max_digits=14, decimal_places=2, **kwargs)


class EnumValueField(serializers.Field):
    """Enum (str) da entidade → valor puro."""

    def to_representation(self, value):
        return getattr(value, "value", value)


# ───────────────────────────────────────────────
# Vendas  &  Parcelas
# ───────────────────────────────────────────────
class PaymentInstallmentSerializer(serializers.Serializer):
    id                = serializers.UUIDField()
    paymentSplitId    = serializers.UUIDField(source="payment_split_id")
    installmentNumber = serializers.IntegerField(source="installment_number")
    amount            = _money()
    grossAmount       = _money(source="gross_amount")
    feeAmount         = _money(source="fee_amount")
    dueDate           = serializers.DateField(source="due_date", allow_null=True)
    status            = EnumValueField()
    notes             = serializers.CharField(allow_null=True)
    paidDate          = serializers.DateTimeField(source="paid_date", allow_null=True)


class PaymentSplitSerializer(serializers.Serializer):
    id            = serializers.UUIDField()
    paymentMethod = EnumValueField(source="payment_method")
    amount        = _money()
    installments  = serializers.IntegerField()
    cardOperator  = serializers.CharField(source="card_operator", allow_null=True)
    schedule      = PaymentInstallmentSerializer(many=True)


class SaleItemSerializer(serializers.Serializer):
    id            = serializers.UUIDField()
    procedureId   = serializers.UUIDField(source="procedure_id")
    procedureName = serializers.CharField(source="procedure_name", allow_null=True)
    quantity      = serializers.IntegerField()
    unitPrice     = _money(source="unit_price")


class SaleSerializer(serializers.Serializer):
    id                = serializers.UUIDField()
    patientId         = serializers.UUIDField(source="patient_id")
    patientName       = serializers.CharField(source="patient_name", allow_null=True)
    sellerId          = serializers.UUIDField(source="seller_id", allow_null=True)
    saleDate          = serializers.DateField(source="sale_date")
    totalAmount       = _money(source="total_amount")
    paymentStatus     = serializers.CharField(source="payment_status")
    paymentMethod     = EnumValueField(source="payment_method")
    notes             = serializers.CharField(allow_null=True)
    items             = SaleItemSerializer(many=True)
    paymentSplits     = PaymentSplitSerializer(source="payment_splits", many=True)
    completedSessions = serializers.IntegerField(source="completed_sessions")
    totalSessions     = serializers.IntegerField(source="total_sessions")
    createdAt         = serializers.DateTimeField(source="created_at", allow_null=True)


# ───────────────────────────────────────────────
# Custos
# ───────────────────────────────────────────────
class CostInstallmentSerializer(serializers.Serializer):
    id                = serializers.UUIDField()
    installmentNumber = serializers.IntegerField(source="installment_number")
    amount            = _money()
    dueDate           = serializers.DateField(source="due_date")
    status            = EnumValueField()


class CostSerializer(serializers.Serializer):
    id                  = serializers.UUIDField()
    description         = serializers.CharField()
    costType            = EnumValueField(source="cost_type")
    category            = EnumValueField()
    categoryLabel       = serializers.CharField(source="category_label")
    customCategory      = serializers.CharField(source="custom_category", allow_null=True)
    fixedValue          = _money(source="fixed_value", allow_null=True)
    percentage          = serializers.DecimalField(max_digits=5, decimal_places=2, allow_null=True)
    isRecurring         = serializers.BooleanField(source="is_recurring")
    recurrenceType      = EnumValueField(source="recurrence_type")
    recurrenceFrequency = EnumValueField(source="recurrence_frequency")
    totalInstallments   = serializers.IntegerField(source="total_installments", allow_null=True)
    nextRecurrenceDate  = serializers.DateField(source="first_due_date", allow_null=True)
    paymentDate         = serializers.DateField(source="payment_date", allow_null=True)
    cardOperator        = serializers.CharField(source="card_operator", allow_null=True)
    receivingDays       = serializers.IntegerField(source="receiving_days", allow_null=True)
    nextReplicationDate = serializers.DateField(source="next_replication_date", allow_null=True)
    replicatedFromId    = serializers.UUIDField(source="replicated_from_id", allow_null=True)
    isActive            = serializers.BooleanField(source="is_active")
    installments        = CostInstallmentSerializer(many=True)
    createdAt           = serializers.DateTimeField(source="created_at", allow_null=True)


class CardFeeRuleSerializer(serializers.Serializer):
    id               = serializers.UUIDField()
    cardOperator     = serializers.CharField(source="card_operator")
    cardType         = EnumValueField(source="card_type")
    installmentCount = serializers.IntegerField(source="installment_count")
    feePercentage    = serializers.DecimalField(source="fee_percentage", max_digits=5, decimal_places=2)
    receivingDays    = serializers.IntegerField(source="receiving_days")
    isActive         = serializers.BooleanField(source="is_active")


# ───────────────────────────────────────────────
# Orçamentos
# ───────────────────────────────────────────────
class QuoteItemSerializer(serializers.Serializer):
    id          = serializers.UUIDField()
    procedureId = serializers.UUIDField(source="procedure_id", allow_null=True)
    description = serializers.CharField()
    quantity    = serializers.IntegerField()
    unitPrice   = _money(source="unit_price")
    totalPrice  = _money(source="total_price")


class QuoteSerializer(serializers.Serializer):
    id              = serializers.UUIDField()
    patientId       = serializers.UUIDField(source="patient_id")
    title           = serializers.CharField()
    status          = EnumValueField()
    totalAmount     = _money(source="total_amount")
    discountPercent = serializers.DecimalField(source="discount_percent", max_digits=5, decimal_places=2)
    discountAmount  = _money(source="discount_amount")
    finalAmount     = _money(source="final_amount")
    notes           = serializers.CharField(allow_null=True)
    leadSource      = serializers.CharField(source="lead_source", allow_null=True)
    createdDate     = serializers.DateTimeField(source="created_date", allow_null=True)
    expirationDate  = serializers.DateField(source="expiration_date", allow_null=True)
    sentDate        = serializers.DateTimeField(source="sent_date", allow_null=True)
    acceptedDate    = serializers.DateTimeField(source="accepted_date", allow_null=True)
    rejectedDate    = serializers.DateTimeField(source="rejected_date", allow_null=True)
    saleId          = serializers.UUIDField(source="sale_id", allow_null=True)
    items           = QuoteItemSerializer(many=True)
