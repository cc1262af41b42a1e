from enum import Enum


class PaymentMethod(str, Enum):
    CASH_PIX = "CASH_PIX"
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    BANK_SLIP = "BANK_SLIP"

    @property
    def is_card(self) -> bool:
        return self in (PaymentMethod.CREDIT_CARD, PaymentMethod.DEBIT_CARD)

    @property
    def card_type(self) -> "CardType | None":
        return {
            PaymentMethod.CREDIT_CARD: CardType.CREDIT,
            PaymentMethod.DEBIT_CARD: CardType.DEBIT,
        }.get(self)

    @property
    def label(self) -> str:
        return PAYMENT_METHOD_LABELS[self]


class CardType(str, Enum):
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


class InstallmentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


class CostType(str, Enum):
    FIXED = "FIXED"
    PERCENTAGE = "PERCENTAGE"


class CostCategory(str, Enum):
    OPERATIONAL = "OPERATIONAL"
    TAX = "TAX"
    COMMISSION = "COMMISSION"
    CARD = "CARD"
    CUSTOM = "CUSTOM"

    @property
    def label(self) -> str:
        return COST_CATEGORY_LABELS[self]


class RecurrenceType(str, Enum):
    NONE = "NONE"
    INDEFINITE = "INDEFINITE"
    INSTALLMENTS = "INSTALLMENTS"


class RecurrenceFrequency(str, Enum):
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"

    @property
    def months(self) -> int:
        return {"MONTHLY": 1, "QUARTERLY": 3, "YEARLY": 12}[self.value]


class QuoteStatus(str, Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


PAYMENT_METHOD_LABELS = {
    PaymentMethod.CASH_PIX: "Dinheiro/Pix",
    PaymentMethod.CREDIT_CARD: "Cartão de Crédito",
    PaymentMethod.DEBIT_CARD: "Cartão de Débito",
    PaymentMethod.BANK_SLIP: "Boleto",
}

COST_CATEGORY_LABELS = {
    CostCategory.OPERATIONAL: "Operacional",
    CostCategory.TAX: "Impostos",
    CostCategory.COMMISSION: "Comissões",
    CostCategory.CARD: "Cartão",
    CostCategory.CUSTOM: "Personalizado",
}
