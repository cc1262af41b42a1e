from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from financial_engine.core.domain.entities.enums import (
    CostCategory,
    CostType,
    RecurrenceFrequency,
    RecurrenceType,
)


class CostDTO(BaseModel):
    """
    Payload de criação/edição de custo.
    As regras por tipo espelham o cadastro: valor fixo > 0, percentual em (0, 100],
    custo de cartão exige operadora e prazo, custo parcelado exige >= 2 parcelas
    e a data do primeiro vencimento.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    description: str = Field(min_length=1)
    cost_type: CostType = Field(alias="costType")
    category: CostCategory = CostCategory.OPERATIONAL
    custom_category: str | None = Field(default=None, alias="customCategory")
    fixed_value: Decimal | None = Field(default=None, alias="fixedValue")
    percentage: Decimal | None = None
    is_recurring: bool = Field(default=False, alias="isRecurring")
    recurrence_type: RecurrenceType | None = Field(default=None, alias="recurrenceType")
    recurrence_frequency: RecurrenceFrequency | None = Field(default=None, alias="recurrenceFrequency")
    total_installments: int | None = Field(default=None, alias="totalInstallments")
    first_due_date: date | None = Field(default=None, alias="nextRecurrenceDate")
    payment_date: date | None = Field(default=None, alias="paymentDate")
    card_operator: str | None = Field(default=None, alias="cardOperator")
    receiving_days: int | None = Field(default=None, alias="receivingDays")

    @model_validator(mode="after")
    def _rules(self) -> CostDTO:  # noqa: PLR0912
        if not self.description.strip():
            raise ValueError("Descrição é obrigatória")
        if self.category == CostCategory.CUSTOM and not (self.custom_category or "").strip():
            raise ValueError("Categoria personalizada é obrigatória")
        if self.cost_type == CostType.FIXED:
            if self.fixed_value is None or self.fixed_value <= 0:
                raise ValueError("Valor fixo deve ser maior que zero")
        elif self.percentage is None or not (0 < self.percentage <= 100):
            raise ValueError("Percentual deve estar entre 0 e 100")
        if self.category == CostCategory.CARD:
            if not self.card_operator:
                raise ValueError("Operadora de cartão é obrigatória")
            if not self.receiving_days or self.receiving_days <= 0:
                raise ValueError("Prazo de recebimento deve ser maior que zero")

        # isRecurring sem tipo explícito → recorrência indefinida
        if self.recurrence_type is None:
            self.recurrence_type = RecurrenceType.INDEFINITE if self.is_recurring else RecurrenceType.NONE
        if self.recurrence_type == RecurrenceType.INSTALLMENTS:
            if self.cost_type != CostType.FIXED:
                raise ValueError("Custo parcelado deve ter valor fixo")
            if not self.total_installments or self.total_installments < 2:
                raise ValueError("Custo parcelado exige no mínimo 2 parcelas")
            if self.first_due_date is None:
                raise ValueError("Data do primeiro vencimento é obrigatória")
            if self.recurrence_frequency is None:
                self.recurrence_frequency = RecurrenceFrequency.MONTHLY
        return self
