from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from financial_engine.core.domain.entities.enums import PaymentMethod


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class InstallmentDetailDTO(_CamelModel):
    amount: Decimal | None = Field(default=None, ge=0)
    due_date: date | None = Field(default=None, alias="dueDate")
    notes: str | None = None


class PaymentSplitDTO(_CamelModel):
    payment_method: PaymentMethod = Field(alias="paymentMethod")
    amount: Decimal = Field(gt=0)
    installments: int = Field(default=1, ge=1)
    card_operator: str | None = Field(default=None, alias="cardOperator")
    installment_details: list[InstallmentDetailDTO] = Field(default_factory=list, alias="installmentDetails")


class SaleItemDTO(_CamelModel):
    procedure_id: uuid.UUID = Field(alias="procedureId")
    quantity: int = Field(default=1, ge=1)
    unit_price: Decimal = Field(alias="unitPrice", ge=0)


class CreateSaleDTO(_CamelModel):
    patient_id: uuid.UUID = Field(alias="patientId")
    seller_id: uuid.UUID | None = Field(default=None, alias="sellerId")
    total_amount: Decimal = Field(alias="totalAmount", gt=0)
    sale_date: date | None = Field(default=None, alias="saleDate")
    payment_status: str = Field(default="PENDING", alias="paymentStatus")
    payment_method: PaymentMethod | None = Field(default=None, alias="paymentMethod")  # legado
    notes: str | None = None
    items: list[SaleItemDTO] = Field(min_length=1)
    payment_splits: list[PaymentSplitDTO] = Field(default_factory=list, alias="paymentSplits")
    session_dates: list[datetime | None] = Field(default_factory=list, alias="sessionDates")

    @model_validator(mode="after")
    def _payment_required(self) -> CreateSaleDTO:
        if not self.payment_splits and self.payment_method is None:
            raise ValueError("É necessário informar a forma de pagamento")
        return self
