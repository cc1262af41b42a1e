from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from financial_engine.core.application.dtos.sale_dtos import PaymentSplitDTO
from financial_engine.core.domain.entities.enums import QuoteStatus


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class QuoteItemDTO(_CamelModel):
    procedure_id: uuid.UUID | None = Field(default=None, alias="procedureId")
    description: str = Field(min_length=1)
    quantity: int = Field(ge=1)
    unit_price: Decimal = Field(gt=0, alias="unitPrice")


class CreateQuoteDTO(_CamelModel):
    patient_id: uuid.UUID = Field(alias="patientId")
    title: str = Field(min_length=1)
    items: list[QuoteItemDTO] = Field(min_length=1)
    discount_percent: Decimal = Field(default=Decimal("0"), alias="discountPercent")
    discount_amount: Decimal = Field(default=Decimal("0"), alias="discountAmount")
    notes: str | None = None
    lead_source: str | None = Field(default=None, alias="leadSource")
    expiration_date: date | None = Field(default=None, alias="expirationDate")


class UpdateQuoteDTO(_CamelModel):
    """PATCH: apenas os campos enviados são aplicados."""
    status: QuoteStatus | None = None
    title: str | None = None
    notes: str | None = None
    lead_source: str | None = Field(default=None, alias="leadSource")
    expiration_date: date | None = Field(default=None, alias="expirationDate")
    items: list[QuoteItemDTO] | None = None
    discount_percent: Decimal | None = Field(default=None, alias="discountPercent")
    discount_amount: Decimal | None = Field(default=None, alias="discountAmount")


class ConvertQuoteDTO(_CamelModel):
    payment_splits: list[PaymentSplitDTO] = Field(min_length=1, alias="paymentSplits")
    sale_date: date | None = Field(default=None, alias="saleDate")
    notes: str | None = None
