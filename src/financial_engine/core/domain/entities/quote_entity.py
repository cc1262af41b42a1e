from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from clinic_core.core.domain.entities._base import EntityMixin

from financial_engine.core.domain.entities.enums import QuoteStatus


@dataclass(slots=True)
class QuoteItemEntity(EntityMixin):
    id: uuid.UUID
    description: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    procedure_id: uuid.UUID | None = None


@dataclass(slots=True)
class QuoteEntity(EntityMixin):
    id: uuid.UUID
    workspace_id: uuid.UUID
    patient_id: uuid.UUID
    title: str
    status: QuoteStatus = QuoteStatus.PENDING
    total_amount: Decimal = Decimal("0")
    discount_percent: Decimal = Decimal("0")
    discount_amount: Decimal = Decimal("0")
    final_amount: Decimal = Decimal("0")
    notes: str | None = None
    lead_source: str | None = None
    created_date: datetime | None = None
    expiration_date: date | None = None
    sent_date: datetime | None = None
    accepted_date: datetime | None = None
    rejected_date: datetime | None = None
    sale_id: uuid.UUID | None = None
    items: list[QuoteItemEntity] = field(default_factory=list)

    @property
    def is_converted(self) -> bool:
        return self.status == QuoteStatus.ACCEPTED and self.sale_id is not None
