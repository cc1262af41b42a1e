from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from clinic_core.core.domain.entities._base import EntityMixin

from financial_engine.core.domain.entities.enums import InstallmentStatus, PaymentMethod


@dataclass(frozen=True, slots=True)
class InstallmentStub:
    """Detalhe de parcela informado pelo cliente; campos ausentes são derivados."""
    amount: Decimal | None = None
    due_date: date | None = None
    notes: str | None = None


@dataclass(slots=True)
class PaymentInstallmentEntity(EntityMixin):
    id: uuid.UUID
    payment_split_id: uuid.UUID
    installment_number: int
    amount: Decimal                      # líquido
    gross_amount: Decimal
    fee_amount: Decimal
    due_date: date | None
    status: InstallmentStatus = InstallmentStatus.PENDING
    notes: str | None = None
    paid_date: datetime | None = None


@dataclass(slots=True)
class PaymentSplitEntity(EntityMixin):
    id: uuid.UUID
    payment_method: PaymentMethod
    amount: Decimal
    installments: int
    card_operator: str | None = None
    sale_id: uuid.UUID | None = None
    stubs: list[InstallmentStub] = field(default_factory=list)
    schedule: list[PaymentInstallmentEntity] = field(default_factory=list)


@dataclass(slots=True)
class SaleItemEntity(EntityMixin):
    id: uuid.UUID
    procedure_id: uuid.UUID
    quantity: int
    unit_price: Decimal
    procedure_name: str | None = None


@dataclass(slots=True)
class SaleEntity(EntityMixin):
    id: uuid.UUID
    workspace_id: uuid.UUID
    patient_id: uuid.UUID
    sale_date: date
    total_amount: Decimal
    payment_status: str = "PENDING"
    seller_id: uuid.UUID | None = None
    payment_method: PaymentMethod | None = None
    notes: str | None = None
    items: list[SaleItemEntity] = field(default_factory=list)
    payment_splits: list[PaymentSplitEntity] = field(default_factory=list)
    session_dates: list[datetime | None] = field(default_factory=list)
    completed_sessions: int = 0
    total_sessions: int = 0
    patient_name: str | None = None
    created_at: datetime | None = None

    @property
    def installment_count(self) -> int:
        return sum(len(s.schedule) for s in self.payment_splits)
