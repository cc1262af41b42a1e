from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from clinic_core.core.domain.entities._base import EntityMixin

from financial_engine.core.domain.entities.enums import (
    CostCategory,
    CostType,
    InstallmentStatus,
    RecurrenceFrequency,
    RecurrenceType,
)


@dataclass(slots=True)
class CostInstallmentEntity(EntityMixin):
    id: uuid.UUID
    cost_id: uuid.UUID
    installment_number: int
    amount: Decimal
    due_date: date
    status: InstallmentStatus = InstallmentStatus.PENDING


@dataclass(slots=True)
class CostEntity(EntityMixin):
    id: uuid.UUID
    workspace_id: uuid.UUID
    description: str
    cost_type: CostType
    category: CostCategory = CostCategory.OPERATIONAL
    custom_category: str | None = None
    fixed_value: Decimal | None = None
    percentage: Decimal | None = None
    recurrence_type: RecurrenceType = RecurrenceType.NONE
    recurrence_frequency: RecurrenceFrequency | None = None
    total_installments: int | None = None
    first_due_date: date | None = None
    payment_date: date | None = None
    card_operator: str | None = None
    receiving_days: int | None = None
    next_replication_date: date | None = None
    replicated_from_id: uuid.UUID | None = None
    is_active: bool = True
    installments: list[CostInstallmentEntity] = field(default_factory=list)
    created_at: datetime | None = None

    @property
    def is_recurring(self) -> bool:
        return self.recurrence_type != RecurrenceType.NONE

    @property
    def category_label(self) -> str:
        """Rótulo exibido: a categoria personalizada prevalece sobre o enum."""
        return self.custom_category or self.category.label
