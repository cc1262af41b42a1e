from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from clinic_core.core.domain.entities._base import EntityMixin

from financial_engine.core.domain.entities.enums import CardType


@dataclass(slots=True)
class CardFeeRuleEntity(EntityMixin):
    id: uuid.UUID
    workspace_id: uuid.UUID
    card_operator: str
    card_type: CardType
    installment_count: int
    fee_percentage: Decimal
    receiving_days: int
    is_active: bool = True
    created_at: datetime | None = None
