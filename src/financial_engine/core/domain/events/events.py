from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from clinic_core.core.domain.events.events import DomainEvent


# ╭──────────────────────────────────────────────╮
# │ 1. Vendas                                   │
# ╰──────────────────────────────────────────────╯
@dataclass(frozen=True)
class SaleCreatedEvent(DomainEvent):
    sale_id: uuid.UUID
    workspace_id: uuid.UUID
    total_amount: Decimal
    installments: int
    fee_fallbacks: int = 0

# ╭──────────────────────────────────────────────╮
# │ 2. Parcelas                                 │
# ╰──────────────────────────────────────────────╯
@dataclass(frozen=True)
class InstallmentSettledEvent(DomainEvent):
    installment_id: uuid.UUID
    workspace_id: uuid.UUID
    amount: Decimal

@dataclass(frozen=True)
class InstallmentsMarkedOverdueEvent(DomainEvent):
    reference_date: date
    count: int

# ╭──────────────────────────────────────────────╮
# │ 3. Custos                                   │
# ╰──────────────────────────────────────────────╯
@dataclass(frozen=True)
class CostCreatedEvent(DomainEvent):
    cost_id: uuid.UUID
    workspace_id: uuid.UUID
    cost_type: str
    installments: int

@dataclass(frozen=True)
class CostsReplicatedEvent(DomainEvent):
    reference_date: date
    count: int
    workspace_id: uuid.UUID | None = None

# ╭──────────────────────────────────────────────╮
# │ 4. Orçamentos                               │
# ╰──────────────────────────────────────────────╯
@dataclass(frozen=True)
class QuoteConvertedEvent(DomainEvent):
    quote_id: uuid.UUID
    sale_id: uuid.UUID
    workspace_id: uuid.UUID
