import uuid
from dataclasses import dataclass
from datetime import date

from clinic_core.core.application.cqrs import CommandDTO

from financial_engine.core.application.dtos.card_fee_dtos import CreateCardFeeRulesDTO
from financial_engine.core.application.dtos.cost_dtos import CostDTO
from financial_engine.core.domain.entities.enums import CardType


@dataclass(frozen=True, slots=True)
class CreateCostCommand(CommandDTO):
    workspace_id: uuid.UUID
    payload: CostDTO


@dataclass(frozen=True, slots=True)
class UpdateCostCommand(CommandDTO):
    workspace_id: uuid.UUID
    cost_id: uuid.UUID
    payload: CostDTO


@dataclass(frozen=True, slots=True)
class DeleteCostCommand(CommandDTO):
    workspace_id: uuid.UUID
    cost_id: uuid.UUID


@dataclass(frozen=True, slots=True)
class CreateCardFeeRulesCommand(CommandDTO):
    workspace_id: uuid.UUID
    payload: CreateCardFeeRulesDTO


@dataclass(frozen=True, slots=True)
class DeactivateCardFeeRuleCommand(CommandDTO):
    workspace_id: uuid.UUID
    rule_id: uuid.UUID


@dataclass(frozen=True, slots=True)
class ReplaceCardFeeGroupCommand(CommandDTO):
    workspace_id: uuid.UUID
    payload: CreateCardFeeRulesDTO


@dataclass(frozen=True, slots=True)
class DeactivateCardFeeGroupCommand(CommandDTO):
    workspace_id: uuid.UUID
    card_operator: str
    card_type: CardType


@dataclass(frozen=True, slots=True)
class ReplicateRecurringCostsCommand(CommandDTO):
    """Sem workspace_id: varre todos os workspaces (execução agendada)."""
    reference_date: date
    workspace_id: uuid.UUID | None = None
