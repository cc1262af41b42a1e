import uuid
from dataclasses import dataclass
from datetime import date

from clinic_core.core.application.cqrs import QueryDTO


@dataclass(frozen=True, slots=True)
class GetCostQuery(QueryDTO):
    workspace_id: uuid.UUID
    cost_id: uuid.UUID


@dataclass(frozen=True, slots=True)
class ListCostsQuery(QueryDTO):
    workspace_id: uuid.UUID


@dataclass(frozen=True, slots=True)
class GetCostStatsQuery(QueryDTO):
    workspace_id: uuid.UUID


@dataclass(frozen=True, slots=True)
class GetVariableCostSummaryQuery(QueryDTO):
    workspace_id: uuid.UUID


@dataclass(frozen=True, slots=True)
class ListCardFeeRulesQuery(QueryDTO):
    workspace_id: uuid.UUID


@dataclass(frozen=True, slots=True)
class GetPendingRecurrencesQuery(QueryDTO):
    workspace_id: uuid.UUID
    reference_date: date
