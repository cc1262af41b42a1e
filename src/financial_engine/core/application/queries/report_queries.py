import uuid
from dataclasses import dataclass

from clinic_core.core.application.cqrs import QueryDTO


@dataclass(frozen=True, slots=True)
class GetCashFlowQuery(QueryDTO):
    """filtros: period, start_date, end_date."""
    workspace_id: uuid.UUID


@dataclass(frozen=True, slots=True)
class GetDashboardStatsQuery(QueryDTO):
    """filtros: period, start_date, end_date."""
    workspace_id: uuid.UUID


@dataclass(frozen=True, slots=True)
class GetCommissionReportQuery(QueryDTO):
    """filtros: start_date, end_date, sellerId. Sem as duas datas, considera todas as vendas."""
    workspace_id: uuid.UUID
