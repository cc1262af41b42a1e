import uuid
from dataclasses import dataclass

from clinic_core.core.application.cqrs import PaginatedQueryDTO, QueryDTO


@dataclass(frozen=True, slots=True)
class GetSaleQuery(QueryDTO):
    workspace_id: uuid.UUID
    sale_id: uuid.UUID


@dataclass(frozen=True, slots=True)
class ListSalesQuery(PaginatedQueryDTO):
    """filtros: workspace_id (obrigatório), patient_id, payment_status, start_date, end_date."""
    pass
