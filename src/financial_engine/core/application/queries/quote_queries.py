import uuid
from dataclasses import dataclass

from clinic_core.core.application.cqrs import PaginatedQueryDTO, QueryDTO


@dataclass(frozen=True, slots=True)
class GetQuoteQuery(QueryDTO):
    workspace_id: uuid.UUID
    quote_id: uuid.UUID


@dataclass(frozen=True, slots=True)
class ListQuotesQuery(PaginatedQueryDTO):
    """filtros: workspace_id (obrigatório), status, patient_id."""
    pass
