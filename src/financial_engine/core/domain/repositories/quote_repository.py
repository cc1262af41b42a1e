from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from typing import Any

from clinic_core.core.application.cqrs import PagedResult

from financial_engine.core.domain.entities.quote_entity import QuoteEntity


class QuoteRepository(ABC):
    @abstractmethod
    def save(self, quote: QuoteEntity) -> QuoteEntity:
        """Cria ou atualiza; itens são substituídos integralmente."""
        ...

    @abstractmethod
    def find_by_id(self, workspace_id: uuid.UUID, quote_id: uuid.UUID, *, for_update: bool = False) -> QuoteEntity | None:
        ...

    @abstractmethod
    def list(self, workspace_id: uuid.UUID, filtros: dict[str, Any], page: int, page_size: int) -> PagedResult[QuoteEntity]:
        ...

    @abstractmethod
    def delete(self, workspace_id: uuid.UUID, quote_id: uuid.UUID) -> bool:
        ...

    @abstractmethod
    def patient_exists(self, workspace_id: uuid.UUID, patient_id: uuid.UUID) -> bool:
        ...
