from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any

from clinic_core.core.application.cqrs import PagedResult

from financial_engine.core.domain.entities.sale_entity import PaymentInstallmentEntity, SaleEntity


class SaleRepository(ABC):
    @abstractmethod
    def create(self, sale: SaleEntity) -> SaleEntity:
        """
        Persiste venda, itens, splits, parcelas e sessões como uma unidade.
        Os splits já devem vir com o cronograma (schedule) calculado.
        """
        ...

    @abstractmethod
    def find_by_id(self, workspace_id: uuid.UUID, sale_id: uuid.UUID) -> SaleEntity | None:
        ...

    @abstractmethod
    def list(self, workspace_id: uuid.UUID, filtros: dict[str, Any], page: int, page_size: int) -> PagedResult[SaleEntity]:
        ...

    @abstractmethod
    def delete(self, workspace_id: uuid.UUID, sale_id: uuid.UUID) -> bool:
        """Remove a venda em cascata. Retorna False quando não existe no workspace."""
        ...


class PaymentInstallmentRepository(ABC):
    @abstractmethod
    def find_by_id(self, workspace_id: uuid.UUID, installment_id: uuid.UUID) -> PaymentInstallmentEntity | None:
        ...

    @abstractmethod
    def mark_paid(self, workspace_id: uuid.UUID, installment_id: uuid.UUID, paid_at: datetime) -> bool:
        """
        PENDING/OVERDUE → PAID por UPDATE condicional.
        Retorna False quando nenhuma linha foi afetada (já liquidada).
        """
        ...

    @abstractmethod
    def mark_overdue(self, reference_date: date) -> int:
        """PENDING com vencimento anterior a `reference_date` → OVERDUE. Retorna a contagem."""
        ...
