from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from datetime import date

from financial_engine.core.domain.entities.cost_entity import CostEntity, CostInstallmentEntity


class CostRepository(ABC):
    @abstractmethod
    def create(self, cost: CostEntity) -> CostEntity:
        """Persiste o custo e suas parcelas (quando houver) na mesma transação."""
        ...

    @abstractmethod
    def update(self, cost: CostEntity) -> CostEntity:
        ...

    @abstractmethod
    def find_by_id(self, workspace_id: uuid.UUID, cost_id: uuid.UUID) -> CostEntity | None:
        ...

    @abstractmethod
    def list_active(self, workspace_id: uuid.UUID) -> list[CostEntity]:
        ...

    @abstractmethod
    def soft_delete(self, workspace_id: uuid.UUID, cost_id: uuid.UUID) -> bool:
        ...

    @abstractmethod
    def list_applicable(self, workspace_id: uuid.UUID, start: date, end: date) -> list[CostEntity]:
        """
        Custos ativos candidatos ao intervalo: com payment_date no intervalo,
        sem data, ou recorrentes indefinidos com data anterior ao fim do intervalo.
        """
        ...

    @abstractmethod
    def installments_due(self, workspace_id: uuid.UUID, start: date, end: date) -> list[tuple[CostEntity, CostInstallmentEntity]]:
        """Parcelas de custos ativos com vencimento no intervalo."""
        ...

    @abstractmethod
    def list_replicable(self, workspace_id: uuid.UUID | None) -> list[CostEntity]:
        """Custos fixos recorrentes ativos com próxima replicação agendada (todos os workspaces se None)."""
        ...

    @abstractmethod
    def save_replicas(self, parent: CostEntity, replicas: list[CostEntity], next_date: date) -> bool:
        """
        Grava os custos replicados e avança next_replication_date do pai,
        atomicamente. False se outra execução já avançou o pai.
        """
        ...
