from __future__ import annotations

import uuid
from abc import ABC, abstractmethod

from financial_engine.core.domain.entities.card_fee_rule_entity import CardFeeRuleEntity
from financial_engine.core.domain.entities.enums import CardType


class CardFeeRuleRepository(ABC):
    @abstractmethod
    def list_active(self, workspace_id: uuid.UUID) -> list[CardFeeRuleEntity]:
        """Regras ativas ordenadas por operadora e número de parcelas."""
        ...

    @abstractmethod
    def find_active(
        self,
        workspace_id: uuid.UUID,
        card_type: CardType,
        installment_count: int,
        card_operator: str | None = None,
    ) -> CardFeeRuleEntity | None:
        ...

    @abstractmethod
    def existing_counts(
        self, workspace_id: uuid.UUID, card_operator: str, card_type: CardType, counts: list[int]
    ) -> list[int]:
        """Faixas (installment_count) que já possuem regra ativa."""
        ...

    @abstractmethod
    def save_many(self, rules: list[CardFeeRuleEntity]) -> list[CardFeeRuleEntity]:
        ...

    @abstractmethod
    def deactivate(self, workspace_id: uuid.UUID, rule_id: uuid.UUID) -> bool:
        ...

    @abstractmethod
    def deactivate_group(self, workspace_id: uuid.UUID, card_operator: str, card_type: CardType) -> int:
        """Desativa todas as faixas ativas da operadora/tipo; retorna quantas."""
        ...

    @abstractmethod
    def replace_group(
        self, workspace_id: uuid.UUID, card_operator: str, card_type: CardType, rules: list[CardFeeRuleEntity]
    ) -> list[CardFeeRuleEntity]:
        """Substitui as faixas ativas da operadora/tipo pelas informadas, numa única transação."""
        ...
