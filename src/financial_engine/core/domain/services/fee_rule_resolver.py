from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

import structlog

from financial_engine.core.domain.entities.card_fee_rule_entity import CardFeeRuleEntity
from financial_engine.core.domain.entities.enums import CardType
from financial_engine.core.domain.repositories.card_fee_rule_repository import CardFeeRuleRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class FeeResolution:
    fee_percentage: Decimal
    receiving_days: int
    rule_id: uuid.UUID | None = None

    @property
    def is_fallback(self) -> bool:
        return self.rule_id is None

    @property
    def applies_fee(self) -> bool:
        return self.fee_percentage > 0


class FeeRuleResolver:
    """
    Busca a taxa de cartão por (operadora, tipo, nº de parcelas).

    Casamento exato no número de parcelas, sem interpolação entre faixas.
    Sem regra configurada o resultado é taxa zero + prazo padrão: faixa não
    configurada nunca bloqueia a liquidação (fica registrada em log/métrica).
    """

    def __init__(self, repo: CardFeeRuleRepository, default_receiving_days: int = 30) -> None:
        self.repo = repo
        self.default_receiving_days = default_receiving_days

    def resolve(
        self,
        workspace_id: uuid.UUID,
        card_type: CardType,
        installment_count: int,
        card_operator: str | None = None,
        *,
        default_receiving_days: int | None = None,
    ) -> FeeResolution:
        rule = self.repo.find_active(workspace_id, card_type, installment_count, card_operator)
        if rule is not None:
            return FeeResolution(
                fee_percentage=Decimal(rule.fee_percentage),
                receiving_days=rule.receiving_days,
                rule_id=rule.id,
            )

        days = default_receiving_days if default_receiving_days is not None else self.default_receiving_days
        logger.warning(
            "fee_rule.fallback",
            workspace_id=str(workspace_id),
            card_type=card_type.value,
            installments=installment_count,
            card_operator=card_operator,
            receiving_days=days,
        )
        return FeeResolution(fee_percentage=Decimal("0"), receiving_days=days)

    @staticmethod
    def match(
        rules: Iterable[CardFeeRuleEntity],
        card_type: CardType,
        installment_count: int,
        card_operator: str | None = None,
    ) -> CardFeeRuleEntity | None:
        """
        Mesma regra de seleção do `resolve`, sobre uma tabela já carregada.
        Sem operadora informada vale a primeira regra ativa por ordem de operadora.
        """
        candidates = [
            r for r in rules
            if r.is_active
            and r.card_type == card_type
            and r.installment_count == installment_count
            and (card_operator is None or r.card_operator == card_operator)
        ]
        if not candidates:
            return None
        return min(candidates, key=lambda r: r.card_operator)
