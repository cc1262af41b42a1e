from __future__ import annotations

import uuid

from django.db import transaction

from financial_engine.core.domain.entities.card_fee_rule_entity import CardFeeRuleEntity
from financial_engine.core.domain.entities.enums import CardType
from financial_engine.core.domain.repositories.card_fee_rule_repository import CardFeeRuleRepository
from plugins.django_interface.models import CardFeeRule as CardFeeRuleModel


def _to_entity(m: CardFeeRuleModel) -> CardFeeRuleEntity:
    return CardFeeRuleEntity.from_model(m, card_type=CardType(m.card_type))


class CardFeeRuleRepoImpl(CardFeeRuleRepository):
    def list_active(self, workspace_id: uuid.UUID) -> list[CardFeeRuleEntity]:
        qs = CardFeeRuleModel.objects.filter(workspace_id=workspace_id, is_active=True)
        return [_to_entity(m) for m in qs.order_by("card_operator", "installment_count")]

    def find_active(
        self,
        workspace_id: uuid.UUID,
        card_type: CardType,
        installment_count: int,
        card_operator: str | None = None,
    ) -> CardFeeRuleEntity | None:
        qs = CardFeeRuleModel.objects.filter(
            workspace_id=workspace_id,
            card_type=card_type.value,
            installment_count=installment_count,
            is_active=True,
        )
        if card_operator:
            qs = qs.filter(card_operator=card_operator)
        m = qs.order_by("card_operator").first()
        return _to_entity(m) if m else None

    def existing_counts(
        self, workspace_id: uuid.UUID, card_operator: str, card_type: CardType, counts: list[int]
    ) -> list[int]:
        return list(
            CardFeeRuleModel.objects.filter(
                workspace_id=workspace_id,
                card_operator=card_operator,
                card_type=card_type.value,
                installment_count__in=counts,
                is_active=True,
            ).values_list("installment_count", flat=True)
        )

    @transaction.atomic
    def save_many(self, rules: list[CardFeeRuleEntity]) -> list[CardFeeRuleEntity]:
        CardFeeRuleModel.objects.bulk_create([
            CardFeeRuleModel(
                id=r.id,
                workspace_id=r.workspace_id,
                card_operator=r.card_operator,
                card_type=r.card_type.value,
                installment_count=r.installment_count,
                fee_percentage=r.fee_percentage,
                receiving_days=r.receiving_days,
                is_active=r.is_active,
            )
            for r in rules
        ])
        qs = CardFeeRuleModel.objects.filter(id__in=[r.id for r in rules])
        return [_to_entity(m) for m in qs.order_by("installment_count")]

    def deactivate(self, workspace_id: uuid.UUID, rule_id: uuid.UUID) -> bool:
        return CardFeeRuleModel.objects.filter(
            workspace_id=workspace_id, id=rule_id, is_active=True
        ).update(is_active=False) == 1

    def deactivate_group(self, workspace_id: uuid.UUID, card_operator: str, card_type: CardType) -> int:
        return CardFeeRuleModel.objects.filter(
            workspace_id=workspace_id,
            card_operator=card_operator,
            card_type=card_type.value,
            is_active=True,
        ).update(is_active=False)

    @transaction.atomic
    def replace_group(
        self, workspace_id: uuid.UUID, card_operator: str, card_type: CardType, rules: list[CardFeeRuleEntity]
    ) -> list[CardFeeRuleEntity]:
        # desativa antes de inserir: a unicidade das faixas ativas vale dentro da transação
        self.deactivate_group(workspace_id, card_operator, card_type)
        return self.save_many(rules)
