from __future__ import annotations

import uuid
from datetime import date

from django.db import transaction
from django.db.models import Q

from financial_engine.core.domain.entities.cost_entity import CostEntity, CostInstallmentEntity
from financial_engine.core.domain.entities.enums import (
    CostCategory,
    CostType,
    InstallmentStatus,
    RecurrenceFrequency,
    RecurrenceType,
)
from financial_engine.core.domain.repositories.cost_repository import CostRepository
from plugins.django_interface.models import Cost as CostModel
from plugins.django_interface.models import CostInstallment as CostInstallmentModel

UPDATE_FIELDS = [
    "description", "cost_type", "category", "custom_category", "fixed_value", "percentage",
    "recurrence_type", "recurrence_frequency", "total_installments", "first_due_date",
    "payment_date", "card_operator", "receiving_days", "next_replication_date", "is_active", "updated_at",
]


def installment_to_entity(m: CostInstallmentModel) -> CostInstallmentEntity:
    return CostInstallmentEntity.from_model(m, status=InstallmentStatus(m.status))


def cost_to_entity(m: CostModel, installments: list[CostInstallmentModel] | None = None) -> CostEntity:
    return CostEntity.from_model(
        m,
        cost_type=CostType(m.cost_type),
        category=CostCategory(m.category),
        recurrence_type=RecurrenceType(m.recurrence_type),
        recurrence_frequency=RecurrenceFrequency(m.recurrence_frequency) if m.recurrence_frequency else None,
        installments=[installment_to_entity(i) for i in (installments or [])],
    )


def _model_fields(cost: CostEntity) -> dict:
    return {
        "description": cost.description,
        "cost_type": cost.cost_type.value,
        "category": cost.category.value,
        "custom_category": cost.custom_category,
        "fixed_value": cost.fixed_value,
        "percentage": cost.percentage,
        "recurrence_type": cost.recurrence_type.value,
        "recurrence_frequency": cost.recurrence_frequency.value if cost.recurrence_frequency else None,
        "total_installments": cost.total_installments,
        "first_due_date": cost.first_due_date,
        "payment_date": cost.payment_date,
        "card_operator": cost.card_operator,
        "receiving_days": cost.receiving_days,
        "next_replication_date": cost.next_replication_date,
        "is_active": cost.is_active,
    }


class CostRepoImpl(CostRepository):
    def _installment_models(self, cost: CostEntity) -> list[CostInstallmentModel]:
        return [
            CostInstallmentModel(
                id=i.id,
                cost_id=cost.id,
                installment_number=i.installment_number,
                amount=i.amount,
                due_date=i.due_date,
                status=i.status.value,
            )
            for i in cost.installments
        ]

    @transaction.atomic
    def create(self, cost: CostEntity) -> CostEntity:
        CostModel.objects.create(
            id=cost.id,
            workspace_id=cost.workspace_id,
            replicated_from_id=cost.replicated_from_id,
            **_model_fields(cost),
        )
        CostInstallmentModel.objects.bulk_create(self._installment_models(cost))
        return self.find_by_id(cost.workspace_id, cost.id)

    @transaction.atomic
    def update(self, cost: CostEntity) -> CostEntity:
        model = CostModel.objects.select_for_update().get(id=cost.id, workspace_id=cost.workspace_id)
        for name, value in _model_fields(cost).items():
            setattr(model, name, value)
        model.save(update_fields=UPDATE_FIELDS)

        # cronograma regenerado ⇒ parcelas substituídas
        current = set(model.installments.values_list("id", flat=True))
        if current != {i.id for i in cost.installments}:
            model.installments.all().delete()
            CostInstallmentModel.objects.bulk_create(self._installment_models(cost))
        return self.find_by_id(cost.workspace_id, cost.id)

    def find_by_id(self, workspace_id: uuid.UUID, cost_id: uuid.UUID) -> CostEntity | None:
        m = CostModel.objects.filter(workspace_id=workspace_id, id=cost_id).prefetch_related("installments").first()
        return cost_to_entity(m, list(m.installments.all())) if m else None

    def list_active(self, workspace_id: uuid.UUID) -> list[CostEntity]:
        qs = (
            CostModel.objects.filter(workspace_id=workspace_id, is_active=True)
            .prefetch_related("installments")
            .order_by("category", "description")
        )
        return [cost_to_entity(m, list(m.installments.all())) for m in qs]

    def soft_delete(self, workspace_id: uuid.UUID, cost_id: uuid.UUID) -> bool:
        return CostModel.objects.filter(
            workspace_id=workspace_id, id=cost_id, is_active=True
        ).update(is_active=False) == 1

    def list_applicable(self, workspace_id: uuid.UUID, start: date, end: date) -> list[CostEntity]:
        qs = (
            CostModel.objects.filter(workspace_id=workspace_id, is_active=True)
            .exclude(recurrence_type=RecurrenceType.INSTALLMENTS.value)
            .filter(
                Q(payment_date__range=(start, end))
                | Q(payment_date__isnull=True)
                | Q(recurrence_type=RecurrenceType.INDEFINITE.value, payment_date__lte=end)
            )
        )
        return [cost_to_entity(m) for m in qs]

    def installments_due(
        self, workspace_id: uuid.UUID, start: date, end: date
    ) -> list[tuple[CostEntity, CostInstallmentEntity]]:
        qs = (
            CostInstallmentModel.objects.filter(
                cost__workspace_id=workspace_id,
                cost__is_active=True,
                due_date__range=(start, end),
            )
            .select_related("cost")
            .order_by("due_date", "installment_number")
        )
        costs: dict[uuid.UUID, CostEntity] = {}
        out = []
        for m in qs:
            cost = costs.setdefault(m.cost_id, cost_to_entity(m.cost))
            out.append((cost, installment_to_entity(m)))
        return out

    # ─────────────────────────── REPLICAÇÃO ───────────────────────────
    def list_replicable(self, workspace_id: uuid.UUID | None) -> list[CostEntity]:
        qs = CostModel.objects.filter(
            is_active=True,
            cost_type=CostType.FIXED.value,
            recurrence_type=RecurrenceType.INDEFINITE.value,
            recurrence_frequency__isnull=False,
            next_replication_date__isnull=False,
        )
        if workspace_id is not None:
            qs = qs.filter(workspace_id=workspace_id)
        return [cost_to_entity(m) for m in qs.order_by("next_replication_date", "description")]

    @transaction.atomic
    def save_replicas(self, parent: CostEntity, replicas: list[CostEntity], next_date: date) -> bool:
        # avanço condicional: duas execuções concorrentes não duplicam lançamentos
        advanced = CostModel.objects.filter(
            id=parent.id,
            workspace_id=parent.workspace_id,
            next_replication_date=parent.next_replication_date,
        ).update(next_replication_date=next_date)
        if not advanced:
            return False
        CostModel.objects.bulk_create([
            CostModel(
                id=r.id,
                workspace_id=r.workspace_id,
                replicated_from_id=r.replicated_from_id,
                **_model_fields(r),
            )
            for r in replicas
        ])
        return True
