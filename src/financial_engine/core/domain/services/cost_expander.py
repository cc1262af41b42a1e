from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from financial_engine.core.domain.entities.cost_entity import CostEntity, CostInstallmentEntity
from financial_engine.core.domain.entities.enums import (
    CostType,
    InstallmentStatus,
    RecurrenceFrequency,
    RecurrenceType,
)
from financial_engine.core.domain.events.exceptions import ValidationFailedError
from financial_engine.core.domain.services.installment_scheduler import allocate_evenly


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """
    Lançamento de despesa datado.
    `amount is None` indica custo percentual ainda não resolvido
    (depende da receita do período).
    """
    id: uuid.UUID
    cost_id: uuid.UUID
    date: date
    amount: Decimal | None
    description: str
    category: str
    custom_category: str | None
    is_recurring: bool
    percentage: Decimal | None = None

    @property
    def is_deferred(self) -> bool:
        return self.amount is None


@dataclass(frozen=True, slots=True)
class ReplicationPlan:
    replicas: list[CostEntity]
    next_date: date | None

    @property
    def is_empty(self) -> bool:
        return not self.replicas


class RecurringCostExpander:
    """Transforma definições de custo em lançamentos datados para um horizonte."""

    # ─── materialização (na criação do custo) ─────────────────────────
    def build_installments(self, cost: CostEntity) -> list[CostInstallmentEntity]:
        """
        Custo parcelado: fixed_value / N por parcela, vencendo em
        first_due_date + i × (1 | 3 | 12) meses.
        """
        if cost.recurrence_type != RecurrenceType.INSTALLMENTS:
            return []
        if not cost.total_installments or cost.total_installments < 1:
            raise ValidationFailedError("Número de parcelas do custo é obrigatório")
        if cost.fixed_value is None or cost.first_due_date is None:
            raise ValidationFailedError("Custo parcelado exige valor fixo e data do primeiro vencimento")

        months = (cost.recurrence_frequency or RecurrenceFrequency.MONTHLY).months
        amounts = allocate_evenly(Decimal(cost.fixed_value), cost.total_installments)
        return [
            CostInstallmentEntity(
                id=uuid.uuid4(),
                cost_id=cost.id,
                installment_number=i + 1,
                amount=amounts[i],
                due_date=cost.first_due_date + relativedelta(months=i * months),
                status=InstallmentStatus.PENDING,
            )
            for i in range(cost.total_installments)
        ]

    # ─── expansão (no momento da consulta) ────────────────────────────
    def expand(self, cost: CostEntity, start: date, end: date, today: date | None = None) -> list[LedgerEntry]:
        """Lançamentos diretos do custo dentro de [start, end]."""
        if not cost.is_active or start > end:
            return []

        if cost.recurrence_type == RecurrenceType.INSTALLMENTS:
            # as parcelas materializadas são os lançamentos; o pai não entra
            return []
        if cost.recurrence_type == RecurrenceType.INDEFINITE:
            dates = self._recurring_dates(cost, start, end)
        elif cost.payment_date is not None:
            dates = [cost.payment_date] if start <= cost.payment_date <= end else []
        else:
            ref = today or date.today()
            dates = [start] if start <= ref <= end else []

        return [self._entry(cost, d) for d in dates]

    def installment_entry(self, cost: CostEntity, inst: CostInstallmentEntity) -> LedgerEntry:
        return LedgerEntry(
            id=inst.id,
            cost_id=cost.id,
            date=inst.due_date,
            amount=Decimal(inst.amount),
            description=f"{cost.description} (Parcela {inst.installment_number})",
            category=cost.category.label,
            custom_category=cost.custom_category,
            is_recurring=True,
        )

    # ─── replicação (custos fixos recorrentes) ─────────────────────────
    def is_replicable(self, cost: CostEntity) -> bool:
        return (
            cost.cost_type == CostType.FIXED
            and cost.recurrence_type == RecurrenceType.INDEFINITE
            and cost.recurrence_frequency is not None
            and cost.payment_date is not None
        )

    def first_replication_date(self, cost: CostEntity) -> date | None:
        """Primeira ocorrência após o lançamento original; None se o custo não replica."""
        if not self.is_replicable(cost):
            return None
        return cost.payment_date + relativedelta(months=cost.recurrence_frequency.months)

    def replicate(self, cost: CostEntity, today: date) -> ReplicationPlan:
        """
        Gera um custo avulso para cada ocorrência vencida até `today`,
        a partir de next_replication_date. Ocorrências atrasadas são
        todas lançadas de uma vez; as datas seguem ancoradas em
        payment_date (31/01 → 29/02 → 31/03).
        """
        if not self.is_replicable(cost) or cost.next_replication_date is None:
            return ReplicationPlan(replicas=[], next_date=cost.next_replication_date)

        months = cost.recurrence_frequency.months
        replicas: list[CostEntity] = []
        k = 1
        occurrence = cost.payment_date + relativedelta(months=months)
        while occurrence <= today:
            if occurrence >= cost.next_replication_date:
                replicas.append(self._replica(cost, occurrence))
            k += 1
            occurrence = cost.payment_date + relativedelta(months=k * months)
        return ReplicationPlan(replicas=replicas, next_date=max(occurrence, cost.next_replication_date))

    # ─── helpers ───────────────────────────────────────────────────────
    def _replica(self, cost: CostEntity, on: date) -> CostEntity:
        return CostEntity(
            id=uuid.uuid4(),
            workspace_id=cost.workspace_id,
            description=cost.description,
            cost_type=cost.cost_type,
            category=cost.category,
            custom_category=cost.custom_category,
            fixed_value=cost.fixed_value,
            recurrence_type=RecurrenceType.NONE,
            payment_date=on,
            card_operator=cost.card_operator,
            receiving_days=cost.receiving_days,
            replicated_from_id=cost.id,
        )

    def _recurring_dates(self, cost: CostEntity, start: date, end: date) -> list[date]:
        # sem data fixa: "sempre se aplica", um lançamento por período consultado
        if cost.payment_date is None:
            return [start]
        if cost.recurrence_frequency is None:
            return [cost.payment_date] if start <= cost.payment_date <= end else []

        months = cost.recurrence_frequency.months
        # ocorrências anteriores a next_replication_date já viraram custos avulsos
        replicated_until = cost.next_replication_date
        out: list[date] = []
        k = 0
        occurrence = cost.payment_date
        while occurrence <= end:
            already_replicated = k > 0 and replicated_until is not None and occurrence < replicated_until
            if occurrence >= start and not already_replicated:
                out.append(occurrence)
            k += 1
            occurrence = cost.payment_date + relativedelta(months=k * months)
        return out

    def _entry(self, cost: CostEntity, on: date) -> LedgerEntry:
        fixed = cost.cost_type == CostType.FIXED
        return LedgerEntry(
            id=cost.id,
            cost_id=cost.id,
            date=on,
            amount=Decimal(cost.fixed_value or 0) if fixed else None,
            description=cost.description,
            category=cost.category.label,
            custom_category=cost.custom_category,
            is_recurring=cost.is_recurring,
            percentage=None if fixed else Decimal(cost.percentage or 0),
        )
