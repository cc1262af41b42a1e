import uuid
from datetime import timedelta
from decimal import Decimal

import structlog
from clinic_core.core.application.cqrs import CommandHandler, QueryHandler
from clinic_core.core.domain.services.event_dispatcher import EventDispatcher

from financial_engine.core.application.commands.cost_commands import (
    CreateCardFeeRulesCommand,
    CreateCostCommand,
    DeactivateCardFeeGroupCommand,
    DeactivateCardFeeRuleCommand,
    DeleteCostCommand,
    ReplaceCardFeeGroupCommand,
    ReplicateRecurringCostsCommand,
    UpdateCostCommand,
)
from financial_engine.core.application.dtos.card_fee_dtos import CreateCardFeeRulesDTO
from financial_engine.core.application.dtos.cost_dtos import CostDTO
from financial_engine.core.application.dtos.cost_summary_dto import (
    CostStatsDTO,
    PendingRecurrences,
    RecurrenceRunDTO,
    ReplicatedCostDTO,
    VariableCostDTO,
    VariableCostSummaryDTO,
)
from financial_engine.core.application.dtos.formatting import money
from financial_engine.core.application.queries.cost_queries import (
    GetCostQuery,
    GetCostStatsQuery,
    GetPendingRecurrencesQuery,
    GetVariableCostSummaryQuery,
    ListCardFeeRulesQuery,
    ListCostsQuery,
)
from financial_engine.core.domain.entities.card_fee_rule_entity import CardFeeRuleEntity
from financial_engine.core.domain.entities.cost_entity import CostEntity
from financial_engine.core.domain.entities.enums import CostCategory, CostType, RecurrenceType
from financial_engine.core.domain.events.events import CostCreatedEvent, CostsReplicatedEvent
from financial_engine.core.domain.events.exceptions import ConflictError, NotFoundError
from financial_engine.core.domain.repositories.card_fee_rule_repository import CardFeeRuleRepository
from financial_engine.core.domain.repositories.cost_repository import CostRepository
from financial_engine.core.domain.services.cost_expander import RecurringCostExpander

logger = structlog.get_logger(__name__)

# categorias que incidem sobre a venda
VARIABLE_GROUPS = {
    CostCategory.TAX: "taxes",
    CostCategory.COMMISSION: "commissions",
    CostCategory.CARD: "cardFees",
}
# campos que, se alterados, invalidam as parcelas já geradas
SCHEDULE_FIELDS = ("fixed_value", "total_installments", "first_due_date", "recurrence_frequency", "recurrence_type")
# campos que definem a data da próxima replicação
REPLICATION_FIELDS = ("cost_type", "recurrence_type", "recurrence_frequency", "payment_date")
# janela de "próximas" recorrências na listagem de pendentes
UPCOMING_WINDOW_DAYS = 7


def _apply(cost: CostEntity, data: CostDTO) -> CostEntity:
    cost.description = data.description.strip()
    cost.cost_type = data.cost_type
    cost.category = data.category
    cost.custom_category = data.custom_category if data.category == CostCategory.CUSTOM else None
    cost.fixed_value = data.fixed_value if data.cost_type == CostType.FIXED else None
    cost.percentage = data.percentage if data.cost_type == CostType.PERCENTAGE else None
    cost.recurrence_type = data.recurrence_type
    cost.recurrence_frequency = data.recurrence_frequency
    cost.total_installments = data.total_installments if data.recurrence_type == RecurrenceType.INSTALLMENTS else None
    cost.first_due_date = data.first_due_date
    cost.payment_date = data.payment_date
    cost.card_operator = data.card_operator
    cost.receiving_days = data.receiving_days
    return cost


# ╭──────────────────────────────────────────────╮
# │ Custos                                      │
# ╰──────────────────────────────────────────────╯
class CreateCostHandler(CommandHandler[CreateCostCommand]):
    def __init__(self, repo: CostRepository, expander: RecurringCostExpander, dispatcher: EventDispatcher):
        self.repo = repo
        self.expander = expander
        self.dispatcher = dispatcher

    def handle(self, cmd: CreateCostCommand) -> CostEntity:
        cost = _apply(
            CostEntity(
                id=uuid.uuid4(),
                workspace_id=cmd.workspace_id,
                description="",
                cost_type=cmd.payload.cost_type,
            ),
            cmd.payload,
        )
        # parcelas materializadas na criação, na mesma transação do custo
        if cost.recurrence_type == RecurrenceType.INSTALLMENTS:
            cost.installments = self.expander.build_installments(cost)
        cost.next_replication_date = self.expander.first_replication_date(cost)

        saved = self.repo.create(cost)
        logger.info(
            "cost.created",
            cost_id=str(saved.id),
            workspace_id=str(cmd.workspace_id),
            cost_type=saved.cost_type.value,
            installments=len(saved.installments),
        )
        self.dispatcher.dispatch(
            CostCreatedEvent(
                cost_id=saved.id,
                workspace_id=cmd.workspace_id,
                cost_type=saved.cost_type.value,
                installments=len(saved.installments),
            )
        )
        return saved


class UpdateCostHandler(CommandHandler[UpdateCostCommand]):
    def __init__(self, repo: CostRepository, expander: RecurringCostExpander):
        self.repo = repo
        self.expander = expander

    def handle(self, cmd: UpdateCostCommand) -> CostEntity:
        cost = self.repo.find_by_id(cmd.workspace_id, cmd.cost_id)
        if cost is None:
            raise NotFoundError("Custo não encontrado", cost_id=str(cmd.cost_id))

        before = {f: getattr(cost, f) for f in SCHEDULE_FIELDS}
        replication_before = {f: getattr(cost, f) for f in REPLICATION_FIELDS}
        _apply(cost, cmd.payload)
        replication_changed = replication_before != {f: getattr(cost, f) for f in REPLICATION_FIELDS}
        if replication_changed or cost.next_replication_date is None:
            cost.next_replication_date = self.expander.first_replication_date(cost)
        if cost.recurrence_type != RecurrenceType.INSTALLMENTS:
            cost.installments = []
        elif before != {f: getattr(cost, f) for f in SCHEDULE_FIELDS} or not cost.installments:
            cost.installments = self.expander.build_installments(cost)

        return self.repo.update(cost)


class DeleteCostHandler(CommandHandler[DeleteCostCommand]):
    def __init__(self, repo: CostRepository):
        self.repo = repo

    def handle(self, cmd: DeleteCostCommand) -> None:
        if not self.repo.soft_delete(cmd.workspace_id, cmd.cost_id):
            raise NotFoundError("Custo não encontrado", cost_id=str(cmd.cost_id))


class GetCostHandler(QueryHandler[GetCostQuery, CostEntity]):
    def __init__(self, repo: CostRepository):
        self.repo = repo

    def handle(self, q: GetCostQuery) -> CostEntity:
        cost = self.repo.find_by_id(q.workspace_id, q.cost_id)
        if cost is None:
            raise NotFoundError("Custo não encontrado", cost_id=str(q.cost_id))
        return cost


class ListCostsHandler(QueryHandler[ListCostsQuery, list[CostEntity]]):
    def __init__(self, repo: CostRepository):
        self.repo = repo

    def handle(self, q: ListCostsQuery) -> list[CostEntity]:
        return self.repo.list_active(q.workspace_id)


class GetCostStatsHandler(QueryHandler[GetCostStatsQuery, CostStatsDTO]):
    def __init__(self, repo: CostRepository):
        self.repo = repo

    def handle(self, q: GetCostStatsQuery) -> CostStatsDTO:
        costs = self.repo.list_active(q.workspace_id)
        fixed_total = sum(
            (c.fixed_value or Decimal("0") for c in costs if c.cost_type == CostType.FIXED and c.is_recurring),
            Decimal("0"),
        )
        counts = {cat.value: 0 for cat in CostCategory}
        for c in costs:
            counts[c.category.value] += 1
        return CostStatsDTO(
            fixedCostsTotal=money(fixed_total),
            totalItems=sum(1 for c in costs if c.is_recurring),
            categoryCounts=counts,
        )


class GetVariableCostSummaryHandler(QueryHandler[GetVariableCostSummaryQuery, VariableCostSummaryDTO]):
    """Custos percentuais que incidem sobre a venda (impostos, comissões, cartão)."""

    def __init__(self, repo: CostRepository):
        self.repo = repo

    def handle(self, q: GetVariableCostSummaryQuery) -> VariableCostSummaryDTO:
        variable = sorted(
            (
                c for c in self.repo.list_active(q.workspace_id)
                if c.cost_type == CostType.PERCENTAGE
                and c.category in VARIABLE_GROUPS
                and (c.percentage or 0) > 0
            ),
            key=lambda c: (c.category.value, c.description),
        )
        grouped: dict[str, list[VariableCostDTO]] = {g: [] for g in VARIABLE_GROUPS.values()}
        items = []
        for c in variable:
            dto = VariableCostDTO(
                id=str(c.id), description=c.description, category=c.category.value, percentage=float(c.percentage)
            )
            items.append(dto)
            grouped[VARIABLE_GROUPS[c.category]].append(dto)

        total = sum((c.percentage for c in variable), Decimal("0"))
        taxes = sum((c.percentage for c in variable if c.category == CostCategory.TAX), Decimal("0"))
        return VariableCostSummaryDTO(
            totalPercentage=float(total),
            taxBurden=float(taxes),
            costs=items,
            grouped=grouped,
            summary={
                "taxesCount": len(grouped["taxes"]),
                "commissionsCount": len(grouped["commissions"]),
                "cardFeesCount": len(grouped["cardFees"]),
                "totalCount": len(items),
            },
        )


# ╭──────────────────────────────────────────────╮
# │ Recorrências (replicação de custos fixos)   │
# ╰──────────────────────────────────────────────╯
class ReplicateRecurringCostsHandler(CommandHandler[ReplicateRecurringCostsCommand]):
    """
    Lança como custo avulso cada ocorrência vencida dos custos fixos
    recorrentes e avança a próxima data de replicação do custo de origem.
    """

    def __init__(self, repo: CostRepository, expander: RecurringCostExpander, dispatcher: EventDispatcher):
        self.repo = repo
        self.expander = expander
        self.dispatcher = dispatcher

    def handle(self, cmd: ReplicateRecurringCostsCommand) -> RecurrenceRunDTO:
        details: list[ReplicatedCostDTO] = []
        for cost in self.repo.list_replicable(cmd.workspace_id):
            if cost.next_replication_date > cmd.reference_date:
                continue
            plan = self.expander.replicate(cost, cmd.reference_date)
            if plan.is_empty:
                continue
            if not self.repo.save_replicas(cost, plan.replicas, plan.next_date):
                logger.warning("cost.replication_skipped", cost_id=str(cost.id), reason="already_advanced")
                continue
            details.extend(
                ReplicatedCostDTO(
                    originalId=str(cost.id),
                    newId=str(r.id),
                    description=r.description,
                    fixedValue=money(r.fixed_value),
                    paymentDate=r.payment_date.isoformat(),
                )
                for r in plan.replicas
            )

        count = len(details)
        logger.info(
            "costs.replicated",
            reference_date=cmd.reference_date.isoformat(),
            workspace_id=str(cmd.workspace_id) if cmd.workspace_id else None,
            count=count,
        )
        self.dispatcher.dispatch(
            CostsReplicatedEvent(reference_date=cmd.reference_date, count=count, workspace_id=cmd.workspace_id)
        )
        return RecurrenceRunDTO(
            processedCount=count,
            message=f"{count} custo(s) recorrente(s) lançado(s)",
            details=details,
        )


class GetPendingRecurrencesHandler(QueryHandler[GetPendingRecurrencesQuery, PendingRecurrences]):
    def __init__(self, repo: CostRepository):
        self.repo = repo

    def handle(self, q: GetPendingRecurrencesQuery) -> PendingRecurrences:
        costs = self.repo.list_replicable(q.workspace_id)
        horizon = q.reference_date + timedelta(days=UPCOMING_WINDOW_DAYS)
        return PendingRecurrences(
            pending=[c for c in costs if c.next_replication_date <= q.reference_date],
            upcoming=[c for c in costs if q.reference_date < c.next_replication_date <= horizon],
            total_recurring=len(costs),
        )


# ╭──────────────────────────────────────────────╮
# │ Taxas de cartão                             │
# ╰──────────────────────────────────────────────╯
def _rules_from(workspace_id: uuid.UUID, data: CreateCardFeeRulesDTO) -> list[CardFeeRuleEntity]:
    return [
        CardFeeRuleEntity(
            id=uuid.uuid4(),
            workspace_id=workspace_id,
            card_operator=data.card_operator,
            card_type=data.card_type,
            installment_count=t.count,
            fee_percentage=t.fee_percentage,
            receiving_days=data.receiving_days,
        )
        for t in data.installments
    ]


class ListCardFeeRulesHandler(QueryHandler[ListCardFeeRulesQuery, list[CardFeeRuleEntity]]):
    def __init__(self, repo: CardFeeRuleRepository):
        self.repo = repo

    def handle(self, q: ListCardFeeRulesQuery) -> list[CardFeeRuleEntity]:
        return self.repo.list_active(q.workspace_id)


class CreateCardFeeRulesHandler(CommandHandler[CreateCardFeeRulesCommand]):
    def __init__(self, repo: CardFeeRuleRepository):
        self.repo = repo

    def handle(self, cmd: CreateCardFeeRulesCommand) -> list[CardFeeRuleEntity]:
        data = cmd.payload
        counts = [t.count for t in data.installments]
        existing = self.repo.existing_counts(cmd.workspace_id, data.card_operator, data.card_type, counts)
        if existing:
            raise ConflictError(
                f"Já existem taxas cadastradas para {data.card_operator} nas parcelas: "
                + ", ".join(f"{n}x" for n in sorted(existing)),
                card_operator=data.card_operator,
                card_type=data.card_type.value,
                installments=sorted(existing),
            )

        saved = self.repo.save_many(_rules_from(cmd.workspace_id, data))
        logger.info(
            "card_fee_rules.created",
            workspace_id=str(cmd.workspace_id),
            card_operator=data.card_operator,
            card_type=data.card_type.value,
            tiers=len(saved),
        )
        return saved


class DeactivateCardFeeRuleHandler(CommandHandler[DeactivateCardFeeRuleCommand]):
    def __init__(self, repo: CardFeeRuleRepository):
        self.repo = repo

    def handle(self, cmd: DeactivateCardFeeRuleCommand) -> None:
        if not self.repo.deactivate(cmd.workspace_id, cmd.rule_id):
            raise NotFoundError("Taxa de cartão não encontrada", rule_id=str(cmd.rule_id))


class ReplaceCardFeeGroupHandler(CommandHandler[ReplaceCardFeeGroupCommand]):
    """Substitui todas as faixas ativas de uma operadora/tipo de cartão."""

    def __init__(self, repo: CardFeeRuleRepository):
        self.repo = repo

    def handle(self, cmd: ReplaceCardFeeGroupCommand) -> list[CardFeeRuleEntity]:
        data = cmd.payload
        saved = self.repo.replace_group(
            cmd.workspace_id, data.card_operator, data.card_type, _rules_from(cmd.workspace_id, data)
        )
        logger.info(
            "card_fee_rules.replaced",
            workspace_id=str(cmd.workspace_id),
            card_operator=data.card_operator,
            card_type=data.card_type.value,
            tiers=len(saved),
        )
        return saved


class DeactivateCardFeeGroupHandler(CommandHandler[DeactivateCardFeeGroupCommand]):
    def __init__(self, repo: CardFeeRuleRepository):
        self.repo = repo

    def handle(self, cmd: DeactivateCardFeeGroupCommand) -> int:
        count = self.repo.deactivate_group(cmd.workspace_id, cmd.card_operator, cmd.card_type)
        logger.info(
            "card_fee_rules.group_deactivated",
            workspace_id=str(cmd.workspace_id),
            card_operator=cmd.card_operator,
            card_type=cmd.card_type.value,
            count=count,
        )
        return count
