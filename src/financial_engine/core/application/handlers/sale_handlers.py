import uuid

import structlog
from clinic_core.core.application.cqrs import CommandHandler, PagedResult, QueryHandler
from clinic_core.core.domain.services.event_dispatcher import EventDispatcher
from django.utils import timezone

from financial_engine.adapters.observability.metrics import SALES_CREATED, SETTLEMENTS
from financial_engine.core.application.commands.sale_commands import (
    CreateSaleCommand,
    DeleteSaleCommand,
    MarkOverdueInstallmentsCommand,
    SettleInstallmentCommand,
)
from financial_engine.core.application.queries.sale_queries import GetSaleQuery, ListSalesQuery
from financial_engine.core.application.services.settlement_service import SettlementService
from financial_engine.core.domain.entities.sale_entity import (
    PaymentInstallmentEntity,
    SaleEntity,
    SaleItemEntity,
)
from financial_engine.core.domain.events.events import (
    InstallmentSettledEvent,
    InstallmentsMarkedOverdueEvent,
    SaleCreatedEvent,
)
from financial_engine.core.domain.events.exceptions import InstallmentAlreadySettledError, NotFoundError
from financial_engine.core.domain.repositories.sale_repository import (
    PaymentInstallmentRepository,
    SaleRepository,
)

logger = structlog.get_logger(__name__)


class CreateSaleHandler(CommandHandler[CreateSaleCommand]):
    def __init__(self, repo: SaleRepository, settlement: SettlementService, dispatcher: EventDispatcher):
        self.repo = repo
        self.settlement = settlement
        self.dispatcher = dispatcher

    def handle(self, cmd: CreateSaleCommand) -> SaleEntity:
        data = cmd.payload
        sale_date = data.sale_date or timezone.localdate()

        # validação + cronograma antes de qualquer escrita
        splits = self.settlement.build_splits(data.payment_splits)
        fallbacks = 0
        if splits:
            fallbacks = self.settlement.settle(cmd.workspace_id, data.total_amount, sale_date, splits)

        sale = SaleEntity(
            id=uuid.uuid4(),
            workspace_id=cmd.workspace_id,
            patient_id=data.patient_id,
            seller_id=data.seller_id,
            sale_date=sale_date,
            total_amount=data.total_amount,
            payment_status=data.payment_status,
            payment_method=data.payment_method,
            notes=data.notes,
            items=[
                SaleItemEntity(
                    id=uuid.uuid4(),
                    procedure_id=i.procedure_id,
                    quantity=i.quantity,
                    unit_price=i.unit_price,
                )
                for i in data.items
            ],
            payment_splits=splits,
            session_dates=list(data.session_dates),
        )
        saved = self.repo.create(sale)

        SALES_CREATED.inc()
        logger.info(
            "sale.created",
            sale_id=str(saved.id),
            workspace_id=str(cmd.workspace_id),
            total_amount=str(saved.total_amount),
            installments=sale.installment_count,
        )
        self.dispatcher.dispatch(
            SaleCreatedEvent(
                sale_id=saved.id,
                workspace_id=cmd.workspace_id,
                total_amount=saved.total_amount,
                installments=sale.installment_count,
                fee_fallbacks=fallbacks,
            )
        )
        return saved


class DeleteSaleHandler(CommandHandler[DeleteSaleCommand]):
    def __init__(self, repo: SaleRepository):
        self.repo = repo

    def handle(self, cmd: DeleteSaleCommand) -> None:
        if not self.repo.delete(cmd.workspace_id, cmd.sale_id):
            raise NotFoundError("Venda não encontrada", sale_id=str(cmd.sale_id))
        logger.info("sale.deleted", sale_id=str(cmd.sale_id), workspace_id=str(cmd.workspace_id))


class SettleInstallmentHandler(CommandHandler[SettleInstallmentCommand]):
    """
    Baixa de parcela (PENDING/OVERDUE → PAID).
    A transição é um UPDATE condicional no repositório: de duas requisições
    concorrentes, só uma afeta a linha; a outra recebe conflito.
    """

    def __init__(self, repo: PaymentInstallmentRepository, dispatcher: EventDispatcher):
        self.repo = repo
        self.dispatcher = dispatcher

    def handle(self, cmd: SettleInstallmentCommand) -> PaymentInstallmentEntity:
        inst = self.repo.find_by_id(cmd.workspace_id, cmd.installment_id)
        if inst is None:
            SETTLEMENTS.labels(outcome="not_found").inc()
            raise NotFoundError("Parcela não encontrada", installment_id=str(cmd.installment_id))

        if not self.repo.mark_paid(cmd.workspace_id, cmd.installment_id, timezone.now()):
            SETTLEMENTS.labels(outcome="conflict").inc()
            raise InstallmentAlreadySettledError(
                "Parcela já foi liquidada", installment_id=str(cmd.installment_id)
            )

        SETTLEMENTS.labels(outcome="paid").inc()
        paid = self.repo.find_by_id(cmd.workspace_id, cmd.installment_id)
        self.dispatcher.dispatch(
            InstallmentSettledEvent(
                installment_id=paid.id, workspace_id=cmd.workspace_id, amount=paid.amount
            )
        )
        return paid


class MarkOverdueInstallmentsHandler(CommandHandler[MarkOverdueInstallmentsCommand]):
    def __init__(self, repo: PaymentInstallmentRepository):
        self.repo = repo

    def handle(self, cmd: MarkOverdueInstallmentsCommand) -> InstallmentsMarkedOverdueEvent:
        count = self.repo.mark_overdue(cmd.reference_date)
        logger.info("installments.marked_overdue", reference_date=cmd.reference_date.isoformat(), count=count)
        # evento publicado pelo CommandBusImpl
        return InstallmentsMarkedOverdueEvent(reference_date=cmd.reference_date, count=count)


class GetSaleHandler(QueryHandler[GetSaleQuery, SaleEntity]):
    def __init__(self, repo: SaleRepository):
        self.repo = repo

    def handle(self, q: GetSaleQuery) -> SaleEntity:
        sale = self.repo.find_by_id(q.workspace_id, q.sale_id)
        if sale is None:
            raise NotFoundError("Venda não encontrada", sale_id=str(q.sale_id))
        return sale


class ListSalesHandler(QueryHandler[ListSalesQuery, PagedResult[SaleEntity]]):
    def __init__(self, repo: SaleRepository):
        self.repo = repo

    def handle(self, q: ListSalesQuery) -> PagedResult[SaleEntity]:
        filtros = dict(q.filtros)
        workspace_id = filtros.pop("workspace_id")
        return self.repo.list(workspace_id, filtros, page=q.page, page_size=q.page_size)
