import uuid
from datetime import date

import structlog
from clinic_core.core.application.cqrs import CommandHandler, PagedResult, QueryHandler
from clinic_core.core.domain.services.event_dispatcher import EventDispatcher
from dateutil.relativedelta import relativedelta
from django.db import transaction
from django.utils import timezone

from financial_engine.adapters.observability.metrics import SALES_CREATED
from financial_engine.core.application.commands.quote_commands import (
    ConvertQuoteCommand,
    CreateQuoteCommand,
    DeleteQuoteCommand,
    UpdateQuoteCommand,
)
from financial_engine.core.application.dtos.quote_dtos import QuoteItemDTO
from financial_engine.core.application.queries.quote_queries import GetQuoteQuery, ListQuotesQuery
from financial_engine.core.application.services.settlement_service import SettlementService
from financial_engine.core.domain.entities.quote_entity import QuoteEntity, QuoteItemEntity
from financial_engine.core.domain.entities.sale_entity import (
    InstallmentStub,
    PaymentSplitEntity,
    SaleEntity,
    SaleItemEntity,
)
from financial_engine.core.domain.events.events import QuoteConvertedEvent, SaleCreatedEvent
from financial_engine.core.domain.events.exceptions import NotFoundError
from financial_engine.core.domain.repositories.quote_repository import QuoteRepository
from financial_engine.core.domain.repositories.sale_repository import SaleRepository
from financial_engine.core.domain.services.quote_workflow import QuoteWorkflow

logger = structlog.get_logger(__name__)


def _items(dtos: list[QuoteItemDTO]) -> list[QuoteItemEntity]:
    return [
        QuoteItemEntity(
            id=uuid.uuid4(),
            procedure_id=i.procedure_id,
            description=i.description,
            quantity=i.quantity,
            unit_price=i.unit_price,
            total_price=i.unit_price * i.quantity,
        )
        for i in dtos
    ]


def _fill_stubs(split: PaymentSplitEntity, sale_date: date) -> None:
    """
    Pagamentos sem detalhe de parcela recebem datas geradas:
    mensais a partir da venda (não-cartão) ou derivadas pelo prazo da operadora (cartão).
    """
    if split.stubs:
        return
    if split.payment_method.is_card:
        split.stubs = [InstallmentStub() for _ in range(split.installments)]
    else:
        split.stubs = [
            InstallmentStub(due_date=sale_date + relativedelta(months=i)) for i in range(split.installments)
        ]


class CreateQuoteHandler(CommandHandler[CreateQuoteCommand]):
    def __init__(self, repo: QuoteRepository):
        self.repo = repo

    def handle(self, cmd: CreateQuoteCommand) -> QuoteEntity:
        data = cmd.payload
        if not self.repo.patient_exists(cmd.workspace_id, data.patient_id):
            raise NotFoundError("Paciente não encontrado", patient_id=str(data.patient_id))

        quote = QuoteEntity(
            id=uuid.uuid4(),
            workspace_id=cmd.workspace_id,
            patient_id=data.patient_id,
            title=data.title.strip(),
            notes=data.notes,
            lead_source=data.lead_source,
            expiration_date=data.expiration_date,
            created_date=timezone.now(),
            items=_items(data.items),
        )
        QuoteWorkflow.apply_pricing(
            quote, QuoteWorkflow.price(quote.items, data.discount_percent, data.discount_amount)
        )
        saved = self.repo.save(quote)
        logger.info("quote.created", quote_id=str(saved.id), workspace_id=str(cmd.workspace_id))
        return saved


class UpdateQuoteHandler(CommandHandler[UpdateQuoteCommand]):
    """
    PATCH de orçamento. Mudança de status passa pela máquina de estados;
    edição de conteúdo só é permitida antes do aceite.
    """

    def __init__(self, repo: QuoteRepository):
        self.repo = repo

    def handle(self, cmd: UpdateQuoteCommand) -> QuoteEntity:
        data = cmd.payload
        sent = data.model_fields_set

        with transaction.atomic():
            quote = self.repo.find_by_id(cmd.workspace_id, cmd.quote_id, for_update=True)
            if quote is None:
                raise NotFoundError("Orçamento não encontrado", quote_id=str(cmd.quote_id))

            content = sent - {"status"}
            if content:
                QuoteWorkflow.ensure_editable(quote)
                for name in ("title", "notes", "lead_source", "expiration_date"):
                    if name in content:
                        setattr(quote, name, getattr(data, name))
                if "items" in content and data.items is not None:
                    quote.items = _items(data.items)
                if content & {"items", "discount_percent", "discount_amount"}:
                    pct = data.discount_percent if "discount_percent" in content else quote.discount_percent
                    amount = data.discount_amount if "discount_amount" in content else None
                    if "discount_amount" in content and "discount_percent" not in content:
                        pct = None
                    QuoteWorkflow.apply_pricing(quote, QuoteWorkflow.price(quote.items, pct, amount))

            if data.status is not None:
                QuoteWorkflow.transition(quote, data.status, timezone.now())

            saved = self.repo.save(quote)

        logger.info("quote.updated", quote_id=str(saved.id), status=saved.status.value)
        return saved


class DeleteQuoteHandler(CommandHandler[DeleteQuoteCommand]):
    def __init__(self, repo: QuoteRepository):
        self.repo = repo

    def handle(self, cmd: DeleteQuoteCommand) -> None:
        with transaction.atomic():
            quote = self.repo.find_by_id(cmd.workspace_id, cmd.quote_id, for_update=True)
            if quote is None:
                raise NotFoundError("Orçamento não encontrado", quote_id=str(cmd.quote_id))
            QuoteWorkflow.ensure_deletable(quote)
            self.repo.delete(cmd.workspace_id, cmd.quote_id)


class ConvertQuoteHandler(CommandHandler[ConvertQuoteCommand]):
    """
    Converte orçamento em venda pelo mesmo caminho de liquidação da criação de venda.
    Orçamento, venda, splits, parcelas e sessões mudam numa única transação;
    o lock na linha do orçamento impede conversão dupla concorrente.
    """

    def __init__(
        self,
        quote_repo: QuoteRepository,
        sale_repo: SaleRepository,
        settlement: SettlementService,
        dispatcher: EventDispatcher,
    ):
        self.quote_repo = quote_repo
        self.sale_repo = sale_repo
        self.settlement = settlement
        self.dispatcher = dispatcher

    def handle(self, cmd: ConvertQuoteCommand) -> SaleEntity:
        data = cmd.payload
        sale_date = data.sale_date or timezone.localdate()

        with transaction.atomic():
            quote = self.quote_repo.find_by_id(cmd.workspace_id, cmd.quote_id, for_update=True)
            if quote is None:
                raise NotFoundError("Orçamento não encontrado", quote_id=str(cmd.quote_id))
            QuoteWorkflow.ensure_convertible(quote)

            splits = self.settlement.build_splits(data.payment_splits)
            for split in splits:
                _fill_stubs(split, sale_date)
            fallbacks = self.settlement.settle(cmd.workspace_id, quote.final_amount, sale_date, splits)

            sale = self.sale_repo.create(
                SaleEntity(
                    id=uuid.uuid4(),
                    workspace_id=cmd.workspace_id,
                    patient_id=quote.patient_id,
                    sale_date=sale_date,
                    total_amount=quote.final_amount,
                    notes=data.notes or quote.notes or f"Convertido do orçamento: {quote.title}",
                    items=[
                        SaleItemEntity(
                            id=uuid.uuid4(),
                            procedure_id=i.procedure_id,
                            quantity=i.quantity,
                            unit_price=i.unit_price,
                        )
                        for i in quote.items
                        if i.procedure_id is not None
                    ],
                    payment_splits=splits,
                )
            )
            QuoteWorkflow.mark_converted(quote, sale.id, timezone.now())
            self.quote_repo.save(quote)

        SALES_CREATED.inc()
        logger.info(
            "quote.converted",
            quote_id=str(quote.id),
            sale_id=str(sale.id),
            workspace_id=str(cmd.workspace_id),
        )
        installments = sum(len(s.schedule) for s in splits)
        self.dispatcher.dispatch(
            SaleCreatedEvent(
                sale_id=sale.id,
                workspace_id=cmd.workspace_id,
                total_amount=sale.total_amount,
                installments=installments,
                fee_fallbacks=fallbacks,
            )
        )
        self.dispatcher.dispatch(
            QuoteConvertedEvent(quote_id=quote.id, sale_id=sale.id, workspace_id=cmd.workspace_id)
        )
        return sale


class GetQuoteHandler(QueryHandler[GetQuoteQuery, QuoteEntity]):
    def __init__(self, repo: QuoteRepository):
        self.repo = repo

    def handle(self, q: GetQuoteQuery) -> QuoteEntity:
        quote = self.repo.find_by_id(q.workspace_id, q.quote_id)
        if quote is None:
            raise NotFoundError("Orçamento não encontrado", quote_id=str(q.quote_id))
        return quote


class ListQuotesHandler(QueryHandler[ListQuotesQuery, PagedResult[QuoteEntity]]):
    def __init__(self, repo: QuoteRepository):
        self.repo = repo

    def handle(self, q: ListQuotesQuery) -> PagedResult[QuoteEntity]:
        filtros = dict(q.filtros)
        workspace_id = filtros.pop("workspace_id")
        return self.repo.list(workspace_id, filtros, page=q.page, page_size=q.page_size)
