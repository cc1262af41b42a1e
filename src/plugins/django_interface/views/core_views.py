# ╭────────────────────────────────────────────────────────────────────────────╮
# │  ViewSets REST – Motor financeiro (vendas, parcelas, custos, orçamentos)   │
# │                                                                            │
# │  • Workspace       → resolvido a partir do usuário autenticado             │
# │  • Paginação DRY   → mix-in centralizado                                   │
# │  • Cache           → versão por workspace, incrementada a cada escrita     │
# │  • Métrica trace   → decorator `track_http`                                │
# ╰────────────────────────────────────────────────────────────────────────────╯
from __future__ import annotations

import math
from dataclasses import asdict
from typing import Any

from clinic_core.adapters.context.request_context import bind_workspace
from clinic_core.adapters.observability.decorators import track_http
from clinic_core.core.application.cqrs import CommandBusImpl, QueryBusImpl
from django.core.cache import cache
from django.utils import timezone
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from financial_engine.adapters.config.composition_root import container
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
from financial_engine.core.application.commands.quote_commands import (
    ConvertQuoteCommand,
    CreateQuoteCommand,
    DeleteQuoteCommand,
    UpdateQuoteCommand,
)
from financial_engine.core.application.commands.sale_commands import (
    CreateSaleCommand,
    DeleteSaleCommand,
    SettleInstallmentCommand,
)
from financial_engine.core.application.dtos.card_fee_dtos import CreateCardFeeRulesDTO
from financial_engine.core.application.dtos.cost_dtos import CostDTO
from financial_engine.core.application.dtos.quote_dtos import ConvertQuoteDTO, CreateQuoteDTO, UpdateQuoteDTO
from financial_engine.core.application.dtos.sale_dtos import CreateSaleDTO
from financial_engine.core.application.queries.cost_queries import (
    GetCostQuery,
    GetCostStatsQuery,
    GetPendingRecurrencesQuery,
    GetVariableCostSummaryQuery,
    ListCardFeeRulesQuery,
    ListCostsQuery,
)
from financial_engine.core.application.queries.quote_queries import GetQuoteQuery, ListQuotesQuery
from financial_engine.core.application.queries.sale_queries import GetSaleQuery, ListSalesQuery
from financial_engine.core.domain.entities.enums import CardType
from financial_engine.core.domain.events.exceptions import NotFoundError, ValidationFailedError

from ..serializers.core_serializers import (
    CardFeeRuleSerializer,
    CostSerializer,
    PaymentInstallmentSerializer,
    QuoteSerializer,
    SaleSerializer,
)

# ───────────────────────────────  CQRS Buses  ────────────────────────────────
command_bus: CommandBusImpl = container.command_bus()
query_bus: QueryBusImpl = container.query_bus()
tenant_resolver = container.tenant_resolver()

# ───────────────────────────────  Constantes  ────────────────────────────────
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


# ╭──────────────────────────────────────────────────────────────────────────╮
# │ Helper mix-in – paginação + filtros + workspace                          │
# ╰──────────────────────────────────────────────────────────────────────────╯
class PaginationFilterMixin:
    """Remove page/page_size do QueryDict e devolve filtros limpos."""

    @staticmethod
    def _pagination(request) -> tuple[int, int]:
        try:
            page = max(int(request.query_params.get("page", 1)), 1)
            size = int(request.query_params.get("page_size", DEFAULT_PAGE_SIZE))
        except ValueError:
            page, size = 1, DEFAULT_PAGE_SIZE
        return page, min(max(size, 1), MAX_PAGE_SIZE)

    @staticmethod
    def _filters(request) -> dict[str, Any]:
        params = request.query_params.copy()          # QueryDict mutável
        params.pop("page", None)
        params.pop("page_size", None)

        clean: dict[str, Any] = {}
        for key in params:
            values = params.getlist(key)
            clean[key] = values[0] if len(values) == 1 else values

        # o front envia camelCase nos intervalos de data
        for camel, snake in (("startDate", "start_date"), ("endDate", "end_date")):
            if camel in clean:
                clean.setdefault(snake, clean.pop(camel))
        return clean


class WorkspaceMixin:
    """Todo acesso é escopado pelo workspace do usuário autenticado."""

    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = r"[0-9a-fA-F-]{36}"

    @staticmethod
    def _workspace(request):
        workspace_id = tenant_resolver.resolve(request.user)
        if workspace_id is None:
            raise NotFoundError("Workspace não encontrado")
        bind_workspace(workspace_id)
        return workspace_id


def _paged_payload(res, serializer_cls, page: int, page_size: int) -> dict[str, Any]:
    total_pages = math.ceil(res.total / page_size) if page_size > 0 else 1
    return {
        "results": serializer_cls(res.items, many=True).data,
        "total_items": res.total,
        "page": page,
        "page_size": page_size,
        "total_pages": total_pages,
        "items_on_page": len(res.items),
    }


# ===========================================================================
# Cache Helper: chave versionada por workspace
# ===========================================================================
def _version_key(workspace_id) -> str:
    return f"financial_v_ws_{workspace_id}"


def workspace_cache_key(prefix: str, workspace_id, request) -> str:
    """
    Gera uma chave do tipo:
      {prefix}_ws_{id}_v{version}_{params}
    onde `version` é um inteiro em cache incrementado a cada escrita
    no workspace; relatórios antigos simplesmente deixam de ser lidos.
    """
    version = cache.get(_version_key(workspace_id)) or 0
    params = "&".join(f"{k}={v}" for k, v in sorted(request.query_params.items()))
    return f"{prefix}_ws_{workspace_id}_v{version}_{params}"


def bump_workspace_cache(workspace_id) -> None:
    key = _version_key(workspace_id)
    try:
        cache.incr(key)
    except ValueError:
        cache.set(key, 1, None)


# ╭──────────────────────────────────────────────╮
# │  Vendas                                      │
# ╰──────────────────────────────────────────────╯
class SaleViewSet(WorkspaceMixin, PaginationFilterMixin, viewsets.ViewSet):

    @track_http("SaleViewSet_list")
    def list(self, request):
        filtros = self._filters(request)
        filtros["workspace_id"] = self._workspace(request)
        page, page_size = self._pagination(request)

        res = query_bus.dispatch(ListSalesQuery(filtros=filtros, page=page, page_size=page_size))
        return Response(_paged_payload(res, SaleSerializer, page, page_size), status=status.HTTP_200_OK)

    @track_http("SaleViewSet_retrieve")
    def retrieve(self, request, pk=None):
        ws = self._workspace(request)
        sale = query_bus.dispatch(GetSaleQuery(filtros={}, workspace_id=ws, sale_id=pk))
        return Response(SaleSerializer(sale).data)

    @track_http("SaleViewSet_create")
    def create(self, request):
        ws = self._workspace(request)
        sale = command_bus.dispatch(CreateSaleCommand(workspace_id=ws, payload=CreateSaleDTO(**request.data)))
        bump_workspace_cache(ws)
        return Response(SaleSerializer(sale).data, status=status.HTTP_201_CREATED)

    @track_http("SaleViewSet_destroy")
    def destroy(self, request, pk=None):
        ws = self._workspace(request)
        command_bus.dispatch(DeleteSaleCommand(workspace_id=ws, sale_id=pk))
        bump_workspace_cache(ws)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ───────────────────────────────────────────────────────────────────────────
class InstallmentViewSet(WorkspaceMixin, viewsets.ViewSet):

    @action(detail=True, methods=["post"])
    @track_http("InstallmentViewSet_settle")
    def settle(self, request, pk=None):
        """Liquida a parcela (PENDING/OVERDUE → PAID); segunda tentativa ⇒ 409."""
        ws = self._workspace(request)
        inst = command_bus.dispatch(SettleInstallmentCommand(workspace_id=ws, installment_id=pk))
        bump_workspace_cache(ws)
        return Response(PaymentInstallmentSerializer(inst).data)


# ╭──────────────────────────────────────────────╮
# │  Custos                                      │
# ╰──────────────────────────────────────────────╯
class CostViewSet(WorkspaceMixin, viewsets.ViewSet):

    @track_http("CostViewSet_list")
    def list(self, request):
        ws = self._workspace(request)
        costs = query_bus.dispatch(ListCostsQuery(filtros={}, workspace_id=ws))
        return Response(CostSerializer(costs, many=True).data)

    @track_http("CostViewSet_retrieve")
    def retrieve(self, request, pk=None):
        ws = self._workspace(request)
        cost = query_bus.dispatch(GetCostQuery(filtros={}, workspace_id=ws, cost_id=pk))
        return Response(CostSerializer(cost).data)

    @track_http("CostViewSet_create")
    def create(self, request):
        ws = self._workspace(request)
        cost = command_bus.dispatch(CreateCostCommand(workspace_id=ws, payload=CostDTO(**request.data)))
        bump_workspace_cache(ws)
        return Response(CostSerializer(cost).data, status=status.HTTP_201_CREATED)

    @track_http("CostViewSet_update")
    def update(self, request, pk=None):
        ws = self._workspace(request)
        cost = command_bus.dispatch(
            UpdateCostCommand(workspace_id=ws, cost_id=pk, payload=CostDTO(**request.data))
        )
        bump_workspace_cache(ws)
        return Response(CostSerializer(cost).data)

    @track_http("CostViewSet_destroy")
    def destroy(self, request, pk=None):
        ws = self._workspace(request)
        command_bus.dispatch(DeleteCostCommand(workspace_id=ws, cost_id=pk))
        bump_workspace_cache(ws)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"])
    @track_http("CostViewSet_stats")
    def stats(self, request):
        ws = self._workspace(request)
        return Response(asdict(query_bus.dispatch(GetCostStatsQuery(filtros={}, workspace_id=ws))))

    @action(detail=False, methods=["get"])
    @track_http("CostViewSet_variable")
    def variable(self, request):
        ws = self._workspace(request)
        res = query_bus.dispatch(GetVariableCostSummaryQuery(filtros={}, workspace_id=ws))
        return Response(asdict(res))

    @action(detail=False, methods=["get"], url_path="recurrence/pending")
    @track_http("CostViewSet_recurrence_pending")
    def recurrence_pending(self, request):
        ws = self._workspace(request)
        res = query_bus.dispatch(
            GetPendingRecurrencesQuery(filtros={}, workspace_id=ws, reference_date=timezone.localdate())
        )
        return Response({
            "pending": CostSerializer(res.pending, many=True).data,
            "pendingCount": len(res.pending),
            "upcoming": CostSerializer(res.upcoming, many=True).data,
            "upcomingCount": len(res.upcoming),
            "totalRecurring": res.total_recurring,
        })

    @action(detail=False, methods=["post"], url_path="recurrence/process")
    @track_http("CostViewSet_recurrence_process")
    def recurrence_process(self, request):
        ws = self._workspace(request)
        res = command_bus.dispatch(
            ReplicateRecurringCostsCommand(reference_date=timezone.localdate(), workspace_id=ws)
        )
        bump_workspace_cache(ws)
        return Response(asdict(res))


# ───────────────────────────────────────────────────────────────────────────
class CardFeeRuleViewSet(WorkspaceMixin, viewsets.ViewSet):

    @track_http("CardFeeRuleViewSet_list")
    def list(self, request):
        ws = self._workspace(request)
        rules = query_bus.dispatch(ListCardFeeRulesQuery(filtros={}, workspace_id=ws))
        return Response(CardFeeRuleSerializer(rules, many=True).data)

    @track_http("CardFeeRuleViewSet_create")
    def create(self, request):
        ws = self._workspace(request)
        rules = command_bus.dispatch(
            CreateCardFeeRulesCommand(workspace_id=ws, payload=CreateCardFeeRulesDTO(**request.data))
        )
        bump_workspace_cache(ws)
        return Response(CardFeeRuleSerializer(rules, many=True).data, status=status.HTTP_201_CREATED)

    @track_http("CardFeeRuleViewSet_destroy")
    def destroy(self, request, pk=None):
        ws = self._workspace(request)
        command_bus.dispatch(DeactivateCardFeeRuleCommand(workspace_id=ws, rule_id=pk))
        bump_workspace_cache(ws)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["patch", "delete"])
    @track_http("CardFeeRuleViewSet_group")
    def group(self, request):
        """PATCH substitui as faixas de uma operadora/tipo; DELETE (?operator=&type=) desativa todas."""
        ws = self._workspace(request)
        if request.method == "PATCH":
            rules = command_bus.dispatch(
                ReplaceCardFeeGroupCommand(workspace_id=ws, payload=CreateCardFeeRulesDTO(**request.data))
            )
            bump_workspace_cache(ws)
            return Response(CardFeeRuleSerializer(rules, many=True).data)

        operator = request.query_params.get("operator")
        raw_type = request.query_params.get("type")
        if not operator or not raw_type:
            raise ValidationFailedError("Operadora e tipo do cartão são obrigatórios", fields=["operator", "type"])
        try:
            card_type = CardType(raw_type)
        except ValueError as exc:
            raise ValidationFailedError("Tipo de cartão inválido", field="type", value=raw_type) from exc

        count = command_bus.dispatch(
            DeactivateCardFeeGroupCommand(workspace_id=ws, card_operator=operator, card_type=card_type)
        )
        bump_workspace_cache(ws)
        return Response({"message": f"{count} taxa(s) desativada(s)", "deactivated": count})


# ╭──────────────────────────────────────────────╮
# │  Orçamentos                                  │
# ╰──────────────────────────────────────────────╯
class QuoteViewSet(WorkspaceMixin, PaginationFilterMixin, viewsets.ViewSet):

    @track_http("QuoteViewSet_list")
    def list(self, request):
        filtros = self._filters(request)
        filtros["workspace_id"] = self._workspace(request)
        page, page_size = self._pagination(request)

        res = query_bus.dispatch(ListQuotesQuery(filtros=filtros, page=page, page_size=page_size))
        return Response(_paged_payload(res, QuoteSerializer, page, page_size), status=status.HTTP_200_OK)

    @track_http("QuoteViewSet_retrieve")
    def retrieve(self, request, pk=None):
        ws = self._workspace(request)
        quote = query_bus.dispatch(GetQuoteQuery(filtros={}, workspace_id=ws, quote_id=pk))
        return Response(QuoteSerializer(quote).data)

    @track_http("QuoteViewSet_create")
    def create(self, request):
        ws = self._workspace(request)
        quote = command_bus.dispatch(CreateQuoteCommand(workspace_id=ws, payload=CreateQuoteDTO(**request.data)))
        bump_workspace_cache(ws)
        return Response(QuoteSerializer(quote).data, status=status.HTTP_201_CREATED)

    @track_http("QuoteViewSet_update")
    def update(self, request, pk=None):
        ws = self._workspace(request)
        quote = command_bus.dispatch(
            UpdateQuoteCommand(workspace_id=ws, quote_id=pk, payload=UpdateQuoteDTO(**request.data))
        )
        bump_workspace_cache(ws)
        return Response(QuoteSerializer(quote).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    @track_http("QuoteViewSet_destroy")
    def destroy(self, request, pk=None):
        ws = self._workspace(request)
        command_bus.dispatch(DeleteQuoteCommand(workspace_id=ws, quote_id=pk))
        bump_workspace_cache(ws)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    @track_http("QuoteViewSet_convert")
    def convert(self, request, pk=None):
        ws = self._workspace(request)
        sale = command_bus.dispatch(
            ConvertQuoteCommand(workspace_id=ws, quote_id=pk, payload=ConvertQuoteDTO(**request.data))
        )
        bump_workspace_cache(ws)
        return Response(
            {"message": "Orçamento convertido em venda com sucesso", "sale": SaleSerializer(sale).data},
            status=status.HTTP_201_CREATED,
        )

