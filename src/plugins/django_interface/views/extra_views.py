from dataclasses import asdict

from django.core.cache import cache
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from clinic_core.adapters.observability.decorators import track_http
from financial_engine.adapters.config.composition_root import container
from financial_engine.core.application.queries.report_queries import (
    GetCashFlowQuery,
    GetCommissionReportQuery,
    GetDashboardStatsQuery,
)
from plugins.django_interface.views.core_views import (
    PaginationFilterMixin,
    WorkspaceMixin,
    workspace_cache_key,
)

query_bus = container.query_bus()

# ─── TTLs em segundos ───────────────────────────────────────────────────────
CASHFLOW_TTL   = 60    # relatório de fluxo de caixa
DASHBOARD_TTL  = 60    # indicadores do dashboard, muda com frequência moderada
COMMISSION_TTL = 120   # comissões por vendedor


class _CachedReportView(WorkspaceMixin, PaginationFilterMixin, APIView):
    """
    GET cacheado por workspace + query string. A chave carrega a versão do
    workspace, incrementada pelas escritas em vendas, custos e orçamentos.
    """
    cache_prefix: str = ""
    ttl: int = 60

    def build_query(self, workspace_id, filtros):
        raise NotImplementedError

    def get(self, request):
        ws = self._workspace(request)
        key = workspace_cache_key(self.cache_prefix, ws, request)
        payload = cache.get(key)
        if payload is None:
            res = query_bus.dispatch(self.build_query(ws, self._filters(request)))
            payload = asdict(res)
            cache.set(key, payload, self.ttl)
        return Response(payload)


# ╭──────────────────────────────────────────────╮
# │      FLUXO DE CAIXA                          │
# ╰──────────────────────────────────────────────╯
class CashFlowView(_CachedReportView):
    """GET /api/cashflow?period=month|week|...&startDate=&endDate="""
    cache_prefix = "cashflow"
    ttl = CASHFLOW_TTL

    def build_query(self, workspace_id, filtros):
        return GetCashFlowQuery(filtros=filtros, workspace_id=workspace_id)

    @track_http("CashFlowView_get")
    def get(self, request):
        return super().get(request)


# ╭──────────────────────────────────────────────╮
# │      DASHBOARD                               │
# ╰──────────────────────────────────────────────╯
class DashboardStatsView(_CachedReportView):
    cache_prefix = "dashboard_stats"
    ttl = DASHBOARD_TTL

    def build_query(self, workspace_id, filtros):
        return GetDashboardStatsQuery(filtros=filtros, workspace_id=workspace_id)

    @track_http("DashboardStatsView_get")
    def get(self, request):
        return super().get(request)


# ╭──────────────────────────────────────────────╮
# │      COMISSÕES                               │
# ╰──────────────────────────────────────────────╯
class CommissionReportView(_CachedReportView):
    """GET /api/commissions?startDate=&endDate=&sellerId="""
    cache_prefix = "commissions"
    ttl = COMMISSION_TTL

    def build_query(self, workspace_id, filtros):
        return GetCommissionReportQuery(filtros=filtros, workspace_id=workspace_id)

    @track_http("CommissionReportView_get")
    def get(self, request):
        return super().get(request)


class HealthCheckView(APIView):
    """
    Rota GET /api/healthz: retorna status 200 se a API estiver viva.
    """
    permission_classes = []
    authentication_classes = []

    def get(self, request):
        return Response({"status": "ok"}, status=status.HTTP_200_OK)
