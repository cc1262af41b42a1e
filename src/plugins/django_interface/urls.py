from django.conf import settings
from django.urls import include, path
from drf_yasg import openapi
from drf_yasg.views import get_schema_view
from rest_framework import permissions

from .routers import build_router
from .views.extra_views import CashFlowView, CommissionReportView, DashboardStatsView, HealthCheckView

swagger_permissions = [permissions.IsAdminUser] if not settings.DEBUG else [permissions.AllowAny]

schema_view = get_schema_view(
    openapi.Info(
        title="Gestão Clínica – Motor Financeiro",
        default_version="v1",
        description="Vendas, parcelas, custos, orçamentos e fluxo de caixa (CQRS + Bus)",
    ),
    public=settings.DEBUG,
    permission_classes=swagger_permissions,
)

router = build_router()

urlpatterns = [
    path("healthz", HealthCheckView.as_view(), name="healthz"),
    path("cashflow", CashFlowView.as_view(), name="cashflow"),
    path("stats/dashboard", DashboardStatsView.as_view(), name="dashboard-stats"),
    path("commissions", CommissionReportView.as_view(), name="commissions"),

    path("swagger/",     schema_view.with_ui("swagger", cache_timeout=0), name="swagger-ui"),
    path("swagger.json", schema_view.without_ui(cache_timeout=0),         name="swagger-json"),
    path("redoc/",       schema_view.with_ui("redoc",   cache_timeout=0), name="redoc-ui"),

    # rotas CRUD
    path("", include(router.urls)),
]
