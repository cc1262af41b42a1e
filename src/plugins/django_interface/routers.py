from rest_framework.routers import DefaultRouter

from .views.core_views import (
    CardFeeRuleViewSet,
    CostViewSet,
    InstallmentViewSet,
    QuoteViewSet,
    SaleViewSet,
)

# lista de (rota, ViewSet)
RESOURCES = [
    ("sales",         SaleViewSet),
    ("installments",  InstallmentViewSet),
    ("costs",         CostViewSet),
    ("card-fees",     CardFeeRuleViewSet),
    ("quotes",        QuoteViewSet),
]

def build_router() -> DefaultRouter:
    router = DefaultRouter(trailing_slash=False)
    for prefix, viewset in RESOURCES:
        router.register(prefix, viewset, basename=prefix.replace('-', '_'))
    return router
