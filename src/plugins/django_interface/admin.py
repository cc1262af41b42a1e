"""
Admin site registry
-------------------
Registra os modelos do motor financeiro de forma dinâmica.
"""

import structlog
from django.contrib import admin as django_admin

from . import models

logger = structlog.get_logger(__name__)

# ╭──────────────────────────────────────────────╮
# │ Configuração de cada ModelAdmin             │
# ╰──────────────────────────────────────────────╯
MODEL_ADMIN_REGISTRY: dict[type[models.models.Model], dict] = {
    # 0. Workspace
    models.Workspace: dict(
        list_display=("name", "created_at"),
        search_fields=("name",),
    ),
    models.WorkspaceMember: dict(
        list_display=("user", "workspace", "role", "is_active"),
        list_filter=("role", "is_active"),
    ),
    models.WorkspaceSettings: dict(
        list_display=("workspace", "tax_rate", "default_card_receiving_days"),
    ),
    # 1. Cadastros de apoio
    models.Patient: dict(
        list_display=("name", "workspace", "created_at"),
        search_fields=("name",),
    ),
    models.Procedure: dict(
        list_display=("name", "price", "is_active"),
        list_filter=("is_active",),
        search_fields=("name",),
    ),
    models.Collaborator: dict(
        list_display=("name", "role", "base_salary", "monthly_hours", "is_active"),
        list_filter=("role", "is_active"),
    ),
    # 2. Vendas & Parcelas
    models.Sale: dict(
        list_display=("patient", "sale_date", "total_amount", "payment_status"),
        list_filter=("payment_status", "sale_date"),
    ),
    models.PaymentSplit: dict(
        list_display=("sale", "payment_method", "amount", "installments", "card_operator"),
        list_filter=("payment_method",),
    ),
    models.PaymentInstallment: dict(
        list_display=("payment_split", "installment_number", "amount", "due_date", "status"),
        list_filter=("status",),
    ),
    models.CardFeeRule: dict(
        list_display=("card_operator", "card_type", "installment_count", "fee_percentage", "receiving_days", "is_active"),
        list_filter=("card_type", "is_active"),
        search_fields=("card_operator",),
    ),
    # 3. Custos
    models.Cost: dict(
        list_display=("description", "cost_type", "category", "recurrence_type", "is_active"),
        list_filter=("cost_type", "category", "recurrence_type", "is_active"),
        search_fields=("description",),
    ),
    models.CostInstallment: dict(
        list_display=("cost", "installment_number", "amount", "due_date", "status"),
        list_filter=("status",),
    ),
    # 4. Orçamentos
    models.Quote: dict(
        list_display=("title", "patient", "status", "final_amount", "created_date"),
        list_filter=("status",),
        search_fields=("title",),
    ),
}

# ╭──────────────────────────────────────────────╮
# │ Registro dinâmico                           │
# ╰──────────────────────────────────────────────╯
for model, opts in MODEL_ADMIN_REGISTRY.items():
    admin_class = type(f"{model.__name__}Admin", (django_admin.ModelAdmin,), opts)
    django_admin.site.register(model, admin_class)
    logger.debug("Registered model in admin", model=model.__name__)
