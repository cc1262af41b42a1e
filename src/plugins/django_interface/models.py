"""
Domínio financeiro → ORM.

⚑ Valores monetários sempre em DecimalField (2 casas)
⚑ Toda entidade de negócio pertence a um Workspace (escopo multi-tenant)
⚑ Invariantes de tabela via UK + CHECK; a transição de status de parcela
  é feita por UPDATE condicional nos repositórios
"""

from __future__ import annotations

import uuid

from django.conf import settings
from django.db import models
from django.db.models import CheckConstraint, Index, Q, UniqueConstraint
from django.utils import timezone

MONEY = {"max_digits": 14, "decimal_places": 2}


# ╭──────────────────────────────────────────────╮
# │ 0. Workspace / Tenant                       │
# ╰──────────────────────────────────────────────╯
class Workspace(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "workspaces"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class WorkspaceMember(models.Model):
    class Role(models.TextChoices):
        ADMIN = "ADMIN", "Administrador"
        MEMBER = "MEMBER", "Membro"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    workspace = models.ForeignKey(Workspace, on_delete=models.CASCADE, related_name="members")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="workspace_memberships")
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.MEMBER)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "workspace_members"
        constraints = [
            UniqueConstraint(fields=["workspace", "user"], name="uniq_workspace_member"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}@{self.workspace_id}"


class WorkspaceSettings(models.Model):
    """
    Configuração financeira do workspace.
    Campos nulos caem nos defaults globais (DEFAULT_TAX_RATE,
    DEFAULT_CARD_RECEIVING_DAYS).
    """
    workspace = models.OneToOneField(
        Workspace, on_delete=models.CASCADE, primary_key=True, related_name="financial_settings"
    )
    tax_rate = models.DecimalField(max_digits=5, decimal_places=4, null=True, blank=True)
    default_card_receiving_days = models.PositiveIntegerField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "workspace_settings"
        constraints = [
            CheckConstraint(
                condition=Q(tax_rate__isnull=True) | (Q(tax_rate__gte=0) & Q(tax_rate__lte=1)),
                name="ws_settings_tax_rate_range",
            ),
        ]

    def __str__(self) -> str:
        return f"Settings {self.workspace_id}"


# ╭──────────────────────────────────────────────╮
# │ 1. Cadastros de apoio (somente leitura)     │
# ╰──────────────────────────────────────────────╯
class Patient(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    workspace = models.ForeignKey(Workspace, on_delete=models.CASCADE, related_name="patients")
    name = models.CharField(max_length=255)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = "patients"
        indexes = [Index(fields=["workspace", "created_at"])]

    def __str__(self) -> str:
        return self.name


class Procedure(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    workspace = models.ForeignKey(Workspace, on_delete=models.CASCADE, related_name="procedures")
    name = models.CharField(max_length=255)
    price = models.DecimalField(**MONEY, default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "procedures"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Supply(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    workspace = models.ForeignKey(Workspace, on_delete=models.CASCADE, related_name="supplies")
    name = models.CharField(max_length=255)
    cost_per_unit = models.DecimalField(max_digits=14, decimal_places=4)

    class Meta:
        db_table = "supplies"

    def __str__(self) -> str:
        return self.name


class ProcedureSupply(models.Model):
    procedure = models.ForeignKey(Procedure, on_delete=models.CASCADE, related_name="supplies")
    supply = models.ForeignKey(Supply, on_delete=models.CASCADE, related_name="procedures")
    quantity = models.DecimalField(max_digits=10, decimal_places=3)

    class Meta:
        db_table = "procedure_supplies"
        constraints = [
            UniqueConstraint(fields=["procedure", "supply"], name="uniq_procedure_supply"),
        ]


class Collaborator(models.Model):
    class CommissionType(models.TextChoices):
        PERCENTAGE = "PERCENTAGE", "Percentual"
        FIXED = "FIXED", "Fixo"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    workspace = models.ForeignKey(Workspace, on_delete=models.CASCADE, related_name="collaborators")
    name = models.CharField(max_length=255)
    role = models.CharField(max_length=100)
    commission_type = models.CharField(max_length=20, choices=CommissionType.choices, default=CommissionType.PERCENTAGE)
    commission_value = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    base_salary = models.DecimalField(**MONEY, default=0)
    charges = models.DecimalField(**MONEY, default=0)
    monthly_hours = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = "collaborators"

    def __str__(self) -> str:
        return f"{self.name} ({self.role})"


class ProcedureCollaborator(models.Model):
    procedure = models.ForeignKey(Procedure, on_delete=models.CASCADE, related_name="collaborators")
    collaborator = models.ForeignKey(Collaborator, on_delete=models.CASCADE, related_name="procedures")

    class Meta:
        db_table = "procedure_collaborators"
        constraints = [
            UniqueConstraint(fields=["procedure", "collaborator"], name="uniq_procedure_collaborator"),
        ]


# ╭──────────────────────────────────────────────╮
# │ 2. Vendas                                   │
# ╰──────────────────────────────────────────────╯
class PaymentMethod(models.TextChoices):
    CASH_PIX = "CASH_PIX", "Dinheiro/Pix"
    CREDIT_CARD = "CREDIT_CARD", "Cartão de Crédito"
    DEBIT_CARD = "DEBIT_CARD", "Cartão de Débito"
    BANK_SLIP = "BANK_SLIP", "Boleto"


class Sale(models.Model):
    class PaymentStatus(models.TextChoices):
        PENDING = "PENDING", "Pendente"
        PARTIAL = "PARTIAL", "Parcial"
        PAID = "PAID", "Pago"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    workspace = models.ForeignKey(Workspace, on_delete=models.CASCADE, related_name="sales")
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name="sales")
    seller = models.ForeignKey(
        Collaborator, on_delete=models.SET_NULL, null=True, blank=True, related_name="sales_sold"
    )
    sale_date = models.DateField(default=timezone.localdate)
    total_amount = models.DecimalField(**MONEY)
    payment_status = models.CharField(max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)
    # legado: vendas anteriores aos splits guardavam um único método
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices, null=True, blank=True)
    notes = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "sales"
        ordering = ["-sale_date", "-created_at"]
        indexes = [Index(fields=["workspace", "sale_date"])]
        constraints = [
            CheckConstraint(condition=Q(total_amount__gt=0), name="sale_total_positive"),
        ]

    def __str__(self) -> str:
        return f"Venda {self.id} – {self.total_amount}"


class SaleItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name="items")
    procedure = models.ForeignKey(Procedure, on_delete=models.PROTECT, related_name="sale_items")
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(**MONEY)

    class Meta:
        db_table = "sale_items"


class ProcedureSession(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pendente"
        COMPLETED = "COMPLETED", "Concluída"
        CANCELLED = "CANCELLED", "Cancelada"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name="sessions")
    procedure = models.ForeignKey(Procedure, on_delete=models.PROTECT, related_name="sessions")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    scheduled_date = models.DateTimeField(null=True, blank=True)
    completed_date = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "procedure_sessions"


class PaymentSplit(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name="payment_splits")
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    amount = models.DecimalField(**MONEY)
    installments = models.PositiveIntegerField(default=1)
    card_operator = models.CharField(max_length=100, null=True, blank=True)

    class Meta:
        db_table = "payment_splits"
        constraints = [
            CheckConstraint(condition=Q(installments__gte=1), name="split_installments_gte_1"),
            CheckConstraint(condition=Q(amount__gt=0), name="split_amount_positive"),
        ]


class PaymentInstallment(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pendente"
        PAID = "PAID", "Pago"
        OVERDUE = "OVERDUE", "Vencido"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    payment_split = models.ForeignKey(PaymentSplit, on_delete=models.CASCADE, related_name="installment_details")
    installment_number = models.PositiveIntegerField()
    amount = models.DecimalField(**MONEY)                       # líquido (pós-taxa)
    gross_amount = models.DecimalField(**MONEY)
    fee_amount = models.DecimalField(**MONEY, default=0)
    due_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    paid_date = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(null=True, blank=True)

    class Meta:
        db_table = "payment_installments"
        ordering = ["installment_number"]
        indexes = [Index(fields=["status", "due_date"])]
        constraints = [
            UniqueConstraint(fields=["payment_split", "installment_number"], name="uniq_split_installment_number"),
            CheckConstraint(condition=Q(installment_number__gte=1), name="installment_number_gte_1"),
        ]


# ╭──────────────────────────────────────────────╮
# │ 3. Taxas de cartão                          │
# ╰──────────────────────────────────────────────╯
class CardFeeRule(models.Model):
    class CardType(models.TextChoices):
        CREDIT = "CREDIT", "Crédito"
        DEBIT = "DEBIT", "Débito"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    workspace = models.ForeignKey(Workspace, on_delete=models.CASCADE, related_name="card_fee_rules")
    card_operator = models.CharField(max_length=100)
    card_type = models.CharField(max_length=10, choices=CardType.choices)
    installment_count = models.PositiveIntegerField()
    fee_percentage = models.DecimalField(max_digits=5, decimal_places=2)
    receiving_days = models.PositiveIntegerField(default=30)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "card_fee_rules"
        ordering = ["card_operator", "installment_count"]
        constraints = [
            UniqueConstraint(
                fields=["workspace", "card_operator", "card_type", "installment_count"],
                condition=Q(is_active=True),
                name="uniq_active_card_fee_tier",
            ),
            CheckConstraint(condition=Q(installment_count__gte=1), name="fee_rule_count_gte_1"),
            CheckConstraint(condition=Q(fee_percentage__gte=0), name="fee_rule_pct_gte_0"),
        ]

    def __str__(self) -> str:
        return f"{self.card_operator} {self.card_type} {self.installment_count}x – {self.fee_percentage}%"


# ╭──────────────────────────────────────────────╮
# │ 4. Custos                                   │
# ╰──────────────────────────────────────────────╯
class Cost(models.Model):
    class CostType(models.TextChoices):
        FIXED = "FIXED", "Fixo"
        PERCENTAGE = "PERCENTAGE", "Percentual"

    class Category(models.TextChoices):
        OPERATIONAL = "OPERATIONAL", "Operacional"
        TAX = "TAX", "Impostos"
        COMMISSION = "COMMISSION", "Comissões"
        CARD = "CARD", "Cartão"
        CUSTOM = "CUSTOM", "Personalizado"

    class RecurrenceType(models.TextChoices):
        NONE = "NONE", "Avulso"
        INDEFINITE = "INDEFINITE", "Recorrente"
        INSTALLMENTS = "INSTALLMENTS", "Parcelado"

    class Frequency(models.TextChoices):
        MONTHLY = "MONTHLY", "Mensal"
        QUARTERLY = "QUARTERLY", "Trimestral"
        YEARLY = "YEARLY", "Anual"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    workspace = models.ForeignKey(Workspace, on_delete=models.CASCADE, related_name="costs")
    description = models.CharField(max_length=255)
    cost_type = models.CharField(max_length=20, choices=CostType.choices)
    category = models.CharField(max_length=20, choices=Category.choices, default=Category.OPERATIONAL)
    custom_category = models.CharField(max_length=100, null=True, blank=True)
    fixed_value = models.DecimalField(**MONEY, null=True, blank=True)
    percentage = models.DecimalField(max_digits=6, decimal_places=3, null=True, blank=True)
    recurrence_type = models.CharField(max_length=20, choices=RecurrenceType.choices, default=RecurrenceType.NONE)
    recurrence_frequency = models.CharField(max_length=20, choices=Frequency.choices, null=True, blank=True)
    total_installments = models.PositiveIntegerField(null=True, blank=True)
    first_due_date = models.DateField(null=True, blank=True)
    payment_date = models.DateField(null=True, blank=True)
    card_operator = models.CharField(max_length=100, null=True, blank=True)
    receiving_days = models.PositiveIntegerField(null=True, blank=True)
    # recorrente fixo: próxima ocorrência a ser lançada como custo avulso
    next_replication_date = models.DateField(null=True, blank=True, db_index=True)
    replicated_from = models.ForeignKey(
        "self", on_delete=models.SET_NULL, null=True, blank=True, related_name="replicas"
    )
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "costs"
        ordering = ["-created_at"]
        indexes = [Index(fields=["workspace", "is_active", "payment_date"])]

    def __str__(self) -> str:
        return self.description

    @property
    def is_recurring(self) -> bool:
        return self.recurrence_type != self.RecurrenceType.NONE


class CostInstallment(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pendente"
        PAID = "PAID", "Pago"
        OVERDUE = "OVERDUE", "Vencido"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    cost = models.ForeignKey(Cost, on_delete=models.CASCADE, related_name="installments")
    installment_number = models.PositiveIntegerField()
    amount = models.DecimalField(**MONEY)
    due_date = models.DateField()
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    paid_date = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "cost_installments"
        ordering = ["installment_number"]
        constraints = [
            UniqueConstraint(fields=["cost", "installment_number"], name="uniq_cost_installment_number"),
        ]


# ╭──────────────────────────────────────────────╮
# │ 5. Orçamentos                               │
# ╰──────────────────────────────────────────────╯
class Quote(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pendente"
        SENT = "SENT", "Enviado"
        ACCEPTED = "ACCEPTED", "Aceito"
        REJECTED = "REJECTED", "Recusado"
        EXPIRED = "EXPIRED", "Expirado"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    workspace = models.ForeignKey(Workspace, on_delete=models.CASCADE, related_name="quotes")
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name="quotes")
    title = models.CharField(max_length=255)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    total_amount = models.DecimalField(**MONEY, default=0)
    discount_percent = models.DecimalField(max_digits=7, decimal_places=4, default=0)
    discount_amount = models.DecimalField(**MONEY, default=0)
    final_amount = models.DecimalField(**MONEY, default=0)
    notes = models.TextField(null=True, blank=True)
    lead_source = models.CharField(max_length=100, null=True, blank=True)
    created_date = models.DateTimeField(default=timezone.now, db_index=True)
    expiration_date = models.DateField(null=True, blank=True)
    sent_date = models.DateTimeField(null=True, blank=True)
    accepted_date = models.DateTimeField(null=True, blank=True)
    rejected_date = models.DateTimeField(null=True, blank=True)
    sale = models.OneToOneField(Sale, on_delete=models.SET_NULL, null=True, blank=True, related_name="quote")
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "quotes"
        ordering = ["-created_date"]
        indexes = [Index(fields=["workspace", "created_date"])]

    def __str__(self) -> str:
        return self.title


class QuoteItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    quote = models.ForeignKey(Quote, on_delete=models.CASCADE, related_name="items")
    procedure = models.ForeignKey(Procedure, on_delete=models.SET_NULL, null=True, blank=True, related_name="quote_items")
    description = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(**MONEY)
    total_price = models.DecimalField(**MONEY)

    class Meta:
        db_table = "quote_items"
