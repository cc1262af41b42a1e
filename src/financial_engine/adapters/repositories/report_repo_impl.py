from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from django.db.models import Count, Sum

from financial_engine.core.domain.entities.enums import InstallmentStatus, PaymentMethod
from financial_engine.core.domain.repositories.report_repository import FinancialReportRepository
from financial_engine.core.domain.services.cashflow_aggregator import Receivable, SplitMix
from financial_engine.core.domain.services.commission_calculator import SellerSale
from financial_engine.core.domain.services.revenue_engine import (
    CollaboratorCost,
    CommissionLine,
    PendingReceivable,
    RevenueItem,
    RevenueSale,
    RevenueSplit,
    SupplyLine,
)
from plugins.django_interface.models import Collaborator as CollaboratorModel
from plugins.django_interface.models import Patient as PatientModel
from plugins.django_interface.models import PaymentInstallment as PaymentInstallmentModel
from plugins.django_interface.models import PaymentSplit as PaymentSplitModel
from plugins.django_interface.models import ProcedureSession as ProcedureSessionModel
from plugins.django_interface.models import Quote as QuoteModel
from plugins.django_interface.models import Sale as SaleModel

ZERO = Decimal("0")


class FinancialReportRepoImpl(FinancialReportRepository):
    """Consultas de leitura do fluxo de caixa e do dashboard, convertidas em read models do domínio."""

    # ─────────────────────────── FLUXO DE CAIXA ───────────────────────────
    def receivables(self, workspace_id: uuid.UUID, start: date, end: date) -> list[Receivable]:
        qs = (
            PaymentInstallmentModel.objects.filter(
                payment_split__sale__workspace_id=workspace_id,
                due_date__range=(start, end),
            )
            .select_related("payment_split__sale__patient")
            .prefetch_related("payment_split__sale__items__procedure")
            .order_by("due_date", "installment_number")
        )
        out = []
        for inst in qs:
            split = inst.payment_split
            sale = split.sale
            names = ", ".join(i.procedure.name for i in sale.items.all())
            out.append(Receivable(
                id=inst.id,
                date=inst.due_date,
                amount=inst.amount,
                patient_name=sale.patient.name,
                procedure_name=names or "N/A",
                payment_method=PaymentMethod(split.payment_method),
                installment_number=inst.installment_number,
                total_installments=split.installments,
                status=inst.status,
            ))
        return out

    def sales_total(self, workspace_id: uuid.UUID, start: date, end: date) -> Decimal:
        agg = SaleModel.objects.filter(
            workspace_id=workspace_id, sale_date__range=(start, end)
        ).aggregate(total=Sum("total_amount"))
        return agg["total"] or ZERO

    def split_mix(self, workspace_id: uuid.UUID, start: date, end: date) -> list[SplitMix]:
        qs = PaymentSplitModel.objects.filter(
            sale__workspace_id=workspace_id, sale__sale_date__range=(start, end)
        ).values_list("payment_method", "amount", "installments")
        return [SplitMix(PaymentMethod(m), amount, n) for m, amount, n in qs]

    # ─────────────────────────── DASHBOARD ───────────────────────────
    def revenue_sales(self, workspace_id: uuid.UUID, start: date, end: date) -> list[RevenueSale]:
        qs = (
            SaleModel.objects.filter(workspace_id=workspace_id, sale_date__range=(start, end))
            .prefetch_related(
                "items__procedure__supplies__supply",
                "items__procedure__collaborators__collaborator",
                "payment_splits",
                "sessions",
            )
        )
        out = []
        for sale in qs:
            items = []
            for item in sale.items.all():
                proc = item.procedure
                items.append(RevenueItem(
                    procedure_id=proc.id,
                    procedure_name=proc.name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    supplies=tuple(
                        SupplyLine(cost_per_unit=ps.supply.cost_per_unit, quantity=ps.quantity)
                        for ps in proc.supplies.all()
                    ),
                    commissions=tuple(
                        CommissionLine(
                            commission_type=pc.collaborator.commission_type,
                            commission_value=pc.collaborator.commission_value,
                        )
                        for pc in proc.collaborators.all()
                    ),
                ))
            out.append(RevenueSale(
                total_amount=sale.total_amount,
                items=tuple(items),
                splits=tuple(
                    RevenueSplit(
                        payment_method=PaymentMethod(s.payment_method),
                        amount=s.amount,
                        installments=s.installments,
                        card_operator=s.card_operator,
                    )
                    for s in sale.payment_splits.all()
                ),
                session_statuses=tuple(s.status for s in sale.sessions.all()),
                legacy_payment_method=sale.payment_method,
            ))
        return out

    def session_status_counts(self, workspace_id: uuid.UUID) -> dict[str, int]:
        rows = (
            ProcedureSessionModel.objects.filter(sale__workspace_id=workspace_id)
            .values("status")
            .annotate(n=Count("id"))
        )
        return {r["status"]: r["n"] for r in rows}

    def collaborator_costs(self, workspace_id: uuid.UUID) -> list[CollaboratorCost]:
        qs = CollaboratorModel.objects.filter(workspace_id=workspace_id, is_active=True)
        return [
            CollaboratorCost(
                role=c.role,
                base_salary=c.base_salary,
                charges=c.charges,
                monthly_hours=c.monthly_hours,
            )
            for c in qs
        ]

    def quote_statuses(self, workspace_id: uuid.UUID, start: date, end: date) -> list[str]:
        return list(
            QuoteModel.objects.filter(
                workspace_id=workspace_id,
                created_date__date__range=(start, end),
            ).values_list("status", flat=True)
        )

    def pending_receivables(self, workspace_id: uuid.UUID, from_date: date) -> list[PendingReceivable]:
        qs = PaymentInstallmentModel.objects.filter(
            payment_split__sale__workspace_id=workspace_id,
            status=InstallmentStatus.PENDING.value,
            due_date__gte=from_date,
        ).values_list("due_date", "amount")
        return [PendingReceivable(due_date=d, amount=a) for d, a in qs]

    def patient_counts(self, workspace_id: uuid.UUID, start: date, end: date) -> tuple[int, int]:
        qs = PatientModel.objects.filter(workspace_id=workspace_id)
        return qs.filter(created_at__date__range=(start, end)).count(), qs.count()

    # ─────────────────────────── COMISSÕES ───────────────────────────
    def seller_sales(
        self,
        workspace_id: uuid.UUID,
        start: date | None = None,
        end: date | None = None,
        seller_id: uuid.UUID | None = None,
    ) -> list[SellerSale]:
        qs = SaleModel.objects.filter(workspace_id=workspace_id, seller__isnull=False)
        if start and end:
            qs = qs.filter(sale_date__range=(start, end))
        if seller_id:
            qs = qs.filter(seller_id=seller_id)
        qs = qs.select_related("patient", "seller").order_by("-sale_date", "-created_at")
        return [
            SellerSale(
                sale_id=s.id,
                sale_date=s.sale_date,
                patient_name=s.patient.name,
                sale_value=s.total_amount,
                seller_id=s.seller_id,
                seller_name=s.seller.name,
                commission_type=s.seller.commission_type,
                commission_value=s.seller.commission_value,
            )
            for s in qs
        ]
