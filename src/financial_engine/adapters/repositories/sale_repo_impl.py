from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from clinic_core.core.application.cqrs import PagedResult
from django.db import transaction

from financial_engine.core.domain.entities.enums import InstallmentStatus, PaymentMethod
from financial_engine.core.domain.entities.sale_entity import (
    PaymentInstallmentEntity,
    PaymentSplitEntity,
    SaleEntity,
    SaleItemEntity,
)
from financial_engine.core.domain.events.exceptions import NotFoundError
from financial_engine.core.domain.repositories.sale_repository import (
    PaymentInstallmentRepository,
    SaleRepository,
)
from plugins.django_interface.models import Collaborator as CollaboratorModel
from plugins.django_interface.models import Patient as PatientModel
from plugins.django_interface.models import PaymentInstallment as PaymentInstallmentModel
from plugins.django_interface.models import PaymentSplit as PaymentSplitModel
from plugins.django_interface.models import Procedure as ProcedureModel
from plugins.django_interface.models import ProcedureSession as ProcedureSessionModel
from plugins.django_interface.models import Sale as SaleModel
from plugins.django_interface.models import SaleItem as SaleItemModel

CENT = Decimal("0.01")


def _cents(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def installment_to_entity(m: PaymentInstallmentModel) -> PaymentInstallmentEntity:
    return PaymentInstallmentEntity.from_model(m, status=InstallmentStatus(m.status))


def sale_to_entity(m: SaleModel) -> SaleEntity:
    """Espera `items__procedure`, `payment_splits__installment_details` e `sessions` pré-carregados."""
    sessions = list(m.sessions.all())
    return SaleEntity.from_model(
        m,
        payment_method=PaymentMethod(m.payment_method) if m.payment_method else None,
        items=[
            SaleItemEntity.from_model(i, procedure_name=i.procedure.name)
            for i in m.items.all()
        ],
        payment_splits=[
            PaymentSplitEntity.from_model(
                s,
                payment_method=PaymentMethod(s.payment_method),
                stubs=[],
                schedule=[
                    installment_to_entity(inst)
                    for inst in sorted(s.installment_details.all(), key=lambda x: x.installment_number)
                ],
            )
            for s in m.payment_splits.all()
        ],
        session_dates=[s.scheduled_date for s in sessions],
        completed_sessions=sum(1 for s in sessions if s.status == ProcedureSessionModel.Status.COMPLETED),
        total_sessions=len(sessions),
        patient_name=m.patient.name,
    )


class SaleRepoImpl(SaleRepository):
    """Venda e todo o cronograma de recebimento gravados numa única transação."""

    def _queryset(self, workspace_id: uuid.UUID):
        return (
            SaleModel.objects.filter(workspace_id=workspace_id)
            .select_related("patient")
            .prefetch_related("items__procedure", "payment_splits__installment_details", "sessions")
        )

    @transaction.atomic
    def create(self, sale: SaleEntity) -> SaleEntity:
        if not PatientModel.objects.filter(id=sale.patient_id, workspace_id=sale.workspace_id).exists():
            raise NotFoundError("Paciente não encontrado", patient_id=str(sale.patient_id))
        if sale.seller_id and not CollaboratorModel.objects.filter(
            id=sale.seller_id, workspace_id=sale.workspace_id, is_active=True
        ).exists():
            raise NotFoundError("Vendedor não encontrado", seller_id=str(sale.seller_id))

        procedure_ids = {i.procedure_id for i in sale.items}
        found = set(
            ProcedureModel.objects.filter(workspace_id=sale.workspace_id, id__in=procedure_ids)
            .values_list("id", flat=True)
        )
        missing = procedure_ids - found
        if missing:
            raise NotFoundError("Procedimento não encontrado", procedure_ids=sorted(str(p) for p in missing))

        SaleModel.objects.create(
            id=sale.id,
            workspace_id=sale.workspace_id,
            patient_id=sale.patient_id,
            seller_id=sale.seller_id,
            sale_date=sale.sale_date,
            total_amount=sale.total_amount,
            payment_status=sale.payment_status,
            payment_method=sale.payment_method.value if sale.payment_method else None,
            notes=sale.notes,
        )
        SaleItemModel.objects.bulk_create([
            SaleItemModel(
                id=i.id,
                sale_id=sale.id,
                procedure_id=i.procedure_id,
                quantity=i.quantity,
                unit_price=i.unit_price,
            )
            for i in sale.items
        ])

        # uma sessão por unidade de cada item; sessionDates atribuídas em ordem
        sessions = []
        for item in sale.items:
            for _ in range(item.quantity):
                idx = len(sessions)
                sessions.append(ProcedureSessionModel(
                    sale_id=sale.id,
                    procedure_id=item.procedure_id,
                    scheduled_date=sale.session_dates[idx] if idx < len(sale.session_dates) else None,
                ))
        ProcedureSessionModel.objects.bulk_create(sessions)

        PaymentSplitModel.objects.bulk_create([
            PaymentSplitModel(
                id=s.id,
                sale_id=sale.id,
                payment_method=s.payment_method.value,
                amount=s.amount,
                installments=s.installments,
                card_operator=s.card_operator,
            )
            for s in sale.payment_splits
        ])

        rows = []
        for split in sale.payment_splits:
            for inst in split.schedule:
                gross = _cents(inst.gross_amount)
                net = _cents(inst.amount)
                fee = gross - net
                rows.append(PaymentInstallmentModel(
                    id=inst.id,
                    payment_split_id=split.id,
                    installment_number=inst.installment_number,
                    amount=net,
                    gross_amount=gross,
                    fee_amount=fee,
                    due_date=inst.due_date,
                    status=inst.status.value,
                    notes=inst.notes,
                ))
        PaymentInstallmentModel.objects.bulk_create(rows)

        return self.find_by_id(sale.workspace_id, sale.id)

    def find_by_id(self, workspace_id: uuid.UUID, sale_id: uuid.UUID) -> SaleEntity | None:
        m = self._queryset(workspace_id).filter(id=sale_id).first()
        return sale_to_entity(m) if m else None

    def list(self, workspace_id: uuid.UUID, filtros: dict[str, Any], page: int, page_size: int) -> PagedResult[SaleEntity]:
        qs = self._queryset(workspace_id)
        if filtros.get("patient_id"):
            qs = qs.filter(patient_id=filtros["patient_id"])
        if filtros.get("payment_status"):
            qs = qs.filter(payment_status=filtros["payment_status"])
        if filtros.get("start_date"):
            qs = qs.filter(sale_date__gte=filtros["start_date"])
        if filtros.get("end_date"):
            qs = qs.filter(sale_date__lte=filtros["end_date"])

        total = qs.count()
        offset = (page - 1) * page_size
        page_qs = qs.order_by("-sale_date", "-created_at")[offset : offset + page_size]
        return PagedResult(items=[sale_to_entity(m) for m in page_qs], total=total, page=page, page_size=page_size)

    @transaction.atomic
    def delete(self, workspace_id: uuid.UUID, sale_id: uuid.UUID) -> bool:
        deleted, _ = SaleModel.objects.filter(workspace_id=workspace_id, id=sale_id).delete()
        return deleted > 0


class PaymentInstallmentRepoImpl(PaymentInstallmentRepository):
    SETTLEABLE = (InstallmentStatus.PENDING.value, InstallmentStatus.OVERDUE.value)

    def find_by_id(self, workspace_id: uuid.UUID, installment_id: uuid.UUID) -> PaymentInstallmentEntity | None:
        m = PaymentInstallmentModel.objects.filter(
            id=installment_id, payment_split__sale__workspace_id=workspace_id
        ).first()
        return installment_to_entity(m) if m else None

    def mark_paid(self, workspace_id: uuid.UUID, installment_id: uuid.UUID, paid_at: datetime) -> bool:
        # compare-and-swap: o status atual faz parte do WHERE
        updated = PaymentInstallmentModel.objects.filter(
            id=installment_id,
            payment_split__sale__workspace_id=workspace_id,
            status__in=self.SETTLEABLE,
        ).update(status=InstallmentStatus.PAID.value, paid_date=paid_at)
        return updated == 1

    def mark_overdue(self, reference_date: date) -> int:
        return PaymentInstallmentModel.objects.filter(
            status=InstallmentStatus.PENDING.value,
            due_date__lt=reference_date,
        ).update(status=InstallmentStatus.OVERDUE.value)
