from __future__ import annotations

import uuid
from typing import Any

from clinic_core.core.application.cqrs import PagedResult
from django.db import transaction

from financial_engine.core.domain.entities.enums import QuoteStatus
from financial_engine.core.domain.entities.quote_entity import QuoteEntity, QuoteItemEntity
from financial_engine.core.domain.repositories.quote_repository import QuoteRepository
from plugins.django_interface.models import Patient as PatientModel
from plugins.django_interface.models import Quote as QuoteModel
from plugins.django_interface.models import QuoteItem as QuoteItemModel


def quote_to_entity(m: QuoteModel, items: list[QuoteItemModel]) -> QuoteEntity:
    return QuoteEntity.from_model(
        m,
        status=QuoteStatus(m.status),
        items=[QuoteItemEntity.from_model(i) for i in items],
    )


class QuoteRepoImpl(QuoteRepository):
    @transaction.atomic
    def save(self, quote: QuoteEntity) -> QuoteEntity:
        QuoteModel.objects.update_or_create(
            id=quote.id,
            defaults={
                "workspace_id": quote.workspace_id,
                "patient_id": quote.patient_id,
                "title": quote.title,
                "status": quote.status.value,
                "total_amount": quote.total_amount,
                "discount_percent": quote.discount_percent,
                "discount_amount": quote.discount_amount,
                "final_amount": quote.final_amount,
                "notes": quote.notes,
                "lead_source": quote.lead_source,
                "expiration_date": quote.expiration_date,
                "sent_date": quote.sent_date,
                "accepted_date": quote.accepted_date,
                "rejected_date": quote.rejected_date,
                "sale_id": quote.sale_id,
                **({"created_date": quote.created_date} if quote.created_date else {}),
            },
        )

        current = set(QuoteItemModel.objects.filter(quote_id=quote.id).values_list("id", flat=True))
        if current != {i.id for i in quote.items}:
            QuoteItemModel.objects.filter(quote_id=quote.id).delete()
            QuoteItemModel.objects.bulk_create([
                QuoteItemModel(
                    id=i.id,
                    quote_id=quote.id,
                    procedure_id=i.procedure_id,
                    description=i.description,
                    quantity=i.quantity,
                    unit_price=i.unit_price,
                    total_price=i.total_price,
                )
                for i in quote.items
            ])
        return self.find_by_id(quote.workspace_id, quote.id)

    def find_by_id(self, workspace_id: uuid.UUID, quote_id: uuid.UUID, *, for_update: bool = False) -> QuoteEntity | None:
        qs = QuoteModel.objects.filter(workspace_id=workspace_id, id=quote_id)
        if for_update:
            qs = qs.select_for_update()
        m = qs.first()
        if m is None:
            return None
        return quote_to_entity(m, list(m.items.order_by("description")))

    def list(self, workspace_id: uuid.UUID, filtros: dict[str, Any], page: int, page_size: int) -> PagedResult[QuoteEntity]:
        qs = QuoteModel.objects.filter(workspace_id=workspace_id).prefetch_related("items")
        if filtros.get("status"):
            qs = qs.filter(status=filtros["status"])
        if filtros.get("patient_id"):
            qs = qs.filter(patient_id=filtros["patient_id"])

        total = qs.count()
        offset = (page - 1) * page_size
        page_qs = qs.order_by("-created_date")[offset : offset + page_size]
        items = [quote_to_entity(m, list(m.items.all())) for m in page_qs]
        return PagedResult(items=items, total=total, page=page, page_size=page_size)

    def delete(self, workspace_id: uuid.UUID, quote_id: uuid.UUID) -> bool:
        deleted, _ = QuoteModel.objects.filter(workspace_id=workspace_id, id=quote_id).delete()
        return deleted > 0

    def patient_exists(self, workspace_id: uuid.UUID, patient_id: uuid.UUID) -> bool:
        return PatientModel.objects.filter(workspace_id=workspace_id, id=patient_id).exists()
