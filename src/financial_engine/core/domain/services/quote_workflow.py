from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from financial_engine.core.domain.entities.enums import QuoteStatus
from financial_engine.core.domain.entities.quote_entity import QuoteEntity, QuoteItemEntity
from financial_engine.core.domain.events.exceptions import TerminalStateError, ValidationFailedError

CENT = Decimal("0.01")
PCT_PLACES = Decimal("0.0001")

# status → campo de data carimbado ao entrar no status
STATUS_STAMPS = {
    QuoteStatus.SENT: "sent_date",
    QuoteStatus.ACCEPTED: "accepted_date",
    QuoteStatus.REJECTED: "rejected_date",
}


@dataclass(frozen=True, slots=True)
class QuotePricing:
    total_amount: Decimal
    discount_percent: Decimal
    discount_amount: Decimal
    final_amount: Decimal


class QuoteWorkflow:
    """
    Máquina de estados do orçamento:

        PENDING → SENT → {ACCEPTED | REJECTED | EXPIRED}

    Antes do aceite as mudanças são reversíveis; ACCEPTED é terminal.
    Carimbos de data são idempotentes (nunca sobrescrevem um valor existente).
    """

    @staticmethod
    def price(
        items: Iterable[QuoteItemEntity],
        discount_percent: Decimal | None = None,
        discount_amount: Decimal | None = None,
    ) -> QuotePricing:
        """Percentual e valor de desconto derivam um do outro; percentual prevalece."""
        total = sum((i.unit_price * i.quantity for i in items), Decimal("0"))
        pct = Decimal(discount_percent or 0)
        amount = Decimal(discount_amount or 0)

        if pct < 0 or amount < 0:
            raise ValidationFailedError("Desconto não pode ser negativo")
        if pct > 0:
            if pct > 100:
                raise ValidationFailedError("Desconto percentual deve ser no máximo 100%")
            amount = (total * pct / 100).quantize(CENT, rounding=ROUND_HALF_UP)
        elif amount > 0:
            if amount > total:
                raise ValidationFailedError("Desconto não pode exceder o total do orçamento")
            pct = (amount / total * 100).quantize(PCT_PLACES, rounding=ROUND_HALF_UP)
        else:
            pct = amount = Decimal("0")

        return QuotePricing(
            total_amount=total,
            discount_percent=pct,
            discount_amount=amount,
            final_amount=total - amount,
        )

    @staticmethod
    def apply_pricing(quote: QuoteEntity, pricing: QuotePricing) -> QuoteEntity:
        quote.total_amount = pricing.total_amount
        quote.discount_percent = pricing.discount_percent
        quote.discount_amount = pricing.discount_amount
        quote.final_amount = pricing.final_amount
        return quote

    @staticmethod
    def transition(quote: QuoteEntity, new_status: QuoteStatus, now: datetime) -> QuoteEntity:
        if quote.status == QuoteStatus.ACCEPTED and new_status != QuoteStatus.ACCEPTED:
            raise TerminalStateError(
                "Orçamento aceito não pode mudar de status",
                quote_id=str(quote.id),
                current_status=quote.status.value,
                requested_status=new_status.value,
            )
        quote.status = new_status
        stamp = STATUS_STAMPS.get(new_status)
        if stamp and getattr(quote, stamp) is None:
            setattr(quote, stamp, now)
        return quote

    @staticmethod
    def ensure_editable(quote: QuoteEntity) -> None:
        if quote.status == QuoteStatus.ACCEPTED:
            raise TerminalStateError("Orçamento aceito não pode ser alterado", quote_id=str(quote.id))

    @staticmethod
    def ensure_deletable(quote: QuoteEntity) -> None:
        if quote.is_converted:
            raise TerminalStateError(
                "Não é possível excluir orçamento aceito vinculado a uma venda",
                quote_id=str(quote.id),
                sale_id=str(quote.sale_id),
            )

    @staticmethod
    def ensure_convertible(quote: QuoteEntity) -> None:
        if quote.is_converted:
            raise TerminalStateError(
                "Orçamento já foi convertido em venda",
                quote_id=str(quote.id),
                sale_id=str(quote.sale_id),
            )

    @staticmethod
    def mark_converted(quote: QuoteEntity, sale_id, now: datetime) -> QuoteEntity:
        QuoteWorkflow.transition(quote, QuoteStatus.ACCEPTED, now)
        quote.sale_id = sale_id
        return quote
