import uuid
from datetime import UTC, datetime
from decimal import Decimal

from django.test import SimpleTestCase

from financial_engine.core.domain.entities.enums import QuoteStatus
from financial_engine.core.domain.entities.quote_entity import QuoteEntity, QuoteItemEntity
from financial_engine.core.domain.events.exceptions import TerminalStateError, ValidationFailedError
from financial_engine.core.domain.services.quote_workflow import QuoteWorkflow

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)
LATER = datetime(2024, 3, 5, 9, 30, tzinfo=UTC)


def item(qty, price):
    return QuoteItemEntity(
        id=uuid.uuid4(),
        description="Procedimento",
        quantity=qty,
        unit_price=Decimal(price),
        total_price=Decimal(price) * qty,
    )


def quote(status=QuoteStatus.PENDING, sale_id=None):
    return QuoteEntity(
        id=uuid.uuid4(),
        workspace_id=uuid.uuid4(),
        patient_id=uuid.uuid4(),
        title="Tratamento ortodôntico",
        status=status,
        sale_id=sale_id,
    )


ITEMS = [item(2, "150"), item(1, "200")]


class PricingTests(SimpleTestCase):
    def test_no_discount(self):
        p = QuoteWorkflow.price(ITEMS)
        self.assertEqual((p.total_amount, p.discount_amount, p.final_amount), (Decimal("500"), 0, Decimal("500")))

    def test_percent_discount_derives_amount(self):
        p = QuoteWorkflow.price(ITEMS, discount_percent=Decimal("10"))
        self.assertEqual(p.discount_amount, Decimal("50.00"))
        self.assertEqual(p.final_amount, Decimal("450.00"))

    def test_amount_discount_derives_percent(self):
        p = QuoteWorkflow.price(ITEMS, discount_amount=Decimal("100"))
        self.assertEqual(p.discount_percent, Decimal("20.0000"))
        self.assertEqual(p.final_amount, Decimal("400"))

    def test_percent_wins_over_amount(self):
        p = QuoteWorkflow.price(ITEMS, discount_percent=Decimal("10"), discount_amount=Decimal("100"))
        self.assertEqual(p.discount_amount, Decimal("50.00"))

    def test_invalid_discounts(self):
        for pct, amount in ((None, Decimal("600")), (Decimal("150"), None), (Decimal("-1"), None)):
            with self.subTest(pct=pct, amount=amount), self.assertRaises(ValidationFailedError):
                QuoteWorkflow.price(ITEMS, pct, amount)


class TransitionTests(SimpleTestCase):
    def test_sent_then_accepted_stamps_dates(self):
        q = QuoteWorkflow.transition(quote(), QuoteStatus.SENT, NOW)
        q = QuoteWorkflow.transition(q, QuoteStatus.ACCEPTED, LATER)
        self.assertEqual(q.status, QuoteStatus.ACCEPTED)
        self.assertEqual(q.sent_date, NOW)
        self.assertEqual(q.accepted_date, LATER)

    def test_stamps_are_not_overwritten(self):
        q = QuoteWorkflow.transition(quote(), QuoteStatus.SENT, NOW)
        q = QuoteWorkflow.transition(q, QuoteStatus.PENDING, LATER)
        q = QuoteWorkflow.transition(q, QuoteStatus.SENT, LATER)
        self.assertEqual(q.sent_date, NOW)

    def test_accepted_is_terminal(self):
        q = quote(QuoteStatus.ACCEPTED)
        for target in (QuoteStatus.REJECTED, QuoteStatus.PENDING, QuoteStatus.EXPIRED):
            with self.subTest(target=target), self.assertRaises(TerminalStateError):
                QuoteWorkflow.transition(q, target, NOW)
        with self.assertRaises(TerminalStateError):
            QuoteWorkflow.ensure_editable(q)

    def test_rejected_can_be_reopened(self):
        q = QuoteWorkflow.transition(quote(QuoteStatus.REJECTED), QuoteStatus.SENT, NOW)
        self.assertEqual(q.status, QuoteStatus.SENT)


class ConversionGuardTests(SimpleTestCase):
    def test_converted_quote_cannot_be_converted_or_deleted(self):
        q = quote(QuoteStatus.ACCEPTED, sale_id=uuid.uuid4())
        with self.assertRaises(TerminalStateError):
            QuoteWorkflow.ensure_convertible(q)
        with self.assertRaises(TerminalStateError):
            QuoteWorkflow.ensure_deletable(q)

    def test_accepted_without_sale_is_still_convertible(self):
        q = quote(QuoteStatus.ACCEPTED)
        QuoteWorkflow.ensure_convertible(q)
        QuoteWorkflow.ensure_deletable(q)

    def test_mark_converted(self):
        sale_id = uuid.uuid4()
        q = QuoteWorkflow.mark_converted(quote(QuoteStatus.SENT), sale_id, NOW)
        self.assertTrue(q.is_converted)
        self.assertEqual(q.sale_id, sale_id)
        self.assertEqual(q.accepted_date, NOW)
