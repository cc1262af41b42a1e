import uuid
from datetime import date
from decimal import Decimal

from django.test import SimpleTestCase

from financial_engine.core.domain.entities.cost_entity import CostEntity
from financial_engine.core.domain.entities.enums import (
    CostCategory,
    CostType,
    RecurrenceFrequency,
    RecurrenceType,
)
from financial_engine.core.domain.events.exceptions import ValidationFailedError
from financial_engine.core.domain.services.cost_expander import RecurringCostExpander


def cost(**kw):
    defaults = dict(
        id=uuid.uuid4(),
        workspace_id=uuid.uuid4(),
        description="Aluguel",
        cost_type=CostType.FIXED,
        fixed_value=Decimal("2500"),
    )
    defaults.update(kw)
    return CostEntity(**defaults)


class BuildInstallmentsTests(SimpleTestCase):
    """Custos parcelados são materializados uma única vez, na criação."""

    def setUp(self):
        self.expander = RecurringCostExpander()

    def test_six_monthly_installments(self):
        c = cost(
            fixed_value=Decimal("1200"),
            recurrence_type=RecurrenceType.INSTALLMENTS,
            recurrence_frequency=RecurrenceFrequency.MONTHLY,
            total_installments=6,
            first_due_date=date(2024, 1, 31),
        )
        installments = self.expander.build_installments(c)

        self.assertEqual(len(installments), 6)
        self.assertEqual({i.amount for i in installments}, {Decimal("200.00")})
        self.assertEqual(
            [i.due_date for i in installments[:3]],
            [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)],
        )
        self.assertEqual([i.installment_number for i in installments], [1, 2, 3, 4, 5, 6])

    def test_quarterly_installments(self):
        c = cost(
            fixed_value=Decimal("1000"),
            recurrence_type=RecurrenceType.INSTALLMENTS,
            recurrence_frequency=RecurrenceFrequency.QUARTERLY,
            total_installments=3,
            first_due_date=date(2024, 1, 10),
        )
        installments = self.expander.build_installments(c)
        self.assertEqual(
            [i.due_date for i in installments],
            [date(2024, 1, 10), date(2024, 4, 10), date(2024, 7, 10)],
        )
        self.assertEqual(sum(i.amount for i in installments), Decimal("1000"))

    def test_non_installment_cost_builds_nothing(self):
        self.assertEqual(self.expander.build_installments(cost()), [])

    def test_missing_first_due_date_is_rejected(self):
        c = cost(recurrence_type=RecurrenceType.INSTALLMENTS, total_installments=3)
        with self.assertRaises(ValidationFailedError):
            self.expander.build_installments(c)


class ExpandTests(SimpleTestCase):
    def setUp(self):
        self.expander = RecurringCostExpander()
        self.start = date(2024, 3, 1)
        self.end = date(2024, 5, 31)

    def dates(self, c, today=None):
        return [e.date for e in self.expander.expand(c, self.start, self.end, today)]

    def test_one_off_with_payment_date(self):
        self.assertEqual(self.dates(cost(payment_date=date(2024, 4, 5))), [date(2024, 4, 5)])
        self.assertEqual(self.dates(cost(payment_date=date(2024, 6, 5))), [])

    def test_one_off_without_date_applies_only_when_today_in_range(self):
        c = cost()
        self.assertEqual(self.dates(c, today=date(2024, 4, 1)), [self.start])
        self.assertEqual(self.dates(c, today=date(2024, 7, 1)), [])

    def test_indefinite_without_date_applies_once_per_range(self):
        c = cost(recurrence_type=RecurrenceType.INDEFINITE)
        self.assertEqual(self.dates(c, today=date(2030, 1, 1)), [self.start])

    def test_indefinite_monthly_projection(self):
        c = cost(
            recurrence_type=RecurrenceType.INDEFINITE,
            recurrence_frequency=RecurrenceFrequency.MONTHLY,
            payment_date=date(2024, 1, 15),
        )
        self.assertEqual(self.dates(c), [date(2024, 3, 15), date(2024, 4, 15), date(2024, 5, 15)])

    def test_indefinite_quarterly_projection(self):
        c = cost(
            recurrence_type=RecurrenceType.INDEFINITE,
            recurrence_frequency=RecurrenceFrequency.QUARTERLY,
            payment_date=date(2024, 1, 10),
        )
        entries = self.expander.expand(c, date(2024, 1, 1), date(2024, 12, 31))
        self.assertEqual(
            [e.date for e in entries],
            [date(2024, 1, 10), date(2024, 4, 10), date(2024, 7, 10), date(2024, 10, 10)],
        )
        self.assertTrue(all(e.is_recurring for e in entries))

    def test_installment_parent_has_no_direct_entry(self):
        c = cost(
            recurrence_type=RecurrenceType.INSTALLMENTS,
            total_installments=6,
            first_due_date=date(2024, 3, 1),
        )
        self.assertEqual(self.dates(c), [])

    def test_inactive_cost_is_skipped(self):
        self.assertEqual(self.dates(cost(payment_date=date(2024, 4, 5), is_active=False)), [])

    def test_percentage_cost_is_deferred(self):
        c = cost(
            cost_type=CostType.PERCENTAGE,
            fixed_value=None,
            percentage=Decimal("6"),
            category=CostCategory.TAX,
            payment_date=date(2024, 3, 20),
        )
        entry = self.expander.expand(c, self.start, self.end)[0]
        self.assertTrue(entry.is_deferred)
        self.assertEqual(entry.percentage, Decimal("6"))
        self.assertEqual(entry.category, "Impostos")

    def test_installment_entry_description(self):
        c = cost(recurrence_type=RecurrenceType.INSTALLMENTS, total_installments=2, first_due_date=date(2024, 3, 1))
        inst = self.expander.build_installments(c)[1]
        entry = self.expander.installment_entry(c, inst)
        self.assertEqual(entry.description, "Aluguel (Parcela 2)")
        self.assertEqual(entry.amount, Decimal("1250.00"))
        self.assertEqual(entry.date, date(2024, 4, 1))


class ReplicationTests(SimpleTestCase):
    """Custos fixos recorrentes viram lançamentos avulsos conforme as datas vencem."""

    def setUp(self):
        self.expander = RecurringCostExpander()

    def monthly(self, **kw):
        return cost(
            recurrence_type=RecurrenceType.INDEFINITE,
            recurrence_frequency=RecurrenceFrequency.MONTHLY,
            payment_date=date(2024, 1, 31),
            **kw,
        )

    def test_first_replication_date(self):
        self.assertEqual(self.expander.first_replication_date(self.monthly()), date(2024, 2, 29))
        self.assertIsNone(self.expander.first_replication_date(cost(payment_date=date(2024, 1, 31))))
        self.assertIsNone(
            self.expander.first_replication_date(
                self.monthly(cost_type=CostType.PERCENTAGE, fixed_value=None, percentage=Decimal("5"))
            )
        )

    def test_overdue_occurrences_are_caught_up(self):
        parent = self.monthly(next_replication_date=date(2024, 2, 29))
        plan = self.expander.replicate(parent, date(2024, 4, 15))

        self.assertEqual([r.payment_date for r in plan.replicas], [date(2024, 2, 29), date(2024, 3, 31)])
        self.assertEqual(plan.next_date, date(2024, 4, 30))
        replica = plan.replicas[0]
        self.assertEqual(replica.recurrence_type, RecurrenceType.NONE)
        self.assertEqual(replica.replicated_from_id, parent.id)
        self.assertEqual(replica.fixed_value, Decimal("2500"))
        self.assertNotEqual(replica.id, parent.id)

    def test_nothing_due_keeps_next_date(self):
        parent = self.monthly(next_replication_date=date(2024, 2, 29))
        plan = self.expander.replicate(parent, date(2024, 2, 1))
        self.assertTrue(plan.is_empty)
        self.assertEqual(plan.next_date, date(2024, 2, 29))

    def test_projection_skips_replicated_occurrences(self):
        parent = cost(
            recurrence_type=RecurrenceType.INDEFINITE,
            recurrence_frequency=RecurrenceFrequency.MONTHLY,
            payment_date=date(2024, 1, 15),
            next_replication_date=date(2024, 4, 15),
        )
        entries = self.expander.expand(parent, date(2024, 1, 1), date(2024, 5, 31))
        self.assertEqual([e.date for e in entries], [date(2024, 1, 15), date(2024, 4, 15), date(2024, 5, 15)])
