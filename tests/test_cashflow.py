"""Períodos de relatório e agregação do fluxo de caixa (sem banco)."""

import uuid
from datetime import date
from decimal import Decimal

from django.test import SimpleTestCase

from financial_engine.core.application.services.cashflow_service import CashFlowService, period_from_filtros
from financial_engine.core.domain.entities.cost_entity import CostEntity
from financial_engine.core.domain.entities.enums import (
    CostCategory,
    CostType,
    PaymentMethod,
    RecurrenceFrequency,
    RecurrenceType,
)
from financial_engine.core.domain.events.exceptions import ValidationFailedError
from financial_engine.core.domain.services.cashflow_aggregator import (
    CashFlowAggregator,
    Receivable,
    SplitMix,
)
from financial_engine.core.domain.services.cost_expander import LedgerEntry, RecurringCostExpander
from financial_engine.core.domain.services.period_service import (
    Period,
    resolve_period,
    trailing_months,
)

TODAY = date(2024, 5, 15)  # quarta-feira


def receivable(on, amount, method=PaymentMethod.CASH_PIX):
    return Receivable(
        id=uuid.uuid4(),
        date=on,
        amount=Decimal(amount),
        patient_name="Maria",
        procedure_name="Clareamento",
        payment_method=method,
        installment_number=1,
        total_installments=1,
        status="PENDING",
    )


def expense(on, amount=None, percentage=None, category="Operacional", entry_id=None):
    cost_id = entry_id or uuid.uuid4()
    return LedgerEntry(
        id=cost_id,
        cost_id=cost_id,
        date=on,
        amount=Decimal(amount) if amount is not None else None,
        description="Custo",
        category=category,
        custom_category=None,
        is_recurring=False,
        percentage=Decimal(percentage) if percentage is not None else None,
    )


class PeriodTests(SimpleTestCase):
    def test_month_is_default(self):
        self.assertEqual(resolve_period(None, TODAY), Period(date(2024, 5, 1), date(2024, 5, 31)))
        self.assertEqual(resolve_period("unknown", TODAY), Period(date(2024, 5, 1), date(2024, 5, 31)))

    def test_week_runs_sunday_to_saturday(self):
        self.assertEqual(resolve_period("week", TODAY), Period(date(2024, 5, 12), date(2024, 5, 18)))
        sunday = date(2024, 5, 12)
        self.assertEqual(resolve_period("week", sunday).start, sunday)

    def test_last_n_days_include_today(self):
        period = resolve_period("last7days", TODAY)
        self.assertEqual(period, Period(date(2024, 5, 9), TODAY))
        self.assertEqual(period.days, 7)
        self.assertEqual(resolve_period("last30days", TODAY).days, 30)

    def test_today(self):
        self.assertEqual(resolve_period("today", TODAY), Period(TODAY, TODAY))

    def test_custom_requires_both_dates(self):
        self.assertEqual(
            resolve_period("custom", TODAY, date(2024, 2, 10), date(2024, 2, 1)),
            Period(date(2024, 2, 1), date(2024, 2, 10)),
        )
        self.assertEqual(resolve_period("custom", TODAY, date(2024, 2, 1)).start, date(2024, 5, 1))

    def test_explicit_dates_without_preset(self):
        period = period_from_filtros({"start_date": "2024-01-01", "end_date": "2024-01-31"}, TODAY)
        self.assertEqual(period, Period(date(2024, 1, 1), date(2024, 1, 31)))

    def test_invalid_date_is_rejected(self):
        with self.assertRaises(ValidationFailedError):
            period_from_filtros({"start_date": "01/02/2024", "end_date": "2024-01-31"}, TODAY)

    def test_trailing_months(self):
        months = trailing_months(TODAY, 6)
        self.assertEqual(len(months), 6)
        self.assertEqual(months[0], Period(date(2023, 12, 1), date(2023, 12, 31)))
        self.assertEqual(months[-1].end, date(2024, 5, 31))


class CashFlowAggregatorTests(SimpleTestCase):
    def setUp(self):
        self.aggregator = CashFlowAggregator()
        self.start = date(2024, 5, 1)
        self.end = date(2024, 5, 31)

    def test_empty_range_is_all_zero(self):
        report = self.aggregator.aggregate(self.start, self.end, [], [], Decimal("0"))

        self.assertEqual(report.total_receivables, Decimal("0"))
        self.assertEqual(report.total_expenses, Decimal("0"))
        self.assertEqual(report.net_cash_flow, Decimal("0"))
        self.assertEqual(len(report.daily), 31)
        self.assertTrue(all(d.net_flow == 0 for d in report.daily))

    def test_daily_series_covers_every_day(self):
        report = self.aggregator.aggregate(
            self.start,
            self.end,
            [receivable(date(2024, 5, 10), "300"), receivable(date(2024, 5, 10), "200")],
            [expense(date(2024, 5, 10), "100")],
            Decimal("500"),
        )
        self.assertEqual([d.date for d in report.daily][0], self.start)
        self.assertEqual([d.date for d in report.daily][-1], self.end)
        day = report.daily[9]
        self.assertEqual((day.receivables, day.expenses, day.net_flow), (Decimal("500"), Decimal("100"), Decimal("400")))
        self.assertEqual(sum(d.net_flow for d in report.daily), report.net_cash_flow)

    def test_percentage_costs_use_period_sales(self):
        report = self.aggregator.aggregate(
            self.start,
            self.end,
            [],
            [expense(date(2024, 5, 1), percentage="6", category="Impostos"), expense(date(2024, 5, 2), "1000")],
            Decimal("12345.67"),
        )
        self.assertEqual(report.total_expenses, Decimal("1740.74"))
        self.assertEqual(report.expenses_by_category["Impostos"], Decimal("740.74"))

    def test_monthly_percentage_cost_counts_once_per_range(self):
        tax = CostEntity(
            id=uuid.uuid4(),
            workspace_id=uuid.uuid4(),
            description="Simples Nacional",
            cost_type=CostType.PERCENTAGE,
            category=CostCategory.TAX,
            percentage=Decimal("10"),
            recurrence_type=RecurrenceType.INDEFINITE,
            recurrence_frequency=RecurrenceFrequency.MONTHLY,
            payment_date=date(2024, 1, 10),
        )
        start, end = date(2024, 1, 1), date(2024, 3, 31)
        entries = RecurringCostExpander().expand(tax, start, end, today=date(2024, 2, 1))
        self.assertEqual(len(entries), 3)

        report = self.aggregator.aggregate(start, end, [], entries, Decimal("1000"))

        self.assertEqual(report.total_expenses, Decimal("100.00"))
        self.assertEqual(len(report.expenses), 1)
        self.assertEqual(report.expenses[0].date, date(2024, 1, 10))

    def test_out_of_range_and_undated_items_are_ignored(self):
        report = self.aggregator.aggregate(
            self.start,
            self.end,
            [receivable(date(2024, 6, 1), "100"), receivable(None, "50"), receivable(date(2024, 5, 31), "10")],
            [expense(date(2024, 4, 30), "70")],
            Decimal("0"),
        )
        self.assertEqual(report.total_receivables, Decimal("10"))
        self.assertEqual(report.expenses, [])

    def test_same_expense_occurrence_is_counted_once(self):
        cost_id = uuid.uuid4()
        report = self.aggregator.aggregate(
            self.start,
            self.end,
            [],
            [expense(date(2024, 5, 5), "80", entry_id=cost_id), expense(date(2024, 5, 5), "80", entry_id=cost_id)],
            Decimal("0"),
        )
        self.assertEqual(report.total_expenses, Decimal("80"))

    def test_receivables_by_method(self):
        report = self.aggregator.aggregate(
            self.start,
            self.end,
            [receivable(date(2024, 5, 3), "285", PaymentMethod.CREDIT_CARD), receivable(date(2024, 5, 4), "100")],
            [],
            Decimal("0"),
        )
        self.assertEqual(
            report.receivables_by_method,
            {"Cartão de Crédito": Decimal("285"), "Dinheiro/Pix": Decimal("100")},
        )

    def test_payment_analysis_cash_versus_installments(self):
        analysis = self.aggregator.payment_analysis([
            SplitMix(PaymentMethod.CASH_PIX, Decimal("400"), 1),
            SplitMix(PaymentMethod.CREDIT_CARD, Decimal("600"), 3),
        ])
        self.assertEqual(analysis.cash_amount, Decimal("400"))
        self.assertEqual(analysis.installment_amount, Decimal("600"))
        self.assertEqual(analysis.cash_percentage, Decimal("40"))
        self.assertEqual(analysis.by_method["Cartão de Crédito"].installment, Decimal("600"))

    def test_dto_serializes_money_as_strings(self):
        report = self.aggregator.aggregate(
            self.start, self.end, [receivable(date(2024, 5, 3), "285")], [], Decimal("285")
        )
        dto = CashFlowService.to_dto(report)
        self.assertEqual(dto.summary.totalReceivables, "285.00")
        self.assertEqual(dto.summary.period.startDate, "2024-05-01")
        self.assertEqual(len(dto.dailyCashFlow), 31)
        self.assertEqual(dto.breakdowns.receivablesByMethod, {"Dinheiro/Pix": "285.00"})
        self.assertEqual(dto.receivables[0].paymentMethod, "Dinheiro/Pix")
