"""Validação de splits, resolução de taxa e geração do cronograma de parcelas."""

import uuid
from datetime import date
from decimal import Decimal

from django.test import SimpleTestCase

from financial_engine.core.application.services.settlement_service import SettlementService
from financial_engine.core.domain.entities.card_fee_rule_entity import CardFeeRuleEntity
from financial_engine.core.domain.entities.enums import CardType, InstallmentStatus, PaymentMethod
from financial_engine.core.domain.entities.sale_entity import InstallmentStub, PaymentSplitEntity
from financial_engine.core.domain.events.exceptions import (
    IncompleteScheduleError,
    ReconciliationError,
    ValidationFailedError,
)
from financial_engine.core.domain.repositories.workspace_settings_repository import FinancialSettings
from financial_engine.core.domain.services.fee_rule_resolver import FeeResolution, FeeRuleResolver
from financial_engine.core.domain.services.installment_scheduler import (
    InstallmentScheduler,
    allocate_evenly,
)
from financial_engine.core.domain.services.split_validator import PaymentSplitValidator

WS = uuid.uuid4()
BASE = date(2024, 1, 1)


def split(method, amount, installments=1, stubs=None, operator=None):
    return PaymentSplitEntity(
        id=uuid.uuid4(),
        payment_method=method,
        amount=Decimal(amount),
        installments=installments,
        card_operator=operator,
        stubs=stubs if stubs is not None else [InstallmentStub() for _ in range(installments)],
    )


def rule(count, fee, operator="Stone", card_type=CardType.CREDIT, days=30, active=True):
    return CardFeeRuleEntity(
        id=uuid.uuid4(),
        workspace_id=WS,
        card_operator=operator,
        card_type=card_type,
        installment_count=count,
        fee_percentage=Decimal(fee),
        receiving_days=days,
        is_active=active,
    )


class FakeFeeRuleRepo:
    def __init__(self, rules=()):
        self.rules = list(rules)

    def find_active(self, workspace_id, card_type, installment_count, card_operator=None):
        return FeeRuleResolver.match(self.rules, card_type, installment_count, card_operator)


class FakeSettingsRepo:
    def __init__(self, days=30):
        self.days = days

    def get(self, workspace_id):
        return FinancialSettings(tax_rate=Decimal("0.15"), default_card_receiving_days=self.days)


class SplitValidatorTests(SimpleTestCase):
    def setUp(self):
        self.validator = PaymentSplitValidator()

    def test_sum_mismatch_reports_both_totals(self):
        with self.assertRaises(ReconciliationError) as ctx:
            self.validator.validate(Decimal("1000"), [split(PaymentMethod.CASH_PIX, "900")])
        self.assertEqual(ctx.exception.details["computed_total"], "900.00")
        self.assertEqual(ctx.exception.details["expected_total"], "1000.00")

    def test_difference_within_tolerance_is_accepted(self):
        self.validator.validate(
            Decimal("1000.00"),
            [split(PaymentMethod.CASH_PIX, "600.00"), split(PaymentMethod.BANK_SLIP, "399.99")],
        )

    def test_missing_installment_details_is_rejected(self):
        incomplete = split(PaymentMethod.CREDIT_CARD, "900", installments=3, stubs=[InstallmentStub()])
        with self.assertRaises(IncompleteScheduleError) as ctx:
            self.validator.validate(Decimal("900"), [incomplete])
        self.assertEqual(ctx.exception.details["expected_installments"], 3)
        self.assertEqual(ctx.exception.details["received_details"], 1)

    def test_zero_installments_is_rejected(self):
        with self.assertRaises(ValidationFailedError):
            self.validator.validate(Decimal("100"), [split(PaymentMethod.CASH_PIX, "100", installments=0, stubs=[])])


class AllocateEvenlyTests(SimpleTestCase):
    def test_last_share_absorbs_remainder(self):
        self.assertEqual(
            allocate_evenly(Decimal("100"), 3),
            [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")],
        )

    def test_shares_always_add_up(self):
        for amount, parts in (("1000", 7), ("0.05", 2), ("999.99", 12)):
            self.assertEqual(sum(allocate_evenly(Decimal(amount), parts)), Decimal(amount))


class FeeRuleResolverTests(SimpleTestCase):
    def test_exact_installment_count_match(self):
        resolver = FeeRuleResolver(FakeFeeRuleRepo([rule(2, "3.5"), rule(3, "5", days=15)]))
        fee = resolver.resolve(WS, CardType.CREDIT, 3, "Stone")
        self.assertEqual(fee.fee_percentage, Decimal("5"))
        self.assertEqual(fee.receiving_days, 15)
        self.assertFalse(fee.is_fallback)

    def test_unconfigured_tier_falls_back_to_zero_fee(self):
        resolver = FeeRuleResolver(FakeFeeRuleRepo([rule(2, "3.5")]), default_receiving_days=30)
        fee = resolver.resolve(WS, CardType.CREDIT, 4, "Stone")
        self.assertEqual(fee.fee_percentage, Decimal("0"))
        self.assertEqual(fee.receiving_days, 30)
        self.assertTrue(fee.is_fallback)

    def test_fallback_uses_workspace_receiving_days(self):
        resolver = FeeRuleResolver(FakeFeeRuleRepo(), default_receiving_days=30)
        fee = resolver.resolve(WS, CardType.DEBIT, 1, default_receiving_days=2)
        self.assertEqual(fee.receiving_days, 2)

    def test_match_without_operator_picks_first_by_name(self):
        rules = [rule(1, "2.0", operator="Stone"), rule(1, "1.5", operator="Cielo")]
        self.assertEqual(FeeRuleResolver.match(rules, CardType.CREDIT, 1).card_operator, "Cielo")

    def test_match_ignores_inactive_rules(self):
        self.assertIsNone(FeeRuleResolver.match([rule(1, "2.0", active=False)], CardType.CREDIT, 1))


class InstallmentSchedulerTests(SimpleTestCase):
    def setUp(self):
        self.scheduler = InstallmentScheduler(interval_days=30)

    def test_cash_single_installment(self):
        stub = InstallmentStub(due_date=date(2024, 1, 1))
        schedule = self.scheduler.schedule(split(PaymentMethod.CASH_PIX, "1000", stubs=[stub]), BASE)

        self.assertEqual(len(schedule), 1)
        self.assertEqual(schedule[0].amount, Decimal("1000"))
        self.assertEqual(schedule[0].gross_amount, Decimal("1000"))
        self.assertEqual(schedule[0].fee_amount, Decimal("0"))
        self.assertEqual(schedule[0].due_date, date(2024, 1, 1))
        self.assertEqual(schedule[0].status, InstallmentStatus.PENDING)

    def test_credit_card_three_installments_with_fee(self):
        fee = FeeResolution(Decimal("5"), 30, uuid.uuid4())
        schedule = self.scheduler.schedule(split(PaymentMethod.CREDIT_CARD, "900", installments=3), BASE, fee)

        self.assertEqual([i.installment_number for i in schedule], [1, 2, 3])
        self.assertEqual([i.gross_amount for i in schedule], [Decimal("300.00")] * 3)
        self.assertEqual([i.fee_amount for i in schedule], [Decimal("15.00")] * 3)
        self.assertEqual([i.amount for i in schedule], [Decimal("285.00")] * 3)
        self.assertEqual(
            [i.due_date for i in schedule],
            [date(2024, 1, 31), date(2024, 3, 1), date(2024, 3, 31)],
        )
        self.assertEqual(schedule[0].notes, "Taxa de 5.00% aplicada. Valor bruto: R$ 300.00")

    def test_gross_equals_net_plus_fee(self):
        fee = FeeResolution(Decimal("2.99"), 30, uuid.uuid4())
        for inst in self.scheduler.schedule(split(PaymentMethod.CREDIT_CARD, "1000", installments=7), BASE, fee):
            self.assertEqual(inst.gross_amount, inst.amount + inst.fee_amount)

    def test_net_is_rounded_half_up_from_gross(self):
        fee = FeeResolution(Decimal("5"), 30, uuid.uuid4())
        stubs = [InstallmentStub(amount=Decimal("10.10"))]
        inst = self.scheduler.schedule(split(PaymentMethod.CREDIT_CARD, "10.10", stubs=stubs), BASE, fee)[0]

        self.assertEqual(inst.amount, Decimal("9.60"))
        self.assertEqual(inst.fee_amount, Decimal("0.50"))

    def test_card_dates_are_strictly_increasing(self):
        fee = FeeResolution(Decimal("0"), 2)
        schedule = self.scheduler.schedule(split(PaymentMethod.DEBIT_CARD, "500", installments=4), BASE, fee)
        dates = [i.due_date for i in schedule]
        self.assertEqual(dates, sorted(set(dates)))
        self.assertEqual(dates[0], date(2024, 1, 3))

    def test_zero_fee_keeps_stub_notes(self):
        stubs = [InstallmentStub(notes="sinal")]
        inst = self.scheduler.schedule(
            split(PaymentMethod.DEBIT_CARD, "100", stubs=stubs), BASE, FeeResolution(Decimal("0"), 1)
        )[0]
        self.assertEqual(inst.notes, "sinal")
        self.assertEqual(inst.amount, Decimal("100"))

    def test_explicit_stub_values_win(self):
        stubs = [
            InstallmentStub(amount=Decimal("400"), due_date=date(2024, 2, 10)),
            InstallmentStub(amount=Decimal("500")),
        ]
        fee = FeeResolution(Decimal("10"), 30, uuid.uuid4())
        schedule = self.scheduler.schedule(split(PaymentMethod.CREDIT_CARD, "900", 2, stubs), BASE, fee)

        self.assertEqual(schedule[0].due_date, date(2024, 2, 10))
        self.assertEqual(schedule[0].gross_amount, Decimal("400"))
        self.assertEqual(schedule[0].amount, Decimal("360"))
        self.assertEqual(schedule[1].gross_amount, Decimal("500"))
        self.assertEqual(schedule[1].due_date, date(2024, 3, 1))

    def test_same_inputs_give_same_schedule(self):
        fee = FeeResolution(Decimal("4.2"), 30, uuid.uuid4())
        s = split(PaymentMethod.CREDIT_CARD, "1234.56", installments=5)

        def key(schedule):
            return [(i.amount, i.gross_amount, i.fee_amount, i.due_date) for i in schedule]

        self.assertEqual(key(self.scheduler.schedule(s, BASE, fee)), key(self.scheduler.schedule(s, BASE, fee)))

    def test_card_split_requires_fee(self):
        with self.assertRaises(ValueError):
            self.scheduler.schedule(split(PaymentMethod.CREDIT_CARD, "100"), BASE)


class SettlementServiceTests(SimpleTestCase):
    def _service(self, rules=(), days=30):
        return SettlementService(
            validator=PaymentSplitValidator(),
            resolver=FeeRuleResolver(FakeFeeRuleRepo(rules)),
            scheduler=InstallmentScheduler(),
            settings_repo=FakeSettingsRepo(days),
        )

    def test_mixed_payment(self):
        """R$ 400 à vista + R$ 600 em 2x no crédito (3 %)."""
        cash = split(PaymentMethod.CASH_PIX, "400", stubs=[InstallmentStub(due_date=BASE)])
        credit = split(PaymentMethod.CREDIT_CARD, "600", installments=2, operator="Stone")

        fallbacks = self._service([rule(2, "3")]).settle(WS, Decimal("1000"), BASE, [cash, credit])

        self.assertEqual(fallbacks, 0)
        self.assertEqual([i.amount for i in cash.schedule], [Decimal("400")])
        self.assertEqual([i.amount for i in credit.schedule], [Decimal("291.00")] * 2)
        self.assertEqual([i.due_date for i in credit.schedule], [date(2024, 1, 31), date(2024, 3, 1)])

    def test_counts_fee_fallbacks(self):
        credit = split(PaymentMethod.CREDIT_CARD, "300", installments=3)
        fallbacks = self._service(days=10).settle(WS, Decimal("300"), BASE, [credit])

        self.assertEqual(fallbacks, 1)
        self.assertEqual([i.amount for i in credit.schedule], [Decimal("100.00")] * 3)
        self.assertEqual(credit.schedule[0].due_date, date(2024, 1, 11))

    def test_invalid_splits_produce_no_schedule(self):
        cash = split(PaymentMethod.CASH_PIX, "100")
        with self.assertRaises(ReconciliationError):
            self._service().settle(WS, Decimal("200"), BASE, [cash])
        self.assertEqual(cash.schedule, [])
