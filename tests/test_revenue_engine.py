import uuid
from datetime import date
from decimal import Decimal

from django.test import SimpleTestCase

from financial_engine.core.domain.entities.card_fee_rule_entity import CardFeeRuleEntity
from financial_engine.core.domain.entities.enums import CardType, PaymentMethod
from financial_engine.core.domain.services.revenue_engine import (
    CollaboratorCost,
    CommissionLine,
    PendingReceivable,
    RevenueItem,
    RevenueRecognitionEngine,
    RevenueSale,
    RevenueSplit,
    SupplyLine,
)

PROC = uuid.uuid4()


def fee_rule(card_type, count, fee, operator="Stone"):
    return CardFeeRuleEntity(
        id=uuid.uuid4(),
        workspace_id=uuid.uuid4(),
        card_operator=operator,
        card_type=card_type,
        installment_count=count,
        fee_percentage=Decimal(fee),
        receiving_days=30,
    )


def sale_with_card(split_method=PaymentMethod.CREDIT_CARD):
    item = RevenueItem(
        procedure_id=PROC,
        procedure_name="Clareamento",
        quantity=2,
        unit_price=Decimal("500"),
        supplies=(SupplyLine(cost_per_unit=Decimal("10"), quantity=Decimal("1.5")),),
        commissions=(
            CommissionLine("PERCENTAGE", Decimal("10")),
            CommissionLine("FIXED", Decimal("20")),
        ),
    )
    return RevenueSale(
        total_amount=Decimal("1000"),
        items=(item,),
        splits=(RevenueSplit(split_method, Decimal("1000"), 3, "Stone"),),
    )


class FinancialsTests(SimpleTestCase):
    """Receita líquida = bruto − insumos − mão de obra − impostos − taxas de cartão."""

    def test_net_revenue_breakdown(self):
        engine = RevenueRecognitionEngine([fee_rule(CardType.CREDIT, 3, "5")])
        fin = engine.financials([sale_with_card()], Decimal("0.15"))

        self.assertEqual(fin.gross_revenue, Decimal("1000"))
        self.assertEqual(fin.supply_costs, Decimal("30"))
        self.assertEqual(fin.labor_costs, Decimal("140"))
        self.assertEqual(fin.estimated_taxes, Decimal("150"))
        self.assertEqual(fin.card_fees, Decimal("50"))
        self.assertEqual(fin.total_deductions, Decimal("370"))
        self.assertEqual(fin.net_revenue, Decimal("630"))

    def test_only_credit_card_splits_pay_fees(self):
        engine = RevenueRecognitionEngine([fee_rule(CardType.DEBIT, 3, "2")])
        self.assertEqual(engine.financials([sale_with_card(PaymentMethod.DEBIT_CARD)], Decimal("0")).card_fees, 0)

    def test_unconfigured_tier_costs_nothing(self):
        engine = RevenueRecognitionEngine([fee_rule(CardType.CREDIT, 1, "5")])
        self.assertEqual(engine.card_fees(sale_with_card().splits), Decimal("0"))


class OperationsTests(SimpleTestCase):
    def test_sessions_and_completed_sales(self):
        sales = [
            RevenueSale(Decimal("100"), session_statuses=("COMPLETED", "COMPLETED")),
            RevenueSale(Decimal("100"), session_statuses=("COMPLETED", "PENDING")),
            RevenueSale(Decimal("100")),
        ]
        ops = RevenueRecognitionEngine.operations(sales)
        self.assertEqual(
            (ops.completed_sales, ops.total_sales, ops.completed_sessions, ops.pending_sessions, ops.total_sessions),
            (1, 3, 3, 1, 4),
        )

    def test_payment_methods_fall_back_to_legacy_field(self):
        sales = [
            RevenueSale(Decimal("300"), legacy_payment_method="BANK_SLIP"),
            sale_with_card(),
        ]
        self.assertEqual(
            RevenueRecognitionEngine.payment_methods(sales),
            {"BANK_SLIP": Decimal("300"), "CREDIT_CARD": Decimal("1000")},
        )

    def test_top_procedures(self):
        ranking = RevenueRecognitionEngine.top_procedures([sale_with_card(), sale_with_card()])
        self.assertEqual(len(ranking), 1)
        self.assertEqual((ranking[0].name, ranking[0].count, ranking[0].revenue), ("Clareamento", 4, Decimal("2000")))


class HourlyCostTests(SimpleTestCase):
    def test_cost_per_hour_by_role(self):
        roles = RevenueRecognitionEngine.hourly_costs([
            CollaboratorCost("Dentista", Decimal("4000"), Decimal("800"), 160),
            CollaboratorCost("Dentista", Decimal("5600"), Decimal("1200"), 160),
            CollaboratorCost("Auxiliar", Decimal("2000"), Decimal("400"), 200),
            CollaboratorCost("Estagiário", Decimal("800"), Decimal("0"), 0),
        ])
        self.assertEqual([r.role for r in roles], ["Dentista", "Auxiliar", "Estagiário"])
        self.assertEqual(roles[0].hourly_cost, Decimal("36.25"))
        self.assertEqual(roles[0].professionals, 2)
        self.assertEqual(roles[1].hourly_cost, Decimal("12"))
        self.assertEqual(roles[2].hourly_cost, Decimal("0"))


class ConversionAndAgingTests(SimpleTestCase):
    def test_conversion_rate(self):
        conv = RevenueRecognitionEngine.conversion(["ACCEPTED", "SENT", "ACCEPTED", "REJECTED"])
        self.assertEqual(conv.total_quotes, 4)
        self.assertEqual(conv.converted_quotes, 2)
        self.assertEqual(conv.conversion_rate, Decimal("50"))
        self.assertEqual(conv.by_status["SENT"], 1)

    def test_no_quotes_means_zero_rate(self):
        self.assertEqual(RevenueRecognitionEngine.conversion([]).conversion_rate, Decimal("0"))

    def test_aging_buckets(self):
        today = date(2024, 5, 1)
        aging = RevenueRecognitionEngine.aging(
            [
                PendingReceivable(date(2024, 5, 1), Decimal("10")),
                PendingReceivable(date(2024, 5, 31), Decimal("20")),
                PendingReceivable(date(2024, 6, 1), Decimal("30")),
                PendingReceivable(date(2024, 7, 30), Decimal("40")),
                PendingReceivable(date(2024, 8, 15), Decimal("50")),
                PendingReceivable(date(2024, 4, 30), Decimal("999")),
            ],
            today,
        )
        self.assertEqual(aging.next_30_days, Decimal("30"))
        self.assertEqual(aging.next_60_days, Decimal("30"))
        self.assertEqual(aging.next_90_days, Decimal("40"))
        self.assertEqual(aging.total, Decimal("150"))
        self.assertEqual(aging.count, 5)
