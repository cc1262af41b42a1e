"""
Fluxos de ponta a ponta pela API REST: vendas com cronograma de parcelas,
baixa concorrente, custos, orçamentos e relatórios cacheados por workspace.
"""

from decimal import Decimal
from io import StringIO

from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from plugins.django_interface.models import CardFeeRule, Collaborator, Cost, PaymentInstallment, Quote, Sale
from tests.helpers.factories import make_fee_rule, make_workspace, sale_payload


class ApiTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.workspace, self.user, self.patient, self.procedure = make_workspace()
        self.client = APIClient()
        self.client.force_authenticate(self.user)

    def create_sale(self, **kwargs):
        resp = self.client.post(reverse("sales-list"), sale_payload(self.patient, self.procedure, **kwargs), format="json")
        self.assertEqual(resp.status_code, 201, resp.content)
        return resp.json()


class SaleApiTests(ApiTestCase):
    def test_credit_card_sale_generates_fee_adjusted_schedule(self):
        make_fee_rule(self.workspace, 3, "5.00")
        sale = self.create_sale(splits=[{
            "paymentMethod": "CREDIT_CARD",
            "amount": "900.00",
            "installments": 3,
            "cardOperator": "Stone",
            "installmentDetails": [{}, {}, {}],
        }])

        schedule = sale["paymentSplits"][0]["schedule"]
        self.assertEqual([i["amount"] for i in schedule], ["285.00"] * 3)
        self.assertEqual([i["grossAmount"] for i in schedule], ["300.00"] * 3)
        self.assertEqual([i["feeAmount"] for i in schedule], ["15.00"] * 3)
        self.assertEqual([i["dueDate"] for i in schedule], ["2024-01-31", "2024-03-01", "2024-03-31"])
        self.assertEqual(sale["totalSessions"], 1)
        self.assertEqual(PaymentInstallment.objects.filter(payment_split__sale_id=sale["id"]).count(), 3)

    def test_unreconciled_splits_are_rejected_without_writes(self):
        resp = self.client.post(
            reverse("sales-list"),
            sale_payload(self.patient, self.procedure, splits=[
                {"paymentMethod": "CASH_PIX", "amount": "800.00", "installments": 1, "installmentDetails": [{}]},
            ]),
            format="json",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["code"], "reconciliation_error")
        self.assertEqual(resp.json()["computed_total"], "800.00")
        self.assertFalse(Sale.objects.exists())

    def test_missing_installment_details_are_rejected(self):
        resp = self.client.post(
            reverse("sales-list"),
            sale_payload(self.patient, self.procedure, splits=[
                {"paymentMethod": "BANK_SLIP", "amount": "900.00", "installments": 3, "installmentDetails": [{}]},
            ]),
            format="json",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["code"], "incomplete_schedule")
        self.assertFalse(PaymentInstallment.objects.exists())

    def test_malformed_payload(self):
        payload = sale_payload(self.patient, self.procedure)
        payload["items"] = []
        resp = self.client.post(reverse("sales-list"), payload, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["code"], "invalid_payload")

    def test_patient_from_other_workspace_is_not_found(self):
        _, _, foreign_patient, _ = make_workspace(name="Outra", username="outra")
        resp = self.client.post(
            reverse("sales-list"), sale_payload(foreign_patient, self.procedure), format="json"
        )
        self.assertEqual(resp.status_code, 404)

    def test_sales_are_scoped_by_workspace(self):
        sale = self.create_sale()
        _, other_user, _, _ = make_workspace(name="Outra", username="outra")
        other = APIClient()
        other.force_authenticate(other_user)

        self.assertEqual(other.get(reverse("sales-detail", args=[sale["id"]])).status_code, 404)
        self.assertEqual(other.get(reverse("sales-list")).json()["total_items"], 0)
        self.assertEqual(self.client.get(reverse("sales-list")).json()["total_items"], 1)

    def test_delete_sale(self):
        sale = self.create_sale()
        self.assertEqual(self.client.delete(reverse("sales-detail", args=[sale["id"]])).status_code, 204)
        self.assertEqual(self.client.get(reverse("sales-detail", args=[sale["id"]])).status_code, 404)

    def test_requires_authentication(self):
        self.assertIn(APIClient().get(reverse("sales-list")).status_code, (401, 403))

    def test_user_without_workspace(self):
        from django.contrib.auth import get_user_model

        loner = get_user_model().objects.create_user(username="sem_vinculo", password="x")
        client = APIClient()
        client.force_authenticate(loner)
        self.assertEqual(client.get(reverse("sales-list")).status_code, 404)


class SettlementApiTests(ApiTestCase):
    def _first_installment(self, **kwargs):
        sale = self.create_sale(**kwargs)
        return sale["paymentSplits"][0]["schedule"][0]["id"]

    def test_second_settle_is_a_conflict(self):
        inst_id = self._first_installment()
        url = reverse("installments-settle", args=[inst_id])

        first = self.client.post(url)
        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.json()["status"], "PAID")
        self.assertIsNotNone(first.json()["paidDate"])

        second = self.client.post(url)
        self.assertEqual(second.status_code, 409)
        self.assertEqual(second.json()["code"], "installment_not_pending")
        self.assertEqual(second.json()["error"], "Parcela já foi liquidada")

    def test_overdue_sweep_then_settle(self):
        inst_id = self._first_installment(splits=[{
            "paymentMethod": "BANK_SLIP",
            "amount": "900.00",
            "installments": 1,
            "installmentDetails": [{"dueDate": "2024-01-10"}],
        }])

        out = StringIO()
        call_command("mark_overdue_installments", "--date", "2024-02-01", stdout=out)
        self.assertIn("1 parcela(s)", out.getvalue())
        self.assertEqual(PaymentInstallment.objects.get(id=inst_id).status, "OVERDUE")

        resp = self.client.post(reverse("installments-settle", args=[inst_id]))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(PaymentInstallment.objects.get(id=inst_id).status, "PAID")

    def test_unknown_installment(self):
        resp = self.client.post(reverse("installments-settle", args=["00000000-0000-0000-0000-000000000000"]))
        self.assertEqual(resp.status_code, 404)


class CostApiTests(ApiTestCase):
    def test_installment_cost_is_materialized(self):
        resp = self.client.post(reverse("costs-list"), {
            "description": "Cadeira odontológica",
            "costType": "FIXED",
            "fixedValue": "6000.00",
            "recurrenceType": "INSTALLMENTS",
            "totalInstallments": 6,
            "nextRecurrenceDate": "2024-01-31",
        }, format="json")
        self.assertEqual(resp.status_code, 201, resp.content)
        installments = resp.json()["installments"]
        self.assertEqual(len(installments), 6)
        self.assertEqual({i["amount"] for i in installments}, {"1000.00"})
        self.assertEqual(installments[1]["dueDate"], "2024-02-29")

    def test_invalid_cost_is_rejected(self):
        resp = self.client.post(
            reverse("costs-list"), {"description": "Imposto", "costType": "PERCENTAGE", "percentage": "120"}, format="json"
        )
        self.assertEqual(resp.status_code, 400)

    def test_soft_delete_hides_cost(self):
        cost = self.client.post(
            reverse("costs-list"), {"description": "Luz", "costType": "FIXED", "fixedValue": "300"}, format="json"
        ).json()
        self.assertEqual(self.client.delete(reverse("costs-detail", args=[cost["id"]])).status_code, 204)
        self.assertEqual(self.client.get(reverse("costs-list")).json(), [])

    def test_variable_cost_summary(self):
        self.client.post(reverse("costs-list"), {
            "description": "Simples Nacional", "costType": "PERCENTAGE", "category": "TAX", "percentage": "6",
        }, format="json")
        self.client.post(reverse("costs-list"), {
            "description": "Comissão", "costType": "PERCENTAGE", "category": "COMMISSION", "percentage": "10",
        }, format="json")

        data = self.client.get(reverse("costs-variable")).json()
        self.assertEqual(data["totalPercentage"], 16.0)
        self.assertEqual(data["taxBurden"], 6.0)
        self.assertEqual(data["summary"]["totalCount"], 2)

    def _recurring_rent(self):
        resp = self.client.post(reverse("costs-list"), {
            "description": "Aluguel",
            "costType": "FIXED",
            "fixedValue": "2000.00",
            "recurrenceType": "INDEFINITE",
            "recurrenceFrequency": "MONTHLY",
            "paymentDate": "2024-01-10",
        }, format="json")
        self.assertEqual(resp.status_code, 201, resp.content)
        return resp.json()

    def test_recurring_cost_is_replicated_once_per_occurrence(self):
        rent = self._recurring_rent()
        self.assertEqual(rent["nextReplicationDate"], "2024-02-10")

        out = StringIO()
        call_command("replicate_recurring_costs", "--date", "2024-03-15", stdout=out)
        self.assertIn("2 custo(s)", out.getvalue())
        replicas = Cost.objects.filter(replicated_from_id=rent["id"]).order_by("payment_date")
        self.assertEqual([c.payment_date.isoformat() for c in replicas], ["2024-02-10", "2024-03-10"])
        self.assertEqual({c.recurrence_type for c in replicas}, {"NONE"})
        self.assertEqual(Cost.objects.get(id=rent["id"]).next_replication_date.isoformat(), "2024-04-10")

        call_command("replicate_recurring_costs", "--date", "2024-03-15", stdout=StringIO())
        self.assertEqual(Cost.objects.filter(replicated_from_id=rent["id"]).count(), 2)

        # cópias lançadas + projeção do pai: cada mês conta uma vez
        data = self.client.get(reverse("cashflow"), {"startDate": "2024-01-01", "endDate": "2024-04-30"}).json()
        self.assertEqual(data["summary"]["totalExpenses"], "8000.00")

    def test_pending_recurrences_are_processed(self):
        rent = self._recurring_rent()
        pending = self.client.get(reverse("costs-recurrence-pending")).json()
        self.assertEqual(pending["pendingCount"], 1)
        self.assertEqual(pending["pending"][0]["id"], rent["id"])
        self.assertEqual(pending["totalRecurring"], 1)

        resp = self.client.post(reverse("costs-recurrence-process"))
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertGreater(body["processedCount"], 0)
        self.assertEqual(len(body["details"]), body["processedCount"])
        self.assertEqual(body["details"][0]["paymentDate"], "2024-02-10")
        self.assertEqual(self.client.get(reverse("costs-recurrence-pending")).json()["pendingCount"], 0)


class CardFeeApiTests(ApiTestCase):
    PAYLOAD = {
        "cardOperator": "Cielo",
        "cardType": "CREDIT",
        "receivingDays": 30,
        "installments": [{"count": 1, "feePercentage": "2.5"}, {"count": 2, "feePercentage": "3.2"}],
    }

    def test_duplicate_tier_is_a_conflict(self):
        self.assertEqual(self.client.post(reverse("card_fees-list"), self.PAYLOAD, format="json").status_code, 201)

        dup = dict(self.PAYLOAD, installments=[{"count": 2, "feePercentage": "3.0"}])
        resp = self.client.post(reverse("card_fees-list"), dup, format="json")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["installments"], [2])

    def test_deactivated_rule_leaves_the_table(self):
        rules = self.client.post(reverse("card_fees-list"), self.PAYLOAD, format="json").json()
        self.client.delete(reverse("card_fees-detail", args=[rules[0]["id"]]))
        self.assertEqual(len(self.client.get(reverse("card_fees-list")).json()), 1)

    def test_group_replace_swaps_all_tiers(self):
        self.client.post(reverse("card_fees-list"), self.PAYLOAD, format="json")
        new = dict(self.PAYLOAD, installments=[
            {"count": 1, "feePercentage": "1.9"},
            {"count": 3, "feePercentage": "4.5"},
            {"count": 6, "feePercentage": "7.0"},
        ])
        resp = self.client.patch(reverse("card_fees-group"), new, format="json")
        self.assertEqual(resp.status_code, 200, resp.content)

        rules = self.client.get(reverse("card_fees-list")).json()
        self.assertEqual(
            [(r["installmentCount"], r["feePercentage"]) for r in rules],
            [(1, "1.90"), (3, "4.50"), (6, "7.00")],
        )
        self.assertEqual(CardFeeRule.objects.filter(card_operator="Cielo", is_active=False).count(), 2)

    def test_group_delete_deactivates_operator(self):
        self.client.post(reverse("card_fees-list"), self.PAYLOAD, format="json")
        make_fee_rule(self.workspace, 1, operator="Stone")

        resp = self.client.delete(reverse("card_fees-group") + "?operator=Cielo&type=CREDIT")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["deactivated"], 2)
        self.assertEqual([r["cardOperator"] for r in self.client.get(reverse("card_fees-list")).json()], ["Stone"])

    def test_group_delete_requires_operator_and_type(self):
        url = reverse("card_fees-group")
        self.assertEqual(self.client.delete(url + "?operator=Cielo").status_code, 400)
        self.assertEqual(self.client.delete(url + "?operator=Cielo&type=PIX").status_code, 400)


class QuoteApiTests(ApiTestCase):
    def _quote(self):
        resp = self.client.post(reverse("quotes-list"), {
            "patientId": str(self.patient.id),
            "title": "Implante",
            "items": [{
                "procedureId": str(self.procedure.id),
                "description": "Implante unitário",
                "quantity": 1,
                "unitPrice": "1000.00",
            }],
            "discountPercent": "10",
        }, format="json")
        self.assertEqual(resp.status_code, 201, resp.content)
        return resp.json()

    def test_create_prices_discount(self):
        quote = self._quote()
        self.assertEqual(quote["totalAmount"], "1000.00")
        self.assertEqual(quote["discountAmount"], "100.00")
        self.assertEqual(quote["finalAmount"], "900.00")
        self.assertEqual(quote["status"], "PENDING")

    def test_convert_uses_the_settlement_path(self):
        make_fee_rule(self.workspace, 3, "5.00")
        quote = self._quote()
        sent = self.client.patch(reverse("quotes-detail", args=[quote["id"]]), {"status": "SENT"}, format="json")
        self.assertIsNotNone(sent.json()["sentDate"])

        resp = self.client.post(reverse("quotes-convert", args=[quote["id"]]), {
            "saleDate": "2024-01-01",
            "paymentSplits": [
                {"paymentMethod": "CREDIT_CARD", "amount": "900.00", "installments": 3, "cardOperator": "Stone"},
            ],
        }, format="json")
        self.assertEqual(resp.status_code, 201, resp.content)
        sale = resp.json()["sale"]
        self.assertEqual(sale["totalAmount"], "900.00")
        self.assertEqual([i["amount"] for i in sale["paymentSplits"][0]["schedule"]], ["285.00"] * 3)

        stored = Quote.objects.get(id=quote["id"])
        self.assertEqual(stored.status, "ACCEPTED")
        self.assertEqual(str(stored.sale_id), sale["id"])
        self.assertIsNotNone(stored.accepted_date)

    def test_converted_quote_is_locked(self):
        quote = self._quote()
        convert = reverse("quotes-convert", args=[quote["id"]])
        body = {"paymentSplits": [{"paymentMethod": "CASH_PIX", "amount": "900.00"}]}
        self.assertEqual(self.client.post(convert, body, format="json").status_code, 201)

        again = self.client.post(convert, body, format="json")
        self.assertEqual(again.status_code, 409)
        self.assertEqual(again.json()["code"], "terminal_state")
        self.assertEqual(self.client.delete(reverse("quotes-detail", args=[quote["id"]])).status_code, 409)
        reject = self.client.patch(reverse("quotes-detail", args=[quote["id"]]), {"status": "REJECTED"}, format="json")
        self.assertEqual(reject.status_code, 409)
        self.assertEqual(Sale.objects.count(), 1)

    def test_conversion_must_reconcile_with_final_amount(self):
        quote = self._quote()
        resp = self.client.post(reverse("quotes-convert", args=[quote["id"]]), {
            "paymentSplits": [{"paymentMethod": "CASH_PIX", "amount": "1000.00"}],
        }, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(Quote.objects.get(id=quote["id"]).status, "PENDING")


class ReportApiTests(ApiTestCase):
    """Janeiro/2024: venda de R$ 1000 (400 à vista + 600 em 2x no crédito a 3 %)."""

    QUERY = {"startDate": "2024-01-01", "endDate": "2024-01-31"}

    def setUp(self):
        super().setUp()
        make_fee_rule(self.workspace, 2, "3.00")
        self.create_sale(total="1000.00", splits=[
            {"paymentMethod": "CASH_PIX", "amount": "400.00", "installmentDetails": [{"dueDate": "2024-01-10"}]},
            {
                "paymentMethod": "CREDIT_CARD",
                "amount": "600.00",
                "installments": 2,
                "cardOperator": "Stone",
                "installmentDetails": [{}, {}],
            },
        ])
        self.client.post(reverse("costs-list"), {
            "description": "Aluguel", "costType": "FIXED", "fixedValue": "500.00", "paymentDate": "2024-01-15",
        }, format="json")
        self.client.post(reverse("costs-list"), {
            "description": "Simples Nacional",
            "costType": "PERCENTAGE",
            "category": "TAX",
            "percentage": "10",
            "isRecurring": True,
        }, format="json")

    def test_cashflow_projection(self):
        data = self.client.get(reverse("cashflow"), self.QUERY).json()

        summary = data["summary"]
        self.assertEqual(summary["totalReceivables"], "691.00")
        self.assertEqual(summary["totalExpenses"], "600.00")
        self.assertEqual(summary["netCashFlow"], "91.00")
        self.assertEqual(summary["totalSales"], "1000.00")
        self.assertEqual(data["breakdowns"]["expensesByCategory"], {"Operacional": "500.00", "Impostos": "100.00"})
        self.assertEqual(len(data["dailyCashFlow"]), 31)
        self.assertEqual(data["paymentAnalysis"]["cashPercentage"], 40.0)

    def test_writes_invalidate_cached_reports(self):
        url = reverse("cashflow")
        self.assertEqual(self.client.get(url, self.QUERY).json()["summary"]["totalSales"], "1000.00")

        self.create_sale(total="500.00", sale_date="2024-01-05")
        self.assertEqual(self.client.get(url, self.QUERY).json()["summary"]["totalSales"], "1500.00")

    def test_dashboard_stats(self):
        data = self.client.get(reverse("dashboard-stats"), self.QUERY).json()

        self.assertEqual(data["financial"]["grossRevenue"], "1000.00")
        self.assertEqual(data["financial"]["cardFees"], "18.00")
        self.assertEqual(data["financial"]["estimatedTaxes"], "150.00")
        self.assertEqual(data["financial"]["taxRate"], 0.15)
        self.assertEqual(data["operations"]["totalSales"], 1)
        self.assertEqual(data["operations"]["totalSessions"], 1)
        charts = data["charts"]
        self.assertEqual(
            sorted(charts["paymentMethods"], key=lambda m: m["method"]),
            [{"method": "CASH_PIX", "amount": "400.00"}, {"method": "CREDIT_CARD", "amount": "600.00"}],
        )
        self.assertEqual(len(charts["revenueTrend"]), 6)
        self.assertEqual(
            charts["sessionStatus"],
            [
                {"status": "Concluídas", "count": 0},
                {"status": "Pendentes", "count": 1},
                {"status": "Canceladas", "count": 0},
            ],
        )
        self.assertEqual(set(data["receivables"]), {"next30Days", "next60Days", "next90Days", "total", "count"})
        self.assertEqual(data["professionalCosts"], [])
        self.assertEqual(data["conversion"]["totalQuotes"], 0)

    def test_healthz_is_public(self):
        self.assertEqual(APIClient().get(reverse("healthz")).status_code, 200)


class CommissionApiTests(ApiTestCase):
    """Ana recebe 10 % sobre a venda; Bruno, R$ 50 fixos por venda."""

    def setUp(self):
        super().setUp()
        self.ana = Collaborator.objects.create(
            workspace=self.workspace, name="Ana", role="Consultora",
            commission_type="PERCENTAGE", commission_value=Decimal("10"),
        )
        self.bruno = Collaborator.objects.create(
            workspace=self.workspace, name="Bruno", role="Consultor",
            commission_type="FIXED", commission_value=Decimal("50"),
        )

    def sale_by(self, seller_id, total, sale_date):
        payload = sale_payload(self.patient, self.procedure, total=total, sale_date=sale_date)
        payload["sellerId"] = str(seller_id)
        return self.client.post(reverse("sales-list"), payload, format="json")

    def test_commissions_by_seller(self):
        sale = self.sale_by(self.ana.id, "1000.00", "2024-03-05").json()
        self.assertEqual(sale["sellerId"], str(self.ana.id))
        self.sale_by(self.bruno.id, "400.00", "2024-03-10")
        self.sale_by(self.ana.id, "500.00", "2024-05-01")
        self.create_sale(total="700.00", sale_date="2024-03-12")

        data = self.client.get(reverse("commissions"), {"startDate": "2024-03-01", "endDate": "2024-03-31"}).json()
        self.assertEqual(data["summary"], {"totalSalesValue": "1400.00", "totalCommission": "150.00", "salesCount": 2})
        ana, bruno = data["sellers"]
        self.assertEqual((ana["sellerName"], ana["totalCommission"]), ("Ana", "100.00"))
        self.assertEqual(bruno["sales"][0]["commissionRate"], 12.5)
        self.assertEqual(bruno["sales"][0]["patientName"], "Maria Souza")

    def test_seller_filter_without_dates_covers_all_sales(self):
        self.sale_by(self.ana.id, "1000.00", "2024-03-05")
        self.sale_by(self.ana.id, "500.00", "2024-05-01")
        self.sale_by(self.bruno.id, "400.00", "2024-03-10")

        data = self.client.get(reverse("commissions"), {"sellerId": str(self.ana.id)}).json()
        self.assertIsNone(data["startDate"])
        self.assertEqual(data["summary"]["salesCount"], 2)
        self.assertEqual(data["summary"]["totalCommission"], "150.00")

    def test_unknown_seller_is_not_found(self):
        resp = self.sale_by("00000000-0000-0000-0000-000000000000", "900.00", "2024-03-05")
        self.assertEqual(resp.status_code, 404)
        self.assertFalse(Sale.objects.exists())
