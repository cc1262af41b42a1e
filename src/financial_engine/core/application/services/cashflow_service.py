from __future__ import annotations

import uuid
from datetime import date
from typing import Any

import structlog
from django.utils import timezone

from financial_engine.adapters.observability.metrics import AGGREGATION_DURATION
from financial_engine.core.application.dtos.cashflow_dto import (
    BreakdownsDTO,
    CashFlowDTO,
    CashFlowSummaryDTO,
    DailyFlowDTO,
    ExpenseDTO,
    MethodMixDTO,
    PaymentAnalysisDTO,
    PeriodDTO,
    ReceivableDTO,
)
from financial_engine.core.application.dtos.formatting import money, percent
from financial_engine.core.domain.events.exceptions import ValidationFailedError
from financial_engine.core.domain.repositories.cost_repository import CostRepository
from financial_engine.core.domain.repositories.report_repository import FinancialReportRepository
from financial_engine.core.domain.services.cashflow_aggregator import CashFlowAggregator, CashFlowReport
from financial_engine.core.domain.services.cost_expander import LedgerEntry, RecurringCostExpander
from financial_engine.core.domain.services.period_service import Period, resolve_period

logger = structlog.get_logger(__name__)


def as_date(value: Any, name: str) -> date | None:
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise ValidationFailedError(f"Data inválida em '{name}'", field=name, value=str(value)) from exc


def period_from_filtros(filtros: dict[str, Any] | None, today: date) -> Period:
    """Converte os filtros da query (period/start_date/end_date) num intervalo fechado."""
    filtros = filtros or {}
    start = as_date(filtros.get("start_date"), "startDate")
    end = as_date(filtros.get("end_date"), "endDate")
    # datas explícitas sem preset valem como intervalo personalizado
    period = filtros.get("period") or ("custom" if start and end else None)
    return resolve_period(period, today, start, end)


class CashFlowService:
    def __init__(
        self,
        report_repo: FinancialReportRepository,
        cost_repo: CostRepository,
        expander: RecurringCostExpander,
        aggregator: CashFlowAggregator,
    ):
        self.report_repo = report_repo
        self.cost_repo = cost_repo
        self.expander = expander
        self.aggregator = aggregator

    def ledger(self, workspace_id: uuid.UUID, period: Period, today: date) -> list[LedgerEntry]:
        """Lançamentos de custo do intervalo: diretos, recorrências projetadas e parcelas."""
        entries: list[LedgerEntry] = []
        for cost in self.cost_repo.list_applicable(workspace_id, period.start, period.end):
            entries.extend(self.expander.expand(cost, period.start, period.end, today))
        for cost, inst in self.cost_repo.installments_due(workspace_id, period.start, period.end):
            entries.append(self.expander.installment_entry(cost, inst))
        return entries

    def report(self, workspace_id: uuid.UUID, period: Period, today: date | None = None) -> CashFlowReport:
        today = today or timezone.localdate()
        with AGGREGATION_DURATION.labels(report="cashflow").time():
            report = self.aggregator.aggregate(
                period.start,
                period.end,
                self.report_repo.receivables(workspace_id, period.start, period.end),
                self.ledger(workspace_id, period, today),
                self.report_repo.sales_total(workspace_id, period.start, period.end),
                self.report_repo.split_mix(workspace_id, period.start, period.end),
            )
        logger.info(
            "cashflow.aggregated",
            workspace_id=str(workspace_id),
            start=period.start.isoformat(),
            end=period.end.isoformat(),
            receivables=len(report.receivables),
            expenses=len(report.expenses),
        )
        return report

    def get_cash_flow(self, workspace_id: uuid.UUID, filtros: dict[str, Any] | None = None) -> CashFlowDTO:
        today = timezone.localdate()
        return self.to_dto(self.report(workspace_id, period_from_filtros(filtros, today), today))

    @staticmethod
    def to_dto(report: CashFlowReport) -> CashFlowDTO:
        analysis = report.payment_analysis
        return CashFlowDTO(
            summary=CashFlowSummaryDTO(
                totalReceivables=money(report.total_receivables),
                totalExpenses=money(report.total_expenses),
                netCashFlow=money(report.net_cash_flow),
                totalSales=money(report.total_sales),
                period=PeriodDTO(startDate=report.start.isoformat(), endDate=report.end.isoformat()),
            ),
            paymentAnalysis=PaymentAnalysisDTO(
                cashAmount=money(analysis.cash_amount),
                installmentAmount=money(analysis.installment_amount),
                cashPercentage=percent(analysis.cash_percentage),
                installmentPercentage=percent(analysis.installment_percentage),
                byMethod=[
                    MethodMixDTO(method=label, cash=money(mix.cash), installment=money(mix.installment), total=money(mix.total))
                    for label, mix in analysis.by_method.items()
                ],
            ),
            receivables=[
                ReceivableDTO(
                    id=str(r.id),
                    date=r.date.isoformat(),
                    amount=money(r.amount),
                    patientName=r.patient_name,
                    procedureName=r.procedure_name,
                    paymentMethod=r.payment_method.label,
                    installmentNumber=r.installment_number,
                    totalInstallments=r.total_installments,
                    status=r.status,
                )
                for r in report.receivables
            ],
            expenses=[
                ExpenseDTO(
                    id=str(e.id),
                    costId=str(e.cost_id),
                    date=e.date.isoformat(),
                    amount=money(e.amount),
                    description=e.description,
                    category=e.category,
                    customCategory=e.custom_category,
                    isRecurring=e.is_recurring,
                    percentage=float(e.percentage) if e.percentage is not None else None,
                )
                for e in report.expenses
            ],
            dailyCashFlow=[
                DailyFlowDTO(
                    date=d.date.isoformat(),
                    receivables=money(d.receivables),
                    expenses=money(d.expenses),
                    netFlow=money(d.net_flow),
                )
                for d in report.daily
            ],
            breakdowns=BreakdownsDTO(
                expensesByCategory={k: money(v) for k, v in report.expenses_by_category.items()},
                receivablesByMethod={k: money(v) for k, v in report.receivables_by_method.items()},
            ),
        )
