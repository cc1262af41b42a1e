from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Any

import structlog
from django.utils import timezone

from financial_engine.adapters.observability.metrics import AGGREGATION_DURATION
from financial_engine.core.application.dtos.cashflow_dto import PeriodDTO
from financial_engine.core.application.dtos.dashboard_dto import (
    AgingDTO,
    ChartsDTO,
    ConversionDTO,
    DashboardStatsDTO,
    FinancialDTO,
    MethodAmountDTO,
    OperationsDTO,
    PatientsDTO,
    ProcedureRankingDTO,
    RevenueTrendDTO,
    RoleCostDTO,
    SessionStatusDTO,
)
from financial_engine.core.application.dtos.formatting import money, percent
from financial_engine.core.application.services.cashflow_service import period_from_filtros
from financial_engine.core.domain.repositories.card_fee_rule_repository import CardFeeRuleRepository
from financial_engine.core.domain.repositories.report_repository import FinancialReportRepository
from financial_engine.core.domain.repositories.workspace_settings_repository import WorkspaceSettingsRepository
from financial_engine.core.domain.services.period_service import trailing_months
from financial_engine.core.domain.services.revenue_engine import RevenueRecognitionEngine

logger = structlog.get_logger(__name__)

TREND_MONTHS = 6

# ordem fixa do gráfico de sessões
SESSION_STATUS_LABELS = (
    ("COMPLETED", "Concluídas"),
    ("PENDING", "Pendentes"),
    ("CANCELLED", "Canceladas"),
)


class DashboardService:
    """
    Monta o painel financeiro do workspace.

    Métricas de receita, operação, conversão e pacientes respeitam o período
    pedido; o gráfico de status de sessão e o aging de recebíveis são sempre
    calculados sobre o workspace inteiro a partir de hoje.
    """

    def __init__(
        self,
        report_repo: FinancialReportRepository,
        fee_rule_repo: CardFeeRuleRepository,
        settings_repo: WorkspaceSettingsRepository,
    ):
        self.report_repo = report_repo
        self.fee_rule_repo = fee_rule_repo
        self.settings_repo = settings_repo

    def get_stats(self, workspace_id: uuid.UUID, filtros: dict[str, Any] | None = None) -> DashboardStatsDTO:
        today = timezone.localdate()
        period = period_from_filtros(filtros, today)

        with AGGREGATION_DURATION.labels(report="dashboard").time():
            engine = RevenueRecognitionEngine(self.fee_rule_repo.list_active(workspace_id))
            tax_rate = self.settings_repo.get(workspace_id).tax_rate
            sales = self.report_repo.revenue_sales(workspace_id, period.start, period.end)

            fin = engine.financials(sales, tax_rate)
            ops = engine.operations(sales)
            conversion = engine.conversion(self.report_repo.quote_statuses(workspace_id, period.start, period.end))
            aging = engine.aging(self.report_repo.pending_receivables(workspace_id, today), today)
            new_patients, total_patients = self.report_repo.patient_counts(workspace_id, period.start, period.end)
            sessions = self.report_repo.session_status_counts(workspace_id)

            # uma consulta por mês
            trend = [
                RevenueTrendDTO(
                    month=month.start.strftime("%Y-%m"),
                    revenue=money(self.report_repo.sales_total(workspace_id, month.start, month.end)),
                )
                for month in trailing_months(today, TREND_MONTHS)
            ]

            dto = DashboardStatsDTO(
                period=PeriodDTO(startDate=period.start.isoformat(), endDate=period.end.isoformat()),
                financial=FinancialDTO(
                    grossRevenue=money(fin.gross_revenue),
                    supplyCosts=money(fin.supply_costs),
                    laborCosts=money(fin.labor_costs),
                    estimatedTaxes=money(fin.estimated_taxes),
                    cardFees=money(fin.card_fees),
                    totalDeductions=money(fin.total_deductions),
                    netRevenue=money(fin.net_revenue),
                    taxRate=float(tax_rate),
                ),
                operations=OperationsDTO(
                    completedSales=ops.completed_sales,
                    totalSales=ops.total_sales,
                    completedSessions=ops.completed_sessions,
                    pendingSessions=ops.pending_sessions,
                    totalSessions=ops.total_sessions,
                ),
                patients=PatientsDTO(
                    newPatients=new_patients,
                    totalPatients=total_patients,
                    newPatientRate=percent(
                        Decimal(new_patients) / Decimal(total_patients) * 100 if total_patients else Decimal("0")
                    ),
                ),
                conversion=ConversionDTO(
                    totalQuotes=conversion.total_quotes,
                    convertedQuotes=conversion.converted_quotes,
                    conversionRate=percent(conversion.conversion_rate),
                    byStatus=conversion.by_status,
                ),
                receivables=AgingDTO(
                    next30Days=money(aging.next_30_days),
                    next60Days=money(aging.next_60_days),
                    next90Days=money(aging.next_90_days),
                    total=money(aging.total),
                    count=aging.count,
                ),
                charts=ChartsDTO(
                    revenueTrend=trend,
                    paymentMethods=[
                        MethodAmountDTO(method=method, amount=money(amount))
                        for method, amount in engine.payment_methods(sales).items()
                    ],
                    sessionStatus=[
                        SessionStatusDTO(status=label, count=sessions.get(status, 0))
                        for status, label in SESSION_STATUS_LABELS
                    ],
                ),
                topProcedures=[
                    ProcedureRankingDTO(name=p.name, count=p.count, revenue=money(p.revenue))
                    for p in engine.top_procedures(sales)
                ],
                professionalCosts=[
                    RoleCostDTO(role=r.role, hourlyCost=money(r.hourly_cost), professionals=r.professionals)
                    for r in engine.hourly_costs(self.report_repo.collaborator_costs(workspace_id))
                ],
            )

        logger.info(
            "dashboard.built",
            workspace_id=str(workspace_id),
            start=period.start.isoformat(),
            end=period.end.isoformat(),
            sales=ops.total_sales,
        )
        return dto
