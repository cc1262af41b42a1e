from clinic_core.core.application.cqrs import QueryHandler

from financial_engine.core.application.dtos.cashflow_dto import CashFlowDTO
from financial_engine.core.application.dtos.commission_dto import CommissionReportDTO
from financial_engine.core.application.dtos.dashboard_dto import DashboardStatsDTO
from financial_engine.core.application.queries.report_queries import (
    GetCashFlowQuery,
    GetCommissionReportQuery,
    GetDashboardStatsQuery,
)
from financial_engine.core.application.services.cashflow_service import CashFlowService
from financial_engine.core.application.services.commission_service import CommissionReportService
from financial_engine.core.application.services.dashboard_service import DashboardService


class GetCashFlowHandler(QueryHandler[GetCashFlowQuery, CashFlowDTO]):
    def __init__(self, service: CashFlowService):
        self.service = service

    def handle(self, q: GetCashFlowQuery) -> CashFlowDTO:
        return self.service.get_cash_flow(q.workspace_id, q.filtros or {})


class GetDashboardStatsHandler(QueryHandler[GetDashboardStatsQuery, DashboardStatsDTO]):
    def __init__(self, service: DashboardService):
        self.service = service

    def handle(self, q: GetDashboardStatsQuery) -> DashboardStatsDTO:
        return self.service.get_stats(q.workspace_id, q.filtros or {})


class GetCommissionReportHandler(QueryHandler[GetCommissionReportQuery, CommissionReportDTO]):
    def __init__(self, service: CommissionReportService):
        self.service = service

    def handle(self, q: GetCommissionReportQuery) -> CommissionReportDTO:
        return self.service.get_report(q.workspace_id, q.filtros or {})
