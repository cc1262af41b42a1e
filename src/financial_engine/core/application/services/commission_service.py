from __future__ import annotations

import uuid
from typing import Any

import structlog

from financial_engine.core.application.dtos.commission_dto import (
    CommissionReportDTO,
    CommissionSummaryDTO,
    SaleCommissionDTO,
    SellerCommissionDTO,
)
from financial_engine.core.application.dtos.formatting import money, percent
from financial_engine.core.application.services.cashflow_service import as_date
from financial_engine.core.domain.events.exceptions import ValidationFailedError
from financial_engine.core.domain.repositories.report_repository import FinancialReportRepository
from financial_engine.core.domain.services.commission_calculator import CommissionCalculator

logger = structlog.get_logger(__name__)


def _seller_filter(value: Any) -> uuid.UUID | None:
    if value in (None, ""):
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError as exc:
        raise ValidationFailedError("Vendedor inválido", field="sellerId", value=str(value)) from exc


class CommissionReportService:
    """Comissões de venda por vendedor; sem intervalo completo, considera todas as vendas."""

    def __init__(self, report_repo: FinancialReportRepository, calculator: CommissionCalculator):
        self.report_repo = report_repo
        self.calculator = calculator

    def get_report(self, workspace_id: uuid.UUID, filtros: dict[str, Any]) -> CommissionReportDTO:
        start = as_date(filtros.get("start_date"), "startDate")
        end = as_date(filtros.get("end_date"), "endDate")
        if start and end and start > end:
            raise ValidationFailedError("startDate deve ser anterior a endDate", field="startDate")
        if not (start and end):
            start = end = None

        sales = self.report_repo.seller_sales(workspace_id, start, end, _seller_filter(filtros.get("sellerId")))
        report = self.calculator.report(sales)
        logger.debug(
            "commissions.report",
            workspace_id=str(workspace_id),
            sellers=len(report.sellers),
            sales=report.sales_count,
        )

        return CommissionReportDTO(
            startDate=start.isoformat() if start else None,
            endDate=end.isoformat() if end else None,
            sellers=[
                SellerCommissionDTO(
                    sellerId=str(s.seller_id),
                    sellerName=s.seller_name,
                    totalSales=money(s.total_sales),
                    totalCommission=money(s.total_commission),
                    salesCount=s.sales_count,
                    sales=[
                        SaleCommissionDTO(
                            saleId=str(line.sale.sale_id),
                            saleDate=line.sale.sale_date.isoformat(),
                            patientName=line.sale.patient_name,
                            saleValue=money(line.sale.sale_value),
                            commissionRate=percent(line.rate),
                            commissionValue=money(line.amount),
                        )
                        for line in s.sales
                    ],
                )
                for s in report.sellers
            ],
            summary=CommissionSummaryDTO(
                totalSalesValue=money(report.total_sales_value),
                totalCommission=money(report.total_commission),
                salesCount=report.sales_count,
            ),
        )
