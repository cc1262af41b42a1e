from dataclasses import dataclass, field


@dataclass(frozen=True)
class SaleCommissionDTO:
    saleId: str
    saleDate: str
    patientName: str
    saleValue: str
    commissionRate: float
    commissionValue: str


@dataclass(frozen=True)
class SellerCommissionDTO:
    sellerId: str
    sellerName: str
    totalSales: str
    totalCommission: str
    salesCount: int
    sales: list[SaleCommissionDTO] = field(default_factory=list)


@dataclass(frozen=True)
class CommissionSummaryDTO:
    totalSalesValue: str
    totalCommission: str
    salesCount: int


@dataclass(frozen=True)
class CommissionReportDTO:
    startDate: str | None
    endDate: str | None
    sellers: list[SellerCommissionDTO]
    summary: CommissionSummaryDTO
