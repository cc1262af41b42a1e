from dataclasses import dataclass, field

from financial_engine.core.application.dtos.cashflow_dto import PeriodDTO


@dataclass(frozen=True)
class FinancialDTO:
    grossRevenue: str
    supplyCosts: str
    laborCosts: str
    estimatedTaxes: str
    cardFees: str
    totalDeductions: str
    netRevenue: str
    taxRate: float

@dataclass(frozen=True)
class OperationsDTO:
    completedSales: int
    totalSales: int
    completedSessions: int
    pendingSessions: int
    totalSessions: int

@dataclass(frozen=True)
class PatientsDTO:
    newPatients: int
    totalPatients: int
    newPatientRate: float

@dataclass(frozen=True)
class RevenueTrendDTO:
    month: str
    revenue: str

@dataclass(frozen=True)
class ProcedureRankingDTO:
    name: str
    count: int
    revenue: str

@dataclass(frozen=True)
class RoleCostDTO:
    role: str
    hourlyCost: str
    professionals: int

@dataclass(frozen=True)
class ConversionDTO:
    totalQuotes: int
    convertedQuotes: int
    conversionRate: float
    byStatus: dict[str, int] = field(default_factory=dict)

@dataclass(frozen=True)
class AgingDTO:
    next30Days: str
    next60Days: str
    next90Days: str
    total: str
    count: int

@dataclass(frozen=True)
class MethodAmountDTO:
    method: str
    amount: str

@dataclass(frozen=True)
class SessionStatusDTO:
    status: str
    count: int

@dataclass(frozen=True)
class ChartsDTO:
    revenueTrend: list[RevenueTrendDTO] = field(default_factory=list)
    paymentMethods: list[MethodAmountDTO] = field(default_factory=list)
    sessionStatus: list[SessionStatusDTO] = field(default_factory=list)

@dataclass(frozen=True)
class DashboardStatsDTO:
    period: PeriodDTO
    financial: FinancialDTO
    operations: OperationsDTO
    conversion: ConversionDTO
    receivables: AgingDTO
    patients: PatientsDTO
    charts: ChartsDTO
    topProcedures: list[ProcedureRankingDTO] = field(default_factory=list)
    professionalCosts: list[RoleCostDTO] = field(default_factory=list)
