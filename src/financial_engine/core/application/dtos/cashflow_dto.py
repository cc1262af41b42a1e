from dataclasses import dataclass, field


@dataclass(frozen=True)
class PeriodDTO:
    startDate: str
    endDate: str


@dataclass(frozen=True)
class CashFlowSummaryDTO:
    totalReceivables: str
    totalExpenses: str
    netCashFlow: str
    totalSales: str
    period: PeriodDTO


@dataclass(frozen=True)
class ReceivableDTO:
    id: str
    date: str
    amount: str
    patientName: str
    procedureName: str
    paymentMethod: str
    installmentNumber: int
    totalInstallments: int
    status: str


@dataclass(frozen=True)
class ExpenseDTO:
    id: str
    costId: str
    date: str
    amount: str
    description: str
    category: str
    customCategory: str | None
    isRecurring: bool
    percentage: float | None = None


@dataclass(frozen=True)
class DailyFlowDTO:
    date: str
    receivables: str
    expenses: str
    netFlow: str


@dataclass(frozen=True)
class MethodMixDTO:
    method: str
    cash: str
    installment: str
    total: str


@dataclass(frozen=True)
class PaymentAnalysisDTO:
    cashAmount: str
    installmentAmount: str
    cashPercentage: float
    installmentPercentage: float
    byMethod: list[MethodMixDTO] = field(default_factory=list)


@dataclass(frozen=True)
class BreakdownsDTO:
    expensesByCategory: dict[str, str] = field(default_factory=dict)
    receivablesByMethod: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CashFlowDTO:
    summary: CashFlowSummaryDTO
    paymentAnalysis: PaymentAnalysisDTO
    breakdowns: BreakdownsDTO
    receivables: list[ReceivableDTO] = field(default_factory=list)
    expenses: list[ExpenseDTO] = field(default_factory=list)
    dailyCashFlow: list[DailyFlowDTO] = field(default_factory=list)
