from dataclasses import dataclass, field


@dataclass(frozen=True)
class CostStatsDTO:
    fixedCostsTotal: str
    totalItems: int
    categoryCounts: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class VariableCostDTO:
    id: str
    description: str
    category: str
    percentage: float


@dataclass(frozen=True)
class VariableCostSummaryDTO:
    totalPercentage: float
    taxBurden: float
    costs: list[VariableCostDTO] = field(default_factory=list)
    grouped: dict[str, list[VariableCostDTO]] = field(default_factory=dict)
    summary: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ReplicatedCostDTO:
    originalId: str
    newId: str
    description: str
    fixedValue: str
    paymentDate: str


@dataclass(frozen=True)
class RecurrenceRunDTO:
    processedCount: int
    message: str
    details: list[ReplicatedCostDTO] = field(default_factory=list)


@dataclass(frozen=True)
class PendingRecurrences:
    """Custos recorrentes (entidades) serializados pela view."""
    pending: list = field(default_factory=list)
    upcoming: list = field(default_factory=list)
    total_recurring: int = 0
