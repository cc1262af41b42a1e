from __future__ import annotations

import uuid
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from financial_engine.core.domain.entities.enums import PaymentMethod
from financial_engine.core.domain.services.cost_expander import LedgerEntry

ZERO = Decimal("0")
CENT = Decimal("0.01")


# ───────────────────────────────────────────────
# Read models de entrada
# ───────────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class Receivable:
    id: uuid.UUID
    date: date | None
    amount: Decimal
    patient_name: str
    procedure_name: str
    payment_method: PaymentMethod
    installment_number: int
    total_installments: int
    status: str


@dataclass(frozen=True, slots=True)
class SplitMix:
    """Split de uma venda registrada no período (base da análise à vista × parcelado)."""
    payment_method: PaymentMethod
    amount: Decimal
    installments: int


# ───────────────────────────────────────────────
# Resultado
# ───────────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class DailyFlow:
    date: date
    receivables: Decimal
    expenses: Decimal

    @property
    def net_flow(self) -> Decimal:
        return self.receivables - self.expenses


@dataclass(frozen=True, slots=True)
class MethodMix:
    cash: Decimal = ZERO
    installment: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.cash + self.installment


@dataclass(frozen=True, slots=True)
class PaymentAnalysis:
    cash_amount: Decimal
    installment_amount: Decimal
    by_method: dict[str, MethodMix]

    @property
    def total(self) -> Decimal:
        return self.cash_amount + self.installment_amount

    @property
    def cash_percentage(self) -> Decimal:
        return _pct(self.cash_amount, self.total)

    @property
    def installment_percentage(self) -> Decimal:
        return _pct(self.installment_amount, self.total)


@dataclass(frozen=True, slots=True)
class FixedPass:
    """Resultado da 1ª etapa: recebíveis e despesas fixas; percentuais pendentes."""
    receivables: list[Receivable]
    resolved: list[LedgerEntry]
    deferred: list[LedgerEntry]


@dataclass(frozen=True, slots=True)
class CashFlowReport:
    start: date
    end: date
    receivables: list[Receivable]
    expenses: list[LedgerEntry]
    daily: list[DailyFlow]
    expenses_by_category: dict[str, Decimal]
    receivables_by_method: dict[str, Decimal]
    payment_analysis: PaymentAnalysis
    total_sales: Decimal = ZERO
    total_receivables: Decimal = field(init=False)
    total_expenses: Decimal = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "total_receivables", sum((r.amount for r in self.receivables), ZERO))
        object.__setattr__(self, "total_expenses", sum((e.amount or ZERO for e in self.expenses), ZERO))

    @property
    def net_cash_flow(self) -> Decimal:
        return self.total_receivables - self.total_expenses


def _pct(part: Decimal, whole: Decimal) -> Decimal:
    return (part / whole * 100) if whole > 0 else ZERO


# ───────────────────────────────────────────────
# Agregador
# ───────────────────────────────────────────────
class CashFlowAggregator:
    """
    Consolida recebíveis e despesas de [start, end] (dias inclusivos).

    Duas etapas explícitas:
      1. `collect`             → recebíveis + despesas de valor fixo
      2. `resolve_percentage`  → custos percentuais sobre o total de vendas do período
    Intervalo sem dados gera agregados zerados, nunca erro.
    """

    def collect(self, start: date, end: date, receivables: Iterable[Receivable], entries: Iterable[LedgerEntry]) -> FixedPass:
        in_range = [r for r in receivables if r.date is not None and start <= r.date <= end]
        in_range.sort(key=lambda r: r.date)

        seen: set[tuple[uuid.UUID, date]] = set()
        resolved: list[LedgerEntry] = []
        # custo percentual incide uma única vez sobre as vendas do intervalo
        deferred: dict[uuid.UUID, LedgerEntry] = {}
        for entry in entries:
            if not (start <= entry.date <= end):
                continue
            if entry.is_deferred:
                current = deferred.get(entry.cost_id)
                if current is None or entry.date < current.date:
                    deferred[entry.cost_id] = entry
                continue
            key = (entry.id, entry.date)
            if key in seen:
                continue
            seen.add(key)
            resolved.append(entry)
        return FixedPass(receivables=in_range, resolved=resolved, deferred=list(deferred.values()))

    def resolve_percentage(self, fixed: FixedPass, total_sales: Decimal) -> list[LedgerEntry]:
        resolved = [
            replace(e, amount=(total_sales * (e.percentage or ZERO) / 100).quantize(CENT, rounding=ROUND_HALF_UP))
            for e in fixed.deferred
        ]
        return sorted([*fixed.resolved, *resolved], key=lambda e: e.date)

    def daily_series(self, start: date, end: date, receivables: Sequence[Receivable], expenses: Sequence[LedgerEntry]) -> list[DailyFlow]:
        rec_by_day: dict[date, Decimal] = defaultdict(lambda: ZERO)
        exp_by_day: dict[date, Decimal] = defaultdict(lambda: ZERO)
        for r in receivables:
            rec_by_day[r.date] += r.amount
        for e in expenses:
            exp_by_day[e.date] += e.amount or ZERO

        days = (end - start).days + 1
        return [
            DailyFlow(date=d, receivables=rec_by_day.get(d, ZERO), expenses=exp_by_day.get(d, ZERO))
            for d in (start + timedelta(days=i) for i in range(max(days, 0)))
        ]

    def payment_analysis(self, splits: Iterable[SplitMix]) -> PaymentAnalysis:
        cash = ZERO
        parcelado = ZERO
        by_method: dict[str, MethodMix] = {}
        for s in splits:
            label = s.payment_method.label
            mix = by_method.get(label, MethodMix())
            if s.installments == 1:
                cash += s.amount
                mix = replace(mix, cash=mix.cash + s.amount)
            else:
                parcelado += s.amount
                mix = replace(mix, installment=mix.installment + s.amount)
            by_method[label] = mix
        return PaymentAnalysis(cash_amount=cash, installment_amount=parcelado, by_method=by_method)

    def aggregate(  # noqa: PLR0913
        self,
        start: date,
        end: date,
        receivables: Iterable[Receivable],
        entries: Iterable[LedgerEntry],
        total_sales: Decimal,
        splits: Iterable[SplitMix] = (),
    ) -> CashFlowReport:
        fixed = self.collect(start, end, receivables, entries)
        expenses = self.resolve_percentage(fixed, total_sales)

        by_category: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for e in expenses:
            by_category[e.custom_category or e.category] += e.amount or ZERO

        by_method: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for r in fixed.receivables:
            by_method[r.payment_method.label] += r.amount

        return CashFlowReport(
            start=start,
            end=end,
            receivables=fixed.receivables,
            expenses=expenses,
            daily=self.daily_series(start, end, fixed.receivables, expenses),
            expenses_by_category=dict(by_category),
            receivables_by_method=dict(by_method),
            payment_analysis=self.payment_analysis(splits),
            total_sales=total_sales,
        )
