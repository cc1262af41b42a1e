from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

LAST_N_DAYS = {"last7days": 7, "last15days": 15, "last30days": 30}


@dataclass(frozen=True, slots=True)
class Period:
    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1


def month_bounds(ref: date) -> Period:
    last = calendar.monthrange(ref.year, ref.month)[1]
    return Period(ref.replace(day=1), ref.replace(day=last))


def resolve_period(
    period: str | None,
    today: date,
    start: date | None = None,
    end: date | None = None,
) -> Period:
    """
    Presets de relatório:
      today | week (domingo→sábado) | month (padrão) |
      last7days | last15days | last30days (inclui hoje) | custom
    `custom` sem as duas datas cai no mês corrente, assim como presets desconhecidos.
    """
    if period == "custom" and start and end:
        return Period(min(start, end), max(start, end))
    if period == "today":
        return Period(today, today)
    if period == "week":
        sunday = today - timedelta(days=(today.weekday() + 1) % 7)
        return Period(sunday, sunday + timedelta(days=6))
    if period in LAST_N_DAYS:
        return Period(today - timedelta(days=LAST_N_DAYS[period] - 1), today)
    return month_bounds(today)


def trailing_months(today: date, months: int = 6) -> list[Period]:
    """Meses-calendário terminando no mês corrente, do mais antigo ao atual."""
    return [month_bounds(today - relativedelta(months=i)) for i in range(months - 1, -1, -1)]
