from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def money(value: Decimal | None) -> str:
    """Valor monetário serializado como string com 2 casas (sem perda de precisão no JSON)."""
    return str(Decimal(value or 0).quantize(CENT, rounding=ROUND_HALF_UP))


def percent(value: Decimal | None) -> float:
    return float(Decimal(value or 0).quantize(CENT, rounding=ROUND_HALF_UP))
