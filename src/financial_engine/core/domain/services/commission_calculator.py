from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from financial_engine.core.domain.services.installment_scheduler import CENT

ZERO = Decimal("0")
PERCENTAGE = "PERCENTAGE"


@dataclass(frozen=True, slots=True)
class SellerSale:
    """Venda com vendedor atribuído, já com a regra de comissão do colaborador."""
    sale_id: uuid.UUID
    sale_date: date
    patient_name: str
    sale_value: Decimal
    seller_id: uuid.UUID
    seller_name: str
    commission_type: str           # PERCENTAGE | FIXED
    commission_value: Decimal


@dataclass(frozen=True, slots=True)
class SaleCommission:
    sale: SellerSale
    rate: Decimal                  # % efetivo sobre a venda
    amount: Decimal


@dataclass(slots=True)
class SellerTotals:
    seller_id: uuid.UUID
    seller_name: str
    total_sales: Decimal = ZERO
    total_commission: Decimal = ZERO
    sales_count: int = 0
    sales: list[SaleCommission] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class CommissionReport:
    sellers: list[SellerTotals]
    total_sales_value: Decimal
    total_commission: Decimal
    sales_count: int


class CommissionCalculator:
    """
    Comissão de venda por vendedor.

    PERCENTAGE: valor da venda × commission_value / 100.
    FIXED: commission_value por venda; a taxa efetiva é derivada do valor.
    """

    def commission_for(self, sale: SellerSale) -> SaleCommission:
        value = Decimal(sale.commission_value or 0)
        if sale.commission_type == PERCENTAGE:
            rate = value
            amount = (sale.sale_value * value / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)
        else:
            amount = value.quantize(CENT, rounding=ROUND_HALF_UP)
            rate = (
                (value / sale.sale_value * Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)
                if sale.sale_value > 0 else ZERO
            )
        return SaleCommission(sale=sale, rate=rate, amount=amount)

    def report(self, sales: Iterable[SellerSale]) -> CommissionReport:
        by_seller: dict[uuid.UUID, SellerTotals] = {}
        for sale in sales:
            line = self.commission_for(sale)
            totals = by_seller.setdefault(sale.seller_id, SellerTotals(sale.seller_id, sale.seller_name))
            totals.total_sales += sale.sale_value
            totals.total_commission += line.amount
            totals.sales_count += 1
            totals.sales.append(line)

        sellers = sorted(by_seller.values(), key=lambda s: (-s.total_commission, s.seller_name))
        return CommissionReport(
            sellers=sellers,
            total_sales_value=sum((s.total_sales for s in sellers), ZERO),
            total_commission=sum((s.total_commission for s in sellers), ZERO),
            sales_count=sum(s.sales_count for s in sellers),
        )
