from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable

from pydantic import BaseModel

ZERO = Decimal("0")


class OrderRow(BaseModel):
    order_date: date
    total_revenue: Decimal = ZERO
    total_cost: Decimal = ZERO
    gross_profit: Decimal = ZERO
    shipping_cost: Decimal = ZERO
    is_refunded: bool = False


class MaterialRow(BaseModel):
    id: str
    name: str
    reorder_level: Decimal | None = None
    track_stock: bool = False


class BatchRow(BaseModel):
    material_id: str
    remaining_quantity: Decimal = ZERO


@dataclass
class MonthTotals:
    orders: int = 0
    revenue: Decimal = field(default_factory=lambda: ZERO)
    cogs: Decimal = field(default_factory=lambda: ZERO)
    profit: Decimal = field(default_factory=lambda: ZERO)


@dataclass(frozen=True)
class MonthComparison:
    month: int
    current: MonthTotals
    previous: MonthTotals


def aggregate_monthly(rows: Iterable[OrderRow]) -> list[MonthTotals]:
    """Per-month totals for January..December; refunded orders are left out."""
    months = [MonthTotals() for _ in range(12)]
    for row in rows:
        if row.is_refunded:
            continue
        totals = months[row.order_date.month - 1]
        totals.orders += 1
        totals.revenue += row.total_revenue
        totals.cogs += row.total_cost
        totals.profit += row.gross_profit
    return months


def compare_years(current_rows: Iterable[OrderRow], previous_rows: Iterable[OrderRow]) -> list[MonthComparison]:
    current = aggregate_monthly(current_rows)
    previous = aggregate_monthly(previous_rows)
    return [MonthComparison(month=index + 1, current=current[index], previous=previous[index]) for index in range(12)]


def sum_shipping(rows: Iterable[OrderRow]) -> Decimal:
    return sum((row.shipping_cost for row in rows if not row.is_refunded), ZERO)


def all_in_profit(payout: Decimal, cogs: Decimal, shipping: Decimal) -> tuple[Decimal, Decimal]:
    """Return ``(cost_all_in, profit_all_in)`` where cost covers goods and postage."""
    cost_all_in = cogs + shipping
    return cost_all_in, payout - cost_all_in


def count_low_stock(materials: Iterable[MaterialRow], batches: Iterable[BatchRow]) -> int:
    on_hand: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for batch in batches:
        on_hand[batch.material_id] += batch.remaining_quantity

    count = 0
    for material in materials:
        if not material.track_stock or material.reorder_level is None:
            continue
        if on_hand.get(material.id, ZERO) < material.reorder_level:
            count += 1
    return count


__all__ = [
    "BatchRow",
    "MaterialRow",
    "MonthComparison",
    "MonthTotals",
    "OrderRow",
    "aggregate_monthly",
    "all_in_profit",
    "compare_years",
    "count_low_stock",
    "sum_shipping",
]
