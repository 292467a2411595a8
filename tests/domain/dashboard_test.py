from __future__ import annotations

from datetime import date
from decimal import Decimal

from domain.dashboard import (
    BatchRow,
    MaterialRow,
    OrderRow,
    aggregate_monthly,
    all_in_profit,
    compare_years,
    count_low_stock,
    sum_shipping,
)


def _order(order_date: date, revenue: str, cost: str, *, shipping: str = "0", refunded: bool = False) -> OrderRow:
    return OrderRow(
        order_date=order_date,
        total_revenue=Decimal(revenue),
        total_cost=Decimal(cost),
        gross_profit=Decimal(revenue) - Decimal(cost),
        shipping_cost=Decimal(shipping),
        is_refunded=refunded,
    )


def test_aggregate_monthly_groups_by_month_and_skips_refunds() -> None:
    rows = [
        _order(date(2025, 1, 3), "20", "5"),
        _order(date(2025, 1, 28), "30", "10"),
        _order(date(2025, 1, 29), "999", "1", refunded=True),
        _order(date(2025, 12, 31), "15", "4"),
    ]

    months = aggregate_monthly(rows)

    assert len(months) == 12
    assert months[0].orders == 2
    assert months[0].revenue == Decimal("50")
    assert months[0].cogs == Decimal("15")
    assert months[0].profit == Decimal("35")
    assert months[11].orders == 1
    assert all(month.orders == 0 for month in months[1:11])


def test_compare_years_pairs_months() -> None:
    comparison = compare_years([_order(date(2025, 6, 1), "10", "2")], [_order(date(2024, 6, 9), "8", "1")])

    june = comparison[5]
    assert june.month == 6
    assert june.current.revenue == Decimal("10")
    assert june.previous.revenue == Decimal("8")
    assert comparison[0].current.orders == 0


def test_shipping_and_all_in_profit() -> None:
    rows = [
        _order(date(2025, 3, 1), "40", "10", shipping="3.20"),
        _order(date(2025, 3, 2), "40", "10", shipping="2.80"),
        _order(date(2025, 3, 3), "40", "10", shipping="9.99", refunded=True),
    ]

    shipping = sum_shipping(rows)
    cost_all_in, profit_all_in = all_in_profit(Decimal("75"), Decimal("20"), shipping)

    assert shipping == Decimal("6.00")
    assert cost_all_in == Decimal("26.00")
    assert profit_all_in == Decimal("49.00")


def test_count_low_stock_only_considers_tracked_materials_with_reorder_level() -> None:
    materials = [
        MaterialRow(id="pla", name="PLA", reorder_level=Decimal("2"), track_stock=True),
        MaterialRow(id="petg", name="PETG", reorder_level=Decimal("1"), track_stock=True),
        MaterialRow(id="magnets", name="Magnets", reorder_level=Decimal("50"), track_stock=False),
        MaterialRow(id="boxes", name="Boxes", reorder_level=None, track_stock=True),
        MaterialRow(id="resin", name="Resin", reorder_level=Decimal("1"), track_stock=True),
    ]
    batches = [
        BatchRow(material_id="pla", remaining_quantity=Decimal("0.5")),
        BatchRow(material_id="pla", remaining_quantity=Decimal("1")),
        BatchRow(material_id="petg", remaining_quantity=Decimal("1")),
    ]

    # PLA is below its level (1.5 < 2) and resin has no batches at all.
    assert count_low_stock(materials, batches) == 2
