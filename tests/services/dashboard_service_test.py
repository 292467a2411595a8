from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any
from unittest.mock import Mock

from domain.date_ranges import DateRange
from services.dashboard_service import NOT_REFUNDED, DashboardService
from services.supabase_client import SupabaseAPIError


def _client_with_tables(tables: dict[str, list[dict[str, Any]]]) -> Mock:
    client = Mock()
    client.select.side_effect = lambda table, **_: tables[table]
    return client


def test_summary_combines_rpc_figures_with_shipping() -> None:
    client = _client_with_tables(
        {
            "orders": [
                {"order_date": "2025-03-02", "shipping_cost": "3.50", "is_refunded": None},
                {"order_date": "2025-03-05", "shipping_cost": 2, "is_refunded": False},
            ]
        }
    )
    client.rpc_single.return_value = {"revenue": "120", "cogs": "30", "order_count": 2, "stock_value": "410.25"}
    client.rpc.return_value = 1
    date_range = DateRange(date(2025, 3, 1), date(2025, 3, 15))

    summary = DashboardService(client).summary(date_range, platform="Etsy")

    assert summary.shipping == Decimal("5.50")
    assert summary.cost_all_in == Decimal("35.50")
    assert summary.profit_all_in == Decimal("84.50")
    assert summary.order_count == 2
    assert summary.refunded_count == 1
    assert summary.stock_value == Decimal("410.25")
    rpc_args = client.rpc_single.call_args.args
    assert rpc_args[1] == {"p_from_date": "2025-03-01", "p_to_date": "2025-03-15", "p_platform": "Etsy"}
    filters = client.select.call_args.kwargs["filters"]
    assert ("order_date", "lt.2025-03-15") in filters
    assert ("platform", "eq.Etsy") in filters
    assert NOT_REFUNDED in filters


def test_monthly_comparison_loads_two_calendar_years() -> None:
    client = Mock()
    client.select.side_effect = [
        [{"order_date": "2025-02-10", "total_revenue": 10, "total_cost": 4, "gross_profit": 6}],
        [{"order_date": "2024-02-11", "total_revenue": 7, "total_cost": 2, "gross_profit": 5}],
    ]

    comparison = DashboardService(client).monthly_comparison(2025)

    assert comparison[1].current.revenue == Decimal("10")
    assert comparison[1].previous.profit == Decimal("5")
    first_filters = client.select.call_args_list[0].kwargs["filters"]
    assert ("order_date", "gte.2025-01-01") in first_filters
    assert ("order_date", "lt.2026-01-01") in first_filters


def test_low_stock_count_reads_materials_and_batches() -> None:
    client = _client_with_tables(
        {
            "materials": [
                {"id": "m1", "name": "PLA", "reorder_level": "2", "track_stock": True},
                {"id": "m2", "name": "Tape", "reorder_level": None, "track_stock": True},
            ],
            "batches": [{"material_id": "m1", "remaining_quantity": "1.25"}],
        }
    )

    assert DashboardService(client).low_stock_count() == 1


def test_summary_keeps_rpc_figures_when_shipping_and_refunds_fail() -> None:
    client = Mock()
    client.rpc_single.return_value = {"revenue": "120", "cogs": "30", "order_count": 2, "stock_value": "10"}
    client.rpc.side_effect = SupabaseAPIError("function dashboard_refunded_count does not exist", status_code=404)
    client.select.side_effect = SupabaseAPIError("timeout")

    summary = DashboardService(client).summary(DateRange(date(2025, 3, 1), date(2025, 3, 15)))

    assert summary.shipping == Decimal("0")
    assert summary.refunded_count == 0
    assert summary.profit_all_in == Decimal("90")
    assert summary.order_count == 2
