from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from domain.dashboard import (
    BatchRow,
    MaterialRow,
    MonthComparison,
    OrderRow,
    all_in_profit,
    compare_years,
    count_low_stock,
    sum_shipping,
)
from domain.date_ranges import DateRange, calendar_year_range

from .finance_sources import to_decimal
from .supabase_client import SupabaseAPIError, SupabaseClient

logger = logging.getLogger(__name__)

NOT_REFUNDED = ("or", "(is_refunded.is.null,is_refunded.eq.false)")


@dataclass(frozen=True)
class DashboardSummary:
    date_range: DateRange
    platform: str | None
    payout: Decimal
    cogs: Decimal
    shipping: Decimal
    cost_all_in: Decimal
    profit_all_in: Decimal
    order_count: int
    refunded_count: int
    stock_value: Decimal


class DashboardService:
    def __init__(self, client: SupabaseClient) -> None:
        self.client = client

    def summary(self, date_range: DateRange, platform: str | None = None) -> DashboardSummary:
        params: dict[str, Any] = {
            "p_from_date": date_range.start.isoformat(),
            "p_to_date": date_range.end_exclusive.isoformat(),
        }
        if platform:
            params["p_platform"] = platform
        row = self.client.rpc_single("dashboard_summary", params) or {}

        payout = to_decimal(row.get("revenue"))
        cogs = to_decimal(row.get("cogs"))
        shipping = self._shipping(date_range, platform)
        cost_all_in, profit_all_in = all_in_profit(payout, cogs, shipping)
        return DashboardSummary(
            date_range=date_range,
            platform=platform,
            payout=payout,
            cogs=cogs,
            shipping=shipping,
            cost_all_in=cost_all_in,
            profit_all_in=profit_all_in,
            order_count=int(row.get("order_count") or 0),
            refunded_count=self._refunded_count(date_range, platform),
            stock_value=to_decimal(row.get("stock_value")),
        )

    # Shipping and refund figures fall back to zero; the rest of the summary still loads.
    def _shipping(self, date_range: DateRange, platform: str | None) -> Decimal:
        try:
            return sum_shipping(self.list_orders(date_range, platform, exclude_refunded=True))
        except SupabaseAPIError as exc:
            logger.warning("Shipping total unavailable for %s: %s", date_range.start.isoformat(), exc)
            return Decimal("0")

    def _refunded_count(self, date_range: DateRange, platform: str | None) -> int:
        params: dict[str, Any] = {
            "p_from": date_range.start.isoformat(),
            "p_to": date_range.end_exclusive.isoformat(),
        }
        if platform:
            params["p_platform"] = platform
        try:
            refunded = self.client.rpc("dashboard_refunded_count", params)
        except SupabaseAPIError as exc:
            logger.warning("Refunded count unavailable for %s: %s", date_range.start.isoformat(), exc)
            return 0
        return int(refunded or 0)

    def list_orders(
        self,
        date_range: DateRange,
        platform: str | None = None,
        *,
        exclude_refunded: bool = False,
    ) -> list[OrderRow]:
        filters = [
            ("order_date", f"gte.{date_range.start.isoformat()}"),
            ("order_date", f"lt.{date_range.end_exclusive.isoformat()}"),
        ]
        if platform:
            filters.append(("platform", f"eq.{platform}"))
        if exclude_refunded:
            filters.append(NOT_REFUNDED)

        rows = self.client.select(
            "orders",
            columns="order_date,total_revenue,total_cost,gross_profit,shipping_cost,is_refunded",
            filters=filters,
        )
        return [
            OrderRow(
                order_date=date.fromisoformat(str(row["order_date"])[:10]),
                total_revenue=to_decimal(row.get("total_revenue")),
                total_cost=to_decimal(row.get("total_cost")),
                gross_profit=to_decimal(row.get("gross_profit")),
                shipping_cost=to_decimal(row.get("shipping_cost")),
                is_refunded=bool(row.get("is_refunded")),
            )
            for row in rows
            if row.get("order_date")
        ]

    def monthly_comparison(self, year: int, platform: str | None = None) -> list[MonthComparison]:
        current = self.list_orders(calendar_year_range(year), platform, exclude_refunded=True)
        previous = self.list_orders(calendar_year_range(year - 1), platform, exclude_refunded=True)
        logger.info("Monthly comparison %d vs %d: %d and %d orders", year, year - 1, len(current), len(previous))
        return compare_years(current, previous)

    def low_stock_count(self) -> int:
        materials = [
            MaterialRow(
                id=str(row["id"]),
                name=row.get("name") or "",
                reorder_level=None if row.get("reorder_level") is None else to_decimal(row["reorder_level"]),
                track_stock=bool(row.get("track_stock")),
            )
            for row in self.client.select("materials", columns="id,name,reorder_level,track_stock")
        ]
        batches = [
            BatchRow(material_id=str(row["material_id"]), remaining_quantity=to_decimal(row.get("remaining_quantity")))
            for row in self.client.select("batches", columns="material_id,remaining_quantity")
        ]
        return count_low_stock(materials, batches)


__all__ = ["DashboardService", "DashboardSummary"]
