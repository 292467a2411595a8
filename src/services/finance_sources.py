from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Iterable, Protocol, TypeVar

from domain.finance import ExpenseRecord, FinanceSettings, MileageRecord, OrdersSummary
from domain.queries import ExpensePage, ExpenseQuery

from .supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FinanceDataSource(Protocol):
    def fetch_settings(self) -> FinanceSettings: ...

    def fetch_orders_summary(self, start: date, end_exclusive: date, platform: str | None = None) -> OrdersSummary: ...

    def list_expenses(self, start: date, end_exclusive: date) -> list[ExpenseRecord]: ...

    def list_mileage(self, start: date, end_exclusive: date) -> list[MileageRecord]: ...

    def list_expenses_page(self, query: ExpenseQuery) -> ExpensePage: ...

    def create_expense(self, expense: ExpenseRecord) -> None: ...

    def update_expense(self, expense: ExpenseRecord) -> None: ...

    def delete_expense(self, expense_id: str) -> None: ...

    def create_mileage_log(self, record: MileageRecord) -> None: ...


def to_decimal(value: Any) -> Decimal:
    """PostgREST returns numerics as numbers or strings; missing values count as zero."""
    if value is None or value == "":
        return Decimal("0")
    return Decimal(str(value))


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


class SupabaseFinanceSource(FinanceDataSource):
    """Finance data served by the project's stored procedures."""

    def __init__(self, client: SupabaseClient) -> None:
        self.client = client

    def fetch_settings(self) -> FinanceSettings:
        row = self.client.rpc_single("get_finance_settings")
        if row is None:
            return FinanceSettings.default()
        # Columns left null in the settings row keep their defaults.
        values = {key: value for key, value in row.items() if key in FinanceSettings.model_fields and value is not None}
        return FinanceSettings.model_validate(
            {key: value if key == "owners_count" else to_decimal(value) for key, value in values.items()}
        )

    def fetch_orders_summary(self, start: date, end_exclusive: date, platform: str | None = None) -> OrdersSummary:
        row = self.client.rpc_single(
            "finance_orders_summary",
            {"p_from": start.isoformat(), "p_to": end_exclusive.isoformat(), "p_platform": platform},
        )
        if row is None:
            return OrdersSummary()
        return OrdersSummary(
            gross_revenue=to_decimal(row.get("gross_revenue")),
            platform_fees=to_decimal(row.get("platform_fees")),
            payout=to_decimal(row.get("payout")),
        )

    def list_expenses(self, start: date, end_exclusive: date) -> list[ExpenseRecord]:
        rows = self.client.rpc_rows(
            "list_expenses_in_range",
            {"p_from": start.isoformat(), "p_to": end_exclusive.isoformat()},
        )
        return _parsed(rows, self._parse_expense)

    def list_mileage(self, start: date, end_exclusive: date) -> list[MileageRecord]:
        rows = self.client.rpc_rows(
            "list_mileage_in_range",
            {"p_from": start.isoformat(), "p_to": end_exclusive.isoformat()},
        )
        return _parsed(rows, self._parse_mileage)

    def list_expenses_page(self, query: ExpenseQuery) -> ExpensePage:
        tax_year = query.range
        rows = self.client.rpc_rows(
            "list_expenses_in_range_paged",
            {
                "p_from": tax_year.start_iso,
                "p_to": tax_year.end_exclusive_iso,
                "p_search": query.search,
                "p_limit": query.page_size,
                "p_offset": query.offset,
            },
        )
        # Every row carries the unpaged match count.
        total_count = int(rows[0].get("total_count") or 0) if rows else 0
        return ExpensePage(query=query, records=_parsed(rows, self._parse_expense), total_count=total_count)

    def create_expense(self, expense: ExpenseRecord) -> None:
        self.client.rpc(
            "create_expense",
            {
                "p_expense_date": expense.expense_date.isoformat(),
                "p_amount": str(expense.amount),
                "p_category": expense.category.strip(),
                "p_paid_by": expense.paid_by.strip(),
                "p_vendor": _optional_text(expense.vendor),
                "p_notes": _optional_text(expense.notes),
                "p_source_type": expense.source_type,
                "p_source_id": expense.source_id,
            },
        )

    def update_expense(self, expense: ExpenseRecord) -> None:
        if expense.id is None:
            msg = "expense must have an id to be updated"
            raise ValueError(msg)
        self.client.rpc(
            "update_expense",
            {
                "p_expense_id": expense.id,
                "p_expense_date": expense.expense_date.isoformat(),
                "p_amount": str(expense.amount),
                "p_category": expense.category.strip(),
                "p_paid_by": expense.paid_by.strip(),
                "p_vendor": _optional_text(expense.vendor),
                "p_notes": _optional_text(expense.notes),
            },
        )

    def delete_expense(self, expense_id: str) -> None:
        self.client.rpc("delete_expense", {"p_expense_id": expense_id})

    def create_mileage_log(self, record: MileageRecord) -> None:
        self.client.rpc(
            "create_mileage_log",
            {
                "p_trip_date": record.trip_date.isoformat(),
                "p_person": record.person.strip(),
                "p_miles": str(record.miles),
                "p_start_location": _optional_text(record.start_location),
                "p_end_location": _optional_text(record.end_location),
                "p_notes": _optional_text(record.notes),
            },
        )

    # Stored rows are taken as the ledger has them; only new entries are validated.
    @staticmethod
    def _parse_expense(row: dict[str, Any]) -> ExpenseRecord:
        return ExpenseRecord.model_construct(
            id=_optional_id(row.get("id")),
            expense_date=_row_date(row, "expense_date"),
            amount=to_decimal(row.get("amount")),
            category=row.get("category") or "",
            vendor=row.get("vendor"),
            paid_by=row.get("paid_by") or "",
            source_type=row.get("source_type") or "manual",
            source_id=row.get("source_id"),
            notes=row.get("notes"),
        )

    @staticmethod
    def _parse_mileage(row: dict[str, Any]) -> MileageRecord:
        return MileageRecord.model_construct(
            id=_optional_id(row.get("id")),
            trip_date=_row_date(row, "trip_date"),
            person=row.get("person") or "",
            miles=to_decimal(row.get("miles")),
            start_location=row.get("start_location"),
            end_location=row.get("end_location"),
            notes=row.get("notes"),
        )


def _optional_id(value: Any) -> str | None:
    return None if value is None else str(value)


def _row_date(row: dict[str, Any], key: str) -> date:
    raw = row.get(key)
    if not raw:
        msg = f"row is missing {key}"
        raise ValueError(msg)
    return date.fromisoformat(str(raw)[:10])


def _parsed(rows: Iterable[dict[str, Any]], parse: Callable[[dict[str, Any]], T]) -> list[T]:
    parsed: list[T] = []
    for row in rows:
        try:
            parsed.append(parse(row))
        except (ArithmeticError, ValueError) as exc:
            logger.warning("Skipping unreadable row %s: %s", row.get("id"), exc)
    return parsed


__all__ = ["FinanceDataSource", "SupabaseFinanceSource", "to_decimal"]
