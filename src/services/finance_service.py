from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy.exc import SQLAlchemyError

from domain.finance import (
    ExpenseRecord,
    FinanceSettings,
    FinanceSummary,
    MileageRecord,
    OrdersSummary,
    compute_finance_summary,
)
from domain.queries import ExpensePage, ExpenseQuery
from domain.tax_year import TaxYearRange, current_tax_year_start, resolve_tax_year

from .finance_sources import FinanceDataSource
from .supabase_client import SupabaseAPIError

LOAD_ERRORS = (SupabaseAPIError, SQLAlchemyError, ValueError)

logger = logging.getLogger(__name__)


class FinanceLoadError(RuntimeError):
    def __init__(self, message: str = "Failed to load finance", *, tax_year: TaxYearRange | None = None) -> None:
        super().__init__(message)
        self.tax_year = tax_year


@dataclass(frozen=True)
class FinanceReport:
    tax_year: TaxYearRange
    settings: FinanceSettings
    orders_summary: OrdersSummary
    expenses: list[ExpenseRecord]
    mileage: list[MileageRecord]
    summary: FinanceSummary

    def recent_expenses(self, limit: int = 10) -> list[ExpenseRecord]:
        return sorted(self.expenses, key=lambda expense: expense.expense_date, reverse=True)[:limit]


class FinanceService:
    def __init__(self, source: FinanceDataSource) -> None:
        self.source = source

    def load(
        self,
        start_year: int | None = None,
        *,
        platform: str | None = None,
        today: date | None = None,
    ) -> FinanceReport:
        year = start_year if start_year is not None else current_tax_year_start(today)
        tax_year = resolve_tax_year(year)
        logger.info(
            "Loading finance for tax year %s (%s -> %s)",
            tax_year.label,
            tax_year.start_iso,
            tax_year.end_exclusive_iso,
        )

        try:
            settings = self.source.fetch_settings()
            orders_summary = self.source.fetch_orders_summary(tax_year.start, tax_year.end_exclusive, platform)
            expenses = self.source.list_expenses(tax_year.start, tax_year.end_exclusive)
            mileage = self.source.list_mileage(tax_year.start, tax_year.end_exclusive)
        except LOAD_ERRORS as exc:
            logger.warning("Finance load failed for tax year %s: %s", tax_year.label, exc)
            raise FinanceLoadError(tax_year=tax_year) from exc

        summary = compute_finance_summary(orders_summary, expenses, mileage, settings)
        logger.info(
            "Tax year %s: %d expenses, %s miles, profit %s",
            tax_year.label,
            len(expenses),
            summary.total_miles,
            summary.profit,
        )
        return FinanceReport(
            tax_year=tax_year,
            settings=settings,
            orders_summary=orders_summary,
            expenses=expenses,
            mileage=mileage,
            summary=summary,
        )

    def expense_log(self, query: ExpenseQuery) -> ExpensePage:
        try:
            return self.source.list_expenses_page(query)
        except LOAD_ERRORS as exc:
            logger.warning("Expense log load failed for %s: %s", query, exc)
            raise FinanceLoadError("Failed to load expenses", tax_year=query.range) from exc

    def record_expense(self, expense: ExpenseRecord) -> None:
        logger.info("Recording expense %s %s on %s", expense.category, expense.amount, expense.expense_date)
        self.source.create_expense(expense)

    def update_expense(self, expense: ExpenseRecord) -> None:
        self.source.update_expense(expense)

    def delete_expense(self, page: ExpensePage, expense_id: str) -> ExpenseQuery:
        """Delete a row shown on ``page`` and return the query to reload."""
        self.source.delete_expense(expense_id)
        return page.after_delete()

    def record_trip(self, record: MileageRecord) -> None:
        logger.info("Recording trip for %s: %s miles on %s", record.person, record.miles, record.trip_date)
        self.source.create_mileage_log(record)


__all__ = ["FinanceLoadError", "FinanceReport", "FinanceService"]
