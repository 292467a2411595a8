from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from db.repositories import SqlFinanceSource
from domain.finance import FinanceSettings
from domain.queries import ExpenseQuery
from services.finance_service import FinanceService
from tests.helpers.finance_factories import make_expense, make_trip


@pytest.fixture()
def source(test_session: Session) -> SqlFinanceSource:
    return SqlFinanceSource(test_session)


def test_settings_default_until_saved(source: SqlFinanceSource) -> None:
    assert source.fetch_settings() == FinanceSettings.default()

    source.settings.save(FinanceSettings(owners_count=1, est_tax_rate=Decimal("0.4")))

    stored = source.fetch_settings()
    assert stored.owners_count == 1
    assert stored.est_tax_rate == Decimal("0.4")


def test_orders_summary_excludes_refunds_other_platforms_and_end_date(source: SqlFinanceSource) -> None:
    orders = source.orders
    orders.create(
        order_date=date(2024, 4, 6),
        gross_revenue=Decimal("100"),
        platform_fees=Decimal("10"),
        payout=Decimal("90"),
        platform="Etsy",
    )
    orders.create(
        order_date=date(2025, 4, 5),
        gross_revenue=Decimal("50.50"),
        platform_fees=Decimal("5"),
        payout=Decimal("45.50"),
        platform="Etsy",
    )
    orders.create(
        order_date=date(2025, 4, 6),
        gross_revenue=Decimal("1000"),
        platform_fees=Decimal("0"),
        payout=Decimal("1000"),
        platform="Etsy",
    )
    orders.create(
        order_date=date(2024, 8, 1),
        gross_revenue=Decimal("70"),
        platform_fees=Decimal("7"),
        payout=Decimal("63"),
        platform="Etsy",
        is_refunded=True,
    )
    orders.create(
        order_date=date(2024, 8, 1),
        gross_revenue=Decimal("20"),
        platform_fees=Decimal("0"),
        payout=Decimal("20"),
        platform="Market",
    )

    etsy = source.fetch_orders_summary(date(2024, 4, 6), date(2025, 4, 6), "Etsy")
    all_platforms = source.fetch_orders_summary(date(2024, 4, 6), date(2025, 4, 6))

    assert etsy.gross_revenue == Decimal("150.50")
    assert etsy.platform_fees == Decimal("15")
    assert etsy.payout == Decimal("135.50")
    assert all_platforms.gross_revenue == Decimal("170.50")


def test_expenses_and_mileage_use_half_open_range(source: SqlFinanceSource) -> None:
    source.create_expense(make_expense("10", date(2024, 4, 6)))
    source.create_expense(make_expense("20", date(2025, 4, 5)))
    source.create_expense(make_expense("40", date(2025, 4, 6)))
    source.create_mileage_log(make_trip("5", date(2024, 4, 5)))
    source.create_mileage_log(make_trip("7", date(2024, 9, 9)))

    expenses = source.list_expenses(date(2024, 4, 6), date(2025, 4, 6))
    mileage = source.list_mileage(date(2024, 4, 6), date(2025, 4, 6))

    assert [expense.amount for expense in expenses] == [Decimal("10"), Decimal("20")]
    assert all(expense.id is not None for expense in expenses)
    assert [trip.miles for trip in mileage] == [Decimal("7")]


def test_paged_search_is_newest_first_with_total_count(source: SqlFinanceSource) -> None:
    for day in range(1, 8):
        source.create_expense(make_expense(f"{day}.00", date(2024, 6, day), vendor="Royal Mail", category="Postage"))
    source.create_expense(make_expense("30", date(2024, 6, 10), vendor="Bambu", category="Filament"))

    query = ExpenseQuery(tax_year_start=2024, search="royal", page_size=3)
    first = source.list_expenses_page(query)
    last = source.list_expenses_page(query.next_page().next_page())

    assert first.total_count == 7
    assert first.page_count == 3
    assert [expense.expense_date.day for expense in first.records] == [7, 6, 5]
    assert [expense.expense_date.day for expense in last.records] == [1]


def test_update_and_delete_expense(source: SqlFinanceSource) -> None:
    source.create_expense(make_expense("12", date(2024, 5, 1), notes="first"))
    stored = source.list_expenses(date(2024, 4, 6), date(2025, 4, 6))[0]

    source.update_expense(stored.model_copy(update={"amount": Decimal("15"), "notes": "edited"}))
    updated = source.list_expenses(date(2024, 4, 6), date(2025, 4, 6))[0]
    assert updated.amount == Decimal("15")
    assert updated.notes == "edited"

    assert updated.id is not None
    source.delete_expense(updated.id)
    assert source.list_expenses(date(2024, 4, 6), date(2025, 4, 6)) == []


def test_delete_unknown_expense_raises(source: SqlFinanceSource) -> None:
    with pytest.raises(ValueError):
        source.delete_expense("not-a-uuid")
    with pytest.raises(ValueError):
        source.delete_expense("00000000-0000-0000-0000-000000000000")


def test_finance_service_over_local_database(source: SqlFinanceSource) -> None:
    source.orders.create(
        order_date=date(2024, 12, 1),
        gross_revenue=Decimal("10000"),
        platform_fees=Decimal("500"),
        payout=Decimal("9500"),
    )
    source.create_expense(make_expense("2000", date(2024, 12, 2)))
    source.create_mileage_log(make_trip("11000", date(2024, 12, 3)))

    summary = FinanceService(source).load(2024).summary

    assert summary.profit == Decimal("2750")
    assert summary.per_owner_profit == Decimal("1375")
    assert summary.est_tax_each == Decimal("275")
    assert summary.est_tax_total == Decimal("550")
