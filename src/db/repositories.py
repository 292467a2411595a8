from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from db import models
from domain.finance import ExpenseRecord, FinanceSettings, MileageRecord, OrdersSummary
from domain.queries import ExpensePage, ExpenseQuery
from services.finance_sources import FinanceDataSource


def _parse_id(raw_id: str) -> UUID:
    try:
        return UUID(raw_id)
    except ValueError as exc:
        msg = f"Invalid record id {raw_id!r}"
        raise ValueError(msg) from exc


class FinanceSettingsRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self) -> FinanceSettings | None:
        orm_settings = self._session.get(models.FinanceSettingsOrm, 1)
        if orm_settings is None:
            return None
        return FinanceSettings(
            owners_count=orm_settings.owners_count,
            est_tax_rate=orm_settings.est_tax_rate,
            mileage_rate_first=orm_settings.mileage_rate_first,
            mileage_rate_after=orm_settings.mileage_rate_after,
            mileage_threshold=orm_settings.mileage_threshold,
        )

    def save(self, settings: FinanceSettings) -> FinanceSettings:
        orm_settings = self._session.get(models.FinanceSettingsOrm, 1) or models.FinanceSettingsOrm(id=1)
        orm_settings.owners_count = settings.owners_count
        orm_settings.est_tax_rate = settings.est_tax_rate
        orm_settings.mileage_rate_first = settings.mileage_rate_first
        orm_settings.mileage_rate_after = settings.mileage_rate_after
        orm_settings.mileage_threshold = settings.mileage_threshold
        self._session.add(orm_settings)
        self._session.commit()
        return settings


class OrderRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create(
        self,
        *,
        order_date: date,
        gross_revenue: Decimal,
        platform_fees: Decimal,
        payout: Decimal,
        platform: str | None = None,
        is_refunded: bool = False,
    ) -> UUID:
        orm_order = models.OrderOrm(
            order_date=order_date,
            platform=platform,
            gross_revenue=gross_revenue,
            platform_fees=platform_fees,
            payout=payout,
            is_refunded=is_refunded,
        )
        self._session.add(orm_order)
        self._session.commit()
        return orm_order.id

    def summary(self, start: date, end_exclusive: date, platform: str | None = None) -> OrdersSummary:
        query = self._session.query(models.OrderOrm).filter(
            models.OrderOrm.order_date >= start,
            models.OrderOrm.order_date < end_exclusive,
            models.OrderOrm.is_refunded.is_(False),
        )
        if platform:
            query = query.filter(models.OrderOrm.platform == platform)

        gross = fees = payout = Decimal("0")
        # Decimals are stored as strings, so they are summed here rather than in SQL.
        for order in query.all():
            gross += order.gross_revenue
            fees += order.platform_fees
            payout += order.payout
        return OrdersSummary(gross_revenue=gross, platform_fees=fees, payout=payout)


class ExpenseRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, expense: ExpenseRecord) -> ExpenseRecord:
        orm_expense = models.ExpenseOrm(
            expense_date=expense.expense_date,
            amount=expense.amount,
            category=expense.category.strip(),
            vendor=expense.vendor,
            paid_by=expense.paid_by.strip(),
            source_type=expense.source_type,
            source_id=expense.source_id,
            notes=expense.notes,
        )
        if expense.id is not None:
            orm_expense.id = _parse_id(expense.id)
        self._session.add(orm_expense)
        self._session.commit()
        self._session.refresh(orm_expense)
        return self._to_domain(orm_expense)

    def update(self, expense: ExpenseRecord) -> ExpenseRecord:
        if expense.id is None:
            msg = "expense must have an id to be updated"
            raise ValueError(msg)
        orm_expense = self._session.get(models.ExpenseOrm, _parse_id(expense.id))
        if orm_expense is None:
            msg = f"Unknown expense {expense.id}"
            raise ValueError(msg)

        orm_expense.expense_date = expense.expense_date
        orm_expense.amount = expense.amount
        orm_expense.category = expense.category.strip()
        orm_expense.vendor = expense.vendor
        orm_expense.paid_by = expense.paid_by.strip()
        orm_expense.notes = expense.notes
        self._session.commit()
        return self._to_domain(orm_expense)

    def delete(self, expense_id: str) -> None:
        orm_expense = self._session.get(models.ExpenseOrm, _parse_id(expense_id))
        if orm_expense is None:
            msg = f"Unknown expense {expense_id}"
            raise ValueError(msg)
        self._session.delete(orm_expense)
        self._session.commit()

    def list_in_range(self, start: date, end_exclusive: date) -> list[ExpenseRecord]:
        orm_expenses = (
            self._in_range(start, end_exclusive)
            .order_by(models.ExpenseOrm.expense_date.asc(), models.ExpenseOrm.created_at.asc())
            .all()
        )
        return [self._to_domain(expense) for expense in orm_expenses]

    def page(self, query: ExpenseQuery) -> ExpensePage:
        tax_year = query.range
        base = self._in_range(tax_year.start, tax_year.end_exclusive)
        if query.search:
            pattern = f"%{query.search}%"
            base = base.filter(
                or_(
                    models.ExpenseOrm.category.ilike(pattern),
                    models.ExpenseOrm.vendor.ilike(pattern),
                    models.ExpenseOrm.paid_by.ilike(pattern),
                    models.ExpenseOrm.notes.ilike(pattern),
                )
            )

        total_count = base.with_entities(func.count(models.ExpenseOrm.id)).scalar() or 0
        orm_expenses = (
            base.order_by(models.ExpenseOrm.expense_date.desc(), models.ExpenseOrm.created_at.desc())
            .limit(query.page_size)
            .offset(query.offset)
            .all()
        )
        return ExpensePage(
            query=query,
            records=[self._to_domain(expense) for expense in orm_expenses],
            total_count=total_count,
        )

    def _in_range(self, start: date, end_exclusive: date) -> Query[models.ExpenseOrm]:
        return self._session.query(models.ExpenseOrm).filter(
            models.ExpenseOrm.expense_date >= start,
            models.ExpenseOrm.expense_date < end_exclusive,
        )

    @staticmethod
    def _to_domain(orm_expense: models.ExpenseOrm) -> ExpenseRecord:
        return ExpenseRecord(
            id=str(orm_expense.id),
            expense_date=orm_expense.expense_date,
            amount=orm_expense.amount,
            category=orm_expense.category,
            vendor=orm_expense.vendor,
            paid_by=orm_expense.paid_by,
            source_type=orm_expense.source_type,
            source_id=orm_expense.source_id,
            notes=orm_expense.notes,
        )


class MileageRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, record: MileageRecord) -> MileageRecord:
        orm_log = models.MileageLogOrm(
            trip_date=record.trip_date,
            person=record.person.strip(),
            start_location=record.start_location,
            end_location=record.end_location,
            miles=record.miles,
            notes=record.notes,
        )
        self._session.add(orm_log)
        self._session.commit()
        self._session.refresh(orm_log)
        return self._to_domain(orm_log)

    def list_in_range(self, start: date, end_exclusive: date) -> list[MileageRecord]:
        orm_logs = (
            self._session.query(models.MileageLogOrm)
            .filter(models.MileageLogOrm.trip_date >= start, models.MileageLogOrm.trip_date < end_exclusive)
            .order_by(models.MileageLogOrm.trip_date.asc(), models.MileageLogOrm.created_at.asc())
            .all()
        )
        return [self._to_domain(log) for log in orm_logs]

    @staticmethod
    def _to_domain(orm_log: models.MileageLogOrm) -> MileageRecord:
        return MileageRecord(
            id=str(orm_log.id),
            trip_date=orm_log.trip_date,
            person=orm_log.person,
            miles=orm_log.miles,
            start_location=orm_log.start_location,
            end_location=orm_log.end_location,
            notes=orm_log.notes,
        )


class SqlFinanceSource(FinanceDataSource):
    """Finance data kept in a local database, mirroring the stored-procedure contract."""

    def __init__(self, session: Session) -> None:
        self.settings = FinanceSettingsRepository(session)
        self.orders = OrderRepository(session)
        self.expenses = ExpenseRepository(session)
        self.mileage = MileageRepository(session)

    def fetch_settings(self) -> FinanceSettings:
        return self.settings.get() or FinanceSettings.default()

    def fetch_orders_summary(self, start: date, end_exclusive: date, platform: str | None = None) -> OrdersSummary:
        return self.orders.summary(start, end_exclusive, platform)

    def list_expenses(self, start: date, end_exclusive: date) -> list[ExpenseRecord]:
        return self.expenses.list_in_range(start, end_exclusive)

    def list_mileage(self, start: date, end_exclusive: date) -> list[MileageRecord]:
        return self.mileage.list_in_range(start, end_exclusive)

    def list_expenses_page(self, query: ExpenseQuery) -> ExpensePage:
        return self.expenses.page(query)

    def create_expense(self, expense: ExpenseRecord) -> None:
        self.expenses.create(expense)

    def update_expense(self, expense: ExpenseRecord) -> None:
        self.expenses.update(expense)

    def delete_expense(self, expense_id: str) -> None:
        self.expenses.delete(expense_id)

    def create_mileage_log(self, record: MileageRecord) -> None:
        self.mileage.create(record)
