from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import Boolean, Date, DateTime, Integer, String, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class DecimalAsString(TypeDecorator):
    impl = String
    cache_ok = True

    def process_bind_param(self, value: Decimal | None, dialect: object) -> str | None:
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value: str | None, dialect: object) -> Decimal | None:
        if value is None:
            return None
        return Decimal(value)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class FinanceSettingsOrm(Base):
    __tablename__ = "finance_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    owners_count: Mapped[int] = mapped_column(Integer, nullable=False)
    est_tax_rate: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    mileage_rate_first: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    mileage_rate_after: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    mileage_threshold: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)


class OrderOrm(Base):
    __tablename__ = "orders"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    order_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    platform: Mapped[str | None] = mapped_column(String, nullable=True)
    gross_revenue: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    platform_fees: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    payout: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    is_refunded: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class ExpenseOrm(Base):
    __tablename__ = "expenses"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    expense_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False)
    vendor: Mapped[str | None] = mapped_column(String, nullable=True)
    paid_by: Mapped[str] = mapped_column(String, nullable=False)
    source_type: Mapped[str] = mapped_column(String, nullable=False, default="manual")
    source_id: Mapped[str | None] = mapped_column(String, nullable=True)
    notes: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class MileageLogOrm(Base):
    __tablename__ = "mileage_logs"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    trip_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    person: Mapped[str] = mapped_column(String, nullable=False)
    start_location: Mapped[str | None] = mapped_column(String, nullable=True)
    end_location: Mapped[str | None] = mapped_column(String, nullable=True)
    miles: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    notes: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
