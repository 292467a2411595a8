from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from pydantic import BaseModel, model_validator

ZERO = Decimal("0")


class FinanceSettings(BaseModel):
    """Owner split, estimated tax rate and the two-tier mileage tariff.

    Owned by the settings store; this package only reads it.
    """

    owners_count: int = 2
    est_tax_rate: Decimal = Decimal("0.20")
    mileage_rate_first: Decimal = Decimal("0.45")
    mileage_rate_after: Decimal = Decimal("0.25")
    mileage_threshold: Decimal = Decimal("10000")

    @model_validator(mode="after")
    def _validate_rates(self) -> FinanceSettings:
        if not ZERO <= self.est_tax_rate <= 1:
            raise ValueError("est_tax_rate must be within [0, 1]")
        if self.mileage_rate_first < 0 or self.mileage_rate_after < 0:
            raise ValueError("mileage rates must be >= 0")
        if self.mileage_threshold < 0:
            raise ValueError("mileage_threshold must be >= 0")
        return self

    @classmethod
    def default(cls) -> FinanceSettings:
        return cls()


class OrdersSummary(BaseModel):
    gross_revenue: Decimal = ZERO
    platform_fees: Decimal = ZERO
    payout: Decimal = ZERO


class ExpenseRecord(BaseModel):
    id: str | None = None
    expense_date: date
    amount: Decimal
    category: str
    vendor: str | None = None
    paid_by: str
    source_type: str = "manual"
    source_id: str | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def _validate_fields(self) -> ExpenseRecord:
        if self.amount <= 0:
            raise ValueError("ExpenseRecord.amount must be > 0")
        if not self.category.strip():
            raise ValueError("ExpenseRecord.category must be non-empty")
        if not self.paid_by.strip():
            raise ValueError("ExpenseRecord.paid_by must be non-empty")
        return self


class MileageRecord(BaseModel):
    id: str | None = None
    trip_date: date
    person: str
    miles: Decimal
    start_location: str | None = None
    end_location: str | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def _validate_fields(self) -> MileageRecord:
        if self.miles <= 0:
            raise ValueError("MileageRecord.miles must be > 0")
        if not self.person.strip():
            raise ValueError("MileageRecord.person must be non-empty")
        return self


@dataclass(frozen=True)
class FinanceSummary:
    gross_revenue: Decimal
    platform_fees: Decimal
    payout: Decimal
    expenses_total: Decimal
    total_miles: Decimal
    mileage_claim_total: Decimal
    allowable_costs: Decimal
    profit: Decimal
    owners: int
    per_owner_profit: Decimal
    taxable_each: Decimal
    est_tax_each: Decimal
    est_tax_total: Decimal


def mileage_claim(total_miles: Decimal, settings: FinanceSettings) -> Decimal:
    """Claim at ``mileage_rate_first`` up to the threshold and ``mileage_rate_after`` beyond it."""
    if total_miles < 0:
        msg = f"total_miles must be >= 0, got {total_miles}"
        raise ValueError(msg)

    first_tier = min(total_miles, settings.mileage_threshold)
    second_tier = max(ZERO, total_miles - settings.mileage_threshold)
    return first_tier * settings.mileage_rate_first + second_tier * settings.mileage_rate_after


def sum_expenses(expenses: Iterable[ExpenseRecord]) -> Decimal:
    return sum((expense.amount for expense in expenses), ZERO)


def sum_miles(mileage: Iterable[MileageRecord]) -> Decimal:
    return sum((record.miles for record in mileage), ZERO)


def compute_finance_summary(
    orders_summary: OrdersSummary,
    expenses: Iterable[ExpenseRecord],
    mileage: Iterable[MileageRecord],
    settings: FinanceSettings,
) -> FinanceSummary:
    """Profit and estimated tax for one reporting interval.

    Cost of goods sold is not subtracted: stock purchases and postage are
    already recorded in the expense ledger. No rounding is applied here.
    """
    expenses_total = sum_expenses(expenses)
    total_miles = sum_miles(mileage)
    claim = mileage_claim(total_miles, settings)
    allowable_costs = expenses_total + claim

    profit = orders_summary.gross_revenue - orders_summary.platform_fees - allowable_costs

    owners = max(1, settings.owners_count)
    per_owner_profit = profit / owners
    # No tax is estimated on a loss.
    taxable_each = max(ZERO, per_owner_profit)
    est_tax_each = taxable_each * settings.est_tax_rate
    est_tax_total = est_tax_each * owners

    return FinanceSummary(
        gross_revenue=orders_summary.gross_revenue,
        platform_fees=orders_summary.platform_fees,
        payout=orders_summary.payout,
        expenses_total=expenses_total,
        total_miles=total_miles,
        mileage_claim_total=claim,
        allowable_costs=allowable_costs,
        profit=profit,
        owners=owners,
        per_owner_profit=per_owner_profit,
        taxable_each=taxable_each,
        est_tax_each=est_tax_each,
        est_tax_total=est_tax_total,
    )


__all__ = [
    "ExpenseRecord",
    "FinanceSettings",
    "FinanceSummary",
    "MileageRecord",
    "OrdersSummary",
    "compute_finance_summary",
    "mileage_claim",
    "sum_expenses",
    "sum_miles",
]
