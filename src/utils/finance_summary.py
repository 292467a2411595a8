from __future__ import annotations

from services.finance_service import FinanceReport

from .formatting import format_decimal, format_gbp


def finance_summary_lines(report: FinanceReport) -> list[tuple[str, str]]:
    summary = report.summary
    return [
        ("Box 1 · Gross revenue", format_gbp(summary.gross_revenue)),
        ("Box 2 · Platform fees", format_gbp(summary.platform_fees)),
        ("Box 3 · Expenses + mileage", format_gbp(summary.allowable_costs)),
        ("  Expenses", format_gbp(summary.expenses_total)),
        ("  Mileage claim", format_gbp(summary.mileage_claim_total)),
        ("Box 4 · Profit", format_gbp(summary.profit)),
        ("Box 5 · Est. tax owed", format_gbp(summary.est_tax_total)),
        ("  Each", format_gbp(summary.est_tax_each)),
        ("Payout (net received)", format_gbp(summary.payout)),
        ("Total miles", format_decimal(summary.total_miles)),
    ]


def render_finance_summary(report: FinanceReport) -> None:
    tax_year = report.tax_year
    print(f"Tax year {tax_year.label}: {tax_year.start_iso} → {tax_year.end_exclusive_iso} (end excl.)")

    rows = finance_summary_lines(report)
    label_width = max(len(label) for label, _ in rows)
    value_width = max(len(value) for _, value in rows)
    lines = [f"{label:<{label_width}} {value:>{value_width}}" for label, value in rows]
    separator = "-" * (label_width + value_width + 1)
    print("\n".join([separator, *lines, separator]))

    recent = report.recent_expenses()
    if not recent:
        print("No expenses in this tax year.")
        return
    print(f"Last {len(recent)} of {len(report.expenses)} expenses:")
    for expense in recent:
        vendor = expense.vendor or "-"
        print(f"  {expense.expense_date}  {format_gbp(expense.amount):>12}  {expense.category}  {vendor}")
