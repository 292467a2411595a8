# flake8: noqa E402
# Run via uv so project deps are loaded, e.g.:
# uv run scripts/finance_probe.py --tax-year 2024
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

# Ensure the src directory is importable when the script is invoked via uv/python directly.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from config import config
from domain.tax_year import current_tax_year_start, resolve_tax_year
from services.finance_sources import SupabaseFinanceSource
from services.supabase_client import SupabaseClient


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Call the live finance RPCs for one tax year and dump the rows.")
    parser.add_argument("--tax-year", type=int, help="Tax year start, e.g. 2024 (default: current tax year).")
    parser.add_argument("--platform", help="Optional platform filter for the orders summary.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    settings = config()
    if not settings.use_supabase:
        raise SystemExit("SUPABASE_URL and SUPABASE_KEY must be set")

    tax_year = resolve_tax_year(args.tax_year if args.tax_year is not None else current_tax_year_start())
    client = SupabaseClient(url=settings.supabase_url, api_key=settings.supabase_key, timeout=settings.supabase_timeout)
    source = SupabaseFinanceSource(client)

    finance_settings = source.fetch_settings()
    orders = source.fetch_orders_summary(tax_year.start, tax_year.end_exclusive, args.platform)
    expenses = source.list_expenses(tax_year.start, tax_year.end_exclusive)
    mileage = source.list_mileage(tax_year.start, tax_year.end_exclusive)

    payload: dict[str, Any] = {
        "tax_year": tax_year.label,
        "from": tax_year.start_iso,
        "to_exclusive": tax_year.end_exclusive_iso,
        "settings": finance_settings.model_dump(mode="json"),
        "orders_summary": orders.model_dump(mode="json"),
        "expense_rows": len(expenses),
        "mileage_rows": len(mileage),
    }
    print(json.dumps(payload, indent=2))


if __name__ == "__main__":
    main()
