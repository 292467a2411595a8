from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from config import config
from db.db import init_db
from db.repositories import SqlFinanceSource
from domain.tax_year import MAX_TAX_YEAR, MIN_TAX_YEAR, current_tax_year_start
from services.finance_service import FinanceLoadError, FinanceService
from services.finance_sources import FinanceDataSource, SupabaseFinanceSource
from services.supabase_client import SupabaseClient
from utils.finance_summary import render_finance_summary


def build_finance_source(*, local: bool = False, database_url: str | None = None) -> FinanceDataSource:
    settings = config()
    if settings.use_supabase and not local:
        client = SupabaseClient(
            url=settings.supabase_url,
            api_key=settings.supabase_key,
            timeout=settings.supabase_timeout,
        )
        return SupabaseFinanceSource(client)
    return SqlFinanceSource(init_db(database_url))


def run(tax_year: int, *, platform: str | None, local: bool, database_url: str | None) -> int:
    service = FinanceService(build_finance_source(local=local, database_url=database_url))
    try:
        report = service.load(tax_year, platform=platform)
    except FinanceLoadError as exc:
        print(f"{exc}: {exc.__cause__}", file=sys.stderr)
        return 1

    render_finance_summary(report)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Print the UK tax-year finance summary.")
    parser.add_argument("--tax-year", type=int, default=None, help="start year, e.g. 2024 for 2024-25")
    parser.add_argument("--platform", default=None)
    parser.add_argument("--local", action="store_true", help="read the local database even if Supabase is configured")
    parser.add_argument("--database-url", default=None)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)
    if args.tax_year is not None and not MIN_TAX_YEAR <= args.tax_year <= MAX_TAX_YEAR:
        parser.error(f"--tax-year must be between {MIN_TAX_YEAR} and {MAX_TAX_YEAR}")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    tax_year = args.tax_year if args.tax_year is not None else current_tax_year_start()
    return run(tax_year, platform=args.platform, local=args.local, database_url=args.database_url)


if __name__ == "__main__":
    sys.exit(main())
