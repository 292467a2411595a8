import logging
from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal
from time import perf_counter
from typing import Annotated, AsyncGenerator, Awaitable, Callable

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response
from pydantic import BaseModel
from sqlalchemy.orm import sessionmaker

from api.dependencies import get_finance_service
from db.db import create_db_engine
from domain.queries import DEFAULT_PAGE_SIZE, ExpenseQuery
from domain.tax_year import (
    MAX_TAX_YEAR,
    MIN_TAX_YEAR,
    current_tax_year_start,
    selectable_tax_years,
    tax_year_label,
)
from services.finance_service import FinanceLoadError, FinanceService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI) -> AsyncGenerator[None, None]:
    engine = create_db_engine()
    fastapi_app.state.sessionmaker = sessionmaker(engine)
    yield
    engine.dispose()


app = FastAPI(lifespan=lifespan)


@app.middleware("http")
async def log_process_time(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    start_time = perf_counter()
    response = await call_next(request)
    process_time = perf_counter() - start_time
    logger.info("Request time: %s %s: %.4fs", request.method, request.url, process_time)
    return response


class TaxYearOption(BaseModel):
    start_year: int
    label: str


class TaxYearsResponse(BaseModel):
    current: int
    options: list[TaxYearOption]


class FinanceResponse(BaseModel):
    tax_year: str
    start: date
    end_exclusive: date
    gross_revenue: Decimal
    platform_fees: Decimal
    payout: Decimal
    expenses_total: Decimal
    total_miles: Decimal
    mileage_claim_total: Decimal
    profit: Decimal
    per_owner_profit: Decimal
    est_tax_each: Decimal
    est_tax_total: Decimal


class ExpenseItem(BaseModel):
    id: str | None = None
    expense_date: date
    amount: Decimal
    category: str
    vendor: str | None = None
    paid_by: str
    source_type: str
    notes: str | None = None


class ExpensePageResponse(BaseModel):
    tax_year: str
    page: int
    page_size: int
    page_count: int
    total_count: int
    records: list[ExpenseItem]


@app.get("/tax-years")
def get_tax_years() -> TaxYearsResponse:
    current = current_tax_year_start()
    return TaxYearsResponse(
        current=current,
        options=[TaxYearOption(start_year=year, label=tax_year_label(year)) for year in selectable_tax_years(current)],
    )


@app.get("/finance")
def get_finance(
    service: Annotated[FinanceService, Depends(get_finance_service)],
    tax_year: Annotated[int | None, Query(ge=MIN_TAX_YEAR, le=MAX_TAX_YEAR)] = None,
    platform: str | None = None,
) -> FinanceResponse:
    try:
        report = service.load(tax_year, platform=platform)
    except FinanceLoadError as exc:
        raise HTTPException(status_code=502, detail="Failed to load finance") from exc

    summary = report.summary
    return FinanceResponse(
        tax_year=report.tax_year.label,
        start=report.tax_year.start,
        end_exclusive=report.tax_year.end_exclusive,
        gross_revenue=summary.gross_revenue,
        platform_fees=summary.platform_fees,
        payout=summary.payout,
        expenses_total=summary.expenses_total,
        total_miles=summary.total_miles,
        mileage_claim_total=summary.mileage_claim_total,
        profit=summary.profit,
        per_owner_profit=summary.per_owner_profit,
        est_tax_each=summary.est_tax_each,
        est_tax_total=summary.est_tax_total,
    )


@app.get("/expenses")
def get_expenses(
    service: Annotated[FinanceService, Depends(get_finance_service)],
    tax_year: Annotated[int | None, Query(ge=MIN_TAX_YEAR, le=MAX_TAX_YEAR)] = None,
    search: str | None = None,
    page_size: Annotated[int, Query(gt=0, le=500)] = DEFAULT_PAGE_SIZE,
    page: Annotated[int, Query(ge=0)] = 0,
) -> ExpensePageResponse:
    query = ExpenseQuery(
        tax_year_start=tax_year if tax_year is not None else current_tax_year_start(),
        search=search,
        page_size=page_size,
        page=page,
    )
    try:
        expense_page = service.expense_log(query)
    except FinanceLoadError as exc:
        raise HTTPException(status_code=502, detail="Failed to load expenses") from exc

    return ExpensePageResponse(
        tax_year=query.range.label,
        page=query.page,
        page_size=query.page_size,
        page_count=expense_page.page_count,
        total_count=expense_page.total_count,
        records=[ExpenseItem.model_validate(record.model_dump()) for record in expense_page.records],
    )
