from typing import Annotated, Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from config import config
from db.repositories import SqlFinanceSource
from services.finance_service import FinanceService
from services.finance_sources import FinanceDataSource, SupabaseFinanceSource
from services.supabase_client import SupabaseClient


def get_session(request: Request) -> Generator[Session, None, None]:
    with request.app.state.sessionmaker() as session:
        yield session


def get_finance_source(session: Annotated[Session, Depends(get_session)]) -> FinanceDataSource:
    settings = config()
    if settings.use_supabase:
        client = SupabaseClient(
            url=settings.supabase_url,
            api_key=settings.supabase_key,
            timeout=settings.supabase_timeout,
        )
        return SupabaseFinanceSource(client)
    return SqlFinanceSource(session)


def get_finance_service(source: Annotated[FinanceDataSource, Depends(get_finance_source)]) -> FinanceService:
    return FinanceService(source)
