from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from config import config
from db.models import Base


def create_db_engine(database_url: str | None = None, *, echo: bool = False) -> Engine:
    url = database_url or config().database_url
    if url.startswith("sqlite:///"):
        db_path = url.removeprefix("sqlite:///")
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(url, echo=echo)
    Base.metadata.create_all(engine)
    return engine


def init_db(database_url: str | None = None, *, echo: bool = False) -> Session:
    return sessionmaker(create_db_engine(database_url, echo=echo))()
