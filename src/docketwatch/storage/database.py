from __future__ import annotations

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import sessionmaker

from docketwatch.storage.models import Base


def create_session_factory(database_url: str) -> tuple[sessionmaker, Engine]:
    """Return a session factory for the docket database and the engine behind it."""

    engine = create_engine(database_url, future=True)
    return sessionmaker(bind=engine, expire_on_commit=False), engine


def init_db(engine: Engine) -> None:
    """Create any missing docket, reminder, and run-ledger tables."""

    Base.metadata.create_all(engine)
