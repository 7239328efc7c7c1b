from __future__ import annotations

from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from .config import settings

_IS_SQLITE = settings.database_url.startswith("sqlite")

engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False} if _IS_SQLITE else {},
)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

if _IS_SQLITE:
    @event.listens_for(engine, "connect")
    def _sqlite_pragmas(dbapi_connection, connection_record) -> None:
        cursor = dbapi_connection.cursor()
        # readers keep scanning while a write is in flight
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()


class Base(DeclarativeBase):
    pass


def init_db() -> None:
    """Create the ``kv_store`` table if it does not exist yet."""
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db():
    """One session per request; closed once the response is sent."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
