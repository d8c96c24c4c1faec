import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from salarybench.core.config import settings

logger = logging.getLogger(__name__)


def create_app_engine(database_url: str, **engine_kwargs):
    """
    Create an engine for the given URL.

    SQLite: check_same_thread=False plus a busy timeout so concurrent writers
    wait for the lock instead of failing straight away.
    Other backends: connection pooling with pre-ping.
    """
    if database_url.startswith("sqlite"):
        # TestClient and local scripts may access SQLite connections across threads.
        engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = create_engine(database_url, **engine_kwargs)

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.close()

        return engine

    engine_kwargs.setdefault("pool_pre_ping", True)
    return create_engine(database_url, **engine_kwargs)


engine = create_app_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
