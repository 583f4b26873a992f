"""
db/session.py – Engine factory + Session helper.

One engine per database URL, cached. db_session() is a context manager that
commits on success, rolls back on error and always closes.
"""
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .models import Base


# ── Engine cache (1 engine / URL) ─────────────────────────────────────────────

_engines: dict[str, Engine] = {}
_session_factories: dict[str, sessionmaker] = {}


def _get_engine(url: str) -> Engine:
    if url not in _engines:
        is_sqlite = url.startswith("sqlite")
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False} if is_sqlite else {},
            echo=False,
        )
        if is_sqlite:
            @event.listens_for(engine, "connect")
            def set_pragmas(conn, _):
                cursor = conn.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        _engines[url] = engine
        _session_factories[url] = sessionmaker(bind=engine, expire_on_commit=False)
    return _engines[url]


def get_session_factory(url: str) -> sessionmaker:
    _get_engine(url)
    return _session_factories[url]


def create_schema(url: str) -> None:
    """Create missing tables (local dev + tests)."""
    Base.metadata.create_all(_get_engine(url))


@contextmanager
def db_session(url: str) -> Generator[Session, None, None]:
    """Yield a Session; commit, rollback on error, close."""
    factory = get_session_factory(url)
    session: Session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
