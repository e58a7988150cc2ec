from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from config.settings import settings
from persistence.models import Base


def _get_db_url(db_path: str) -> str:
    # Ensure parent directory exists
    os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
    return f"sqlite:///{db_path}"


def build_engine(db_path: str, echo: bool = False) -> Engine:
    return create_engine(
        _get_db_url(db_path),
        connect_args={"check_same_thread": False},
        echo=echo,
    )


engine = build_engine(settings.sqlite_db_path, echo=settings.db_echo)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def configure_database(db_path: str) -> None:
    """Point the module-level engine and session factory at another SQLite file."""
    global engine, SessionLocal
    engine = build_engine(db_path, echo=settings.db_echo)
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def init_db() -> None:
    """Create all tables if they don't exist."""
    Base.metadata.create_all(bind=engine)


@contextmanager
def get_db_session() -> Iterator[Session]:
    """Context manager for database sessions with auto-rollback on error."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
