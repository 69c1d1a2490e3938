"""Identity store access: users and their admin flags."""
from __future__ import annotations

from contextlib import contextmanager
from functools import lru_cache
from pathlib import Path
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .config import Settings, get_settings

SQLITE_PREFIX = "sqlite:///"


class Base(DeclarativeBase):
    pass


@lru_cache(maxsize=8)
def _store_for_url(db_url: str) -> tuple[Engine, sessionmaker[Session]]:
    connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}
    engine = create_engine(db_url, connect_args=connect_args)
    return engine, sessionmaker(bind=engine, autoflush=False)


def get_engine(settings: Settings | None = None) -> Engine:
    engine, _ = _store_for_url((settings or get_settings()).db_url)
    return engine


def _sqlite_file(db_url: str) -> Path | None:
    if not db_url.startswith(SQLITE_PREFIX):
        return None
    raw = db_url.removeprefix(SQLITE_PREFIX)
    if not raw or raw == ":memory:":
        return None
    return Path(raw)


def init_db(settings: Settings | None = None) -> None:
    active = settings or get_settings()
    db_file = _sqlite_file(active.db_url)
    if db_file is not None:
        db_file.parent.mkdir(parents=True, exist_ok=True)

    from . import models  # noqa: F401

    Base.metadata.create_all(bind=get_engine(active))


@contextmanager
def session_scope(settings: Settings | None = None) -> Iterator[Session]:
    _, make_session = _store_for_url((settings or get_settings()).db_url)
    with make_session() as session:
        yield session
