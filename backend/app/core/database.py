# backend/app/core/database.py

import asyncio
import logging
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, TypeVar

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from backend.app.config import settings
from backend.app.core.timeouts import bounded

# Register the tables on SQLModel.metadata
import backend.app.models.db_models  # noqa: F401

logger = logging.getLogger(__name__)

T = TypeVar("T")


def make_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise each thread sees an empty db
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=False, **kwargs)
    return create_engine(url, echo=False, pool_pre_ping=True)


class Database:
    """Owns the SQLModel engine; runs blocking session work off the event loop."""

    def __init__(self, url: Optional[str] = None, engine: Optional[Engine] = None):
        self.engine = engine or make_engine(url or settings.DATABASE_URL)

    def init_db(self) -> None:
        """Create tables if they don't exist."""
        SQLModel.metadata.create_all(self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        with Session(self.engine, expire_on_commit=False) as session:
            yield session

    async def run(self, fn: Callable[[Session], T], what: str = "database call") -> T:
        """Run `fn(session)` in a worker thread, bounded like every external call."""
        def _call() -> T:
            with self.session() as session:
                return fn(session)

        return await bounded(asyncio.to_thread(_call), what=what)
