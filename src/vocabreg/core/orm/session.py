"""Engine and session factories.

Callers own the session lifecycle: the workflow core reads and writes
through the session it is handed and never opens or closes one itself.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


def create_registry_engine(url: str = "sqlite:///vocabreg.db", *, echo: bool = False, **kwargs: Any) -> Engine:
    """Create a SQLAlchemy engine with sane defaults.

    In-memory SQLite URLs get a ``StaticPool`` so every session sees the
    same database.
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        if ":memory:" in url or url == "sqlite://":
            kwargs.setdefault("poolclass", StaticPool)

        engine = _sa_create_engine(url, echo=echo, **kwargs)

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection: Any, _rec: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return _sa_create_engine(url, echo=echo, **kwargs)


class RegistrySession(Session):
    """Pre-configured session with ``expire_on_commit=False``.

    Task infos keep their vocabulary and version rows after the run's
    commit; expiring them would trigger lazy loads on a closed session.
    """

    def __init__(self, bind: Engine | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("expire_on_commit", False)
        super().__init__(bind=bind, **kwargs)


def registry_session_factory(engine: Engine) -> sessionmaker[RegistrySession]:
    """Return a ``sessionmaker`` bound to *engine* that produces ``RegistrySession`` instances.

    ``sessionmaker`` always passes its own ``expire_on_commit``, so the
    factory has to carry the setting as well.
    """
    return sessionmaker(bind=engine, class_=RegistrySession, expire_on_commit=False)
