# blousecraft/db.py
from __future__ import annotations

import math
import os
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .errors import ConfigurationError

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./blousecraft.db")

# Backends with INSERT ... ON CONFLICT, which profile upserts rely on.
SUPPORTED_DIALECTS = frozenset({"postgresql", "sqlite"})

Base = declarative_base()


def _null_safe(fn):
    def wrapper(*args):
        if any(a is None for a in args):
            return None
        return fn(*args)

    return wrapper


# Functions PostgreSQL ships natively; SQLite builds may lack them.
_SQLITE_FUNCTIONS = {
    "radians": (1, math.radians),
    "sin": (1, math.sin),
    "cos": (1, math.cos),
    "asin": (1, math.asin),
    "sqrt": (1, math.sqrt),
    "least": (2, min),
    "greatest": (2, max),
}


def register_sqlite_functions(dbapi_conn) -> None:
    for name, (nargs, fn) in _SQLITE_FUNCTIONS.items():
        dbapi_conn.create_function(name, nargs, _null_safe(fn), deterministic=True)


def make_engine(url: str, **kwargs) -> Engine:
    backend = make_url(url).get_backend_name()
    if backend not in SUPPORTED_DIALECTS:
        raise ConfigurationError(
            "Unsupported database backend",
            internal_details=f"DATABASE_URL backend {backend!r}; expected one of {sorted(SUPPORTED_DIALECTS)}",
        )

    if backend == "sqlite":
        kwargs.setdefault("connect_args", {"check_same_thread": False})

    eng = create_engine(url, **kwargs)

    if eng.dialect.name == "sqlite":

        @event.listens_for(eng, "connect")
        def _on_connect(dbapi_conn, _record):
            register_sqlite_functions(dbapi_conn)
            # SQLite ignores FK constraints unless asked
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON")
            cur.close()

    return eng


engine = make_engine(DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=True)


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
