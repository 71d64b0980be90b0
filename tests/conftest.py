"""Shared fixtures: an in-memory database per test, factories, and an API client."""

from __future__ import annotations

import os

# Must be set before the app module builds its default engine.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_JSON", "0")
os.environ.setdefault("JWT_SECRET", "test-secret")

from collections.abc import Callable, Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from blousecraft.auth import create_token
from blousecraft.db import Base, get_db, make_engine
from blousecraft.main import app
from blousecraft.models import Order, Tailor, User


@pytest.fixture
def session_factory() -> Generator[sessionmaker, None, None]:
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=True)
    engine.dispose()


@pytest.fixture
def db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    s = session_factory()
    yield s
    s.close()


@pytest.fixture
def client(session_factory: sessionmaker) -> Generator[TestClient, None, None]:
    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def auth_header(user_id: str, **claims: Any) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_token(user_id, **claims)}"}


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    def _make(user_id: str, *, lat: float | None = None, lng: float | None = None, **fields: Any) -> User:
        u = User(id=user_id, latitude=lat, longitude=lng, **fields)
        db.add(u)
        db.commit()
        return u

    return _make


@pytest.fixture
def make_tailor(db: Session, make_user: Callable[..., User]) -> Callable[..., Tailor]:
    def _make(
        user_id: str,
        *,
        lat: float | None = None,
        lng: float | None = None,
        verified: bool = True,
        rating: float = 0.0,
        first_name: str | None = None,
        last_name: str | None = None,
        **fields: Any,
    ) -> Tailor:
        u = make_user(user_id, lat=lat, lng=lng, role="tailor", first_name=first_name, last_name=last_name)
        fields.setdefault("business_name", f"{user_id} Boutique")
        t = Tailor(user_id=u.id, is_verified=verified, average_rating=rating, **fields)
        db.add(t)
        db.commit()
        return t

    return _make


@pytest.fixture
def make_order(db: Session) -> Callable[..., Order]:
    counter = {"n": 0}

    def _make(customer: User, tailor: Tailor, *, status: str = "pending", **fields: Any) -> Order:
        counter["n"] += 1
        fields.setdefault("blouse_type", "princess cut")
        fields.setdefault("pickup_address", "12 MG Road, Hyderabad")
        o = Order(
            order_number=f"BCTEST{counter['n']}",
            customer_id=customer.id,
            tailor_id=tailor.id,
            status=status,
            **fields,
        )
        db.add(o)
        db.commit()
        return o

    return _make
