"""
Shared fixtures: in-memory SQLite database, fresh cache, API client.
"""
import os

# Must be set before app.db.session builds the engine
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app.core.cache import InMemoryCache, set_cache
from app.core.tenant import set_tenant_id
from app.db import models  # noqa: F401
from app.db.base import Base
from app.db.session import SessionLocal, engine

TODAY = date(2026, 3, 2)


def day(n: int) -> date:
    return TODAY + timedelta(days=n)


def at(n: int) -> datetime:
    """Creation timestamp n minutes after midnight of TODAY."""
    return datetime(TODAY.year, TODAY.month, TODAY.day) + timedelta(minutes=n)


def D(value) -> Decimal:
    return Decimal(str(value))


@pytest.fixture(autouse=True)
def cache():
    c = InMemoryCache()
    set_cache(c)
    yield c
    c.clear()


@pytest.fixture(autouse=True)
def default_tenant():
    set_tenant_id(None)
    yield


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    from main import app
    return TestClient(app)
