from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.core.cache import CacheStore
from app.core.tenant import get_tenant_id
from services.logistics.dashboard import invalidate_dashboard_cache


def commit_refresh(db: Session, obj):
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def commit_planning_change(db: Session, cache: CacheStore) -> None:
    """Commit a write that changes supply, demand or production, then drop the cached dashboard."""
    db.commit()
    invalidate_dashboard_cache(cache, get_tenant_id())


def parse_date(value, field: str) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise HTTPException(400, f"{field}: expected YYYY-MM-DD")


def to_decimal(value, field: str, default: str = "0") -> Decimal:
    try:
        return Decimal(str(value if value is not None else default))
    except InvalidOperation:
        raise HTTPException(400, f"{field}: not a number")
