from __future__ import annotations
import contextvars

DEFAULT_TENANT = "default"

_tenant: contextvars.ContextVar[str] = contextvars.ContextVar("tenant_id", default=DEFAULT_TENANT)

def set_tenant_id(tenant_id: str | None) -> None:
    _tenant.set(tenant_id or DEFAULT_TENANT)

def get_tenant_id() -> str:
    return _tenant.get()
