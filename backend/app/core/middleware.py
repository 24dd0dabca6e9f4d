from __future__ import annotations
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from app.core.tenant import set_tenant_id

class TenantMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        # Starlette header lookup is case-insensitive
        set_tenant_id(request.headers.get("X-Tenant-Id"))
        return await call_next(request)
