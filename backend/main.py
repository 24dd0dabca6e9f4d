from __future__ import annotations

import logging

from fastapi import FastAPI
from app.core.logging import setup_logging
from app.core.middleware import TenantMiddleware
from app.db.base import Base
from app.db.session import engine

# Register models
from app.db import models  # noqa: F401

from services.inventory.api import router as inventory_router
from services.sales.api import router as sales_router
from services.purchasing.api import router as purchasing_router
from services.mrp.api import router as mrp_router
from services.logistics.api import router as logistics_router

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Logistics Planning")
app.add_middleware(TenantMiddleware)

@app.on_event("startup")
async def _startup():
    # Dev-friendly schema creation (migrations are available for real upgrades)
    Base.metadata.create_all(bind=engine)
    logger.info("logistics planning API started")

app.include_router(inventory_router)
app.include_router(sales_router)
app.include_router(purchasing_router)
app.include_router(mrp_router)
app.include_router(logistics_router)

@app.get("/health")
def health():
    return {"ok": True}
