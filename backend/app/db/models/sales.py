"""
MODULE: SALES & ORDER MANAGEMENT
Customers and sales orders awaiting fulfillment
"""

from __future__ import annotations

from app.db.base import Base
from app.db.models.common import HasId, HasCreatedAt, HasUpdatedAt
from datetime import date
from decimal import Decimal
from sqlalchemy import String, Date, Integer, Numeric, ForeignKey, JSON, Index, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

# ============= CUSTOMER MANAGEMENT =============

class Customer(Base, HasId, HasCreatedAt):
    """Customer master"""
    __tablename__ = "sales_customer"

    tenant_id: Mapped[str] = mapped_column(String(64), default="default", index=True, nullable=False)
    customer_code: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    customer_name: Mapped[str | None] = mapped_column(String(256), nullable=True, index=True)

    # Individuals have no business name
    first_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(128), nullable=True)

    meta: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    @property
    def display_name(self) -> str:
        if self.customer_name:
            return self.customer_name
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


# ============= SALES ORDERS =============

class SalesOrder(Base, HasId, HasCreatedAt, HasUpdatedAt):
    """Sales order header"""
    __tablename__ = "sales_order"

    tenant_id: Mapped[str] = mapped_column(String(64), default="default", index=True, nullable=False)
    order_number: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    customer_id: Mapped[str | None] = mapped_column(ForeignKey("sales_customer.id"), nullable=True, index=True)
    order_date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[str] = mapped_column(String(24), default="PENDING", nullable=False, index=True)
    # PENDING|CONFIRMED|PROCESSING|READY|SHIPPED|DELIVERED|CANCELLED
    priority: Mapped[str] = mapped_column(String(16), default="NORMAL", nullable=False, index=True)
    # LOW|NORMAL|HIGH|URGENT

    currency: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, nullable=False)

    # Billing name used when the order has no customer record (storefront guests)
    billing_name: Mapped[str | None] = mapped_column(String(256), nullable=True)

    # Shipping
    shipping_address_line1: Mapped[str | None] = mapped_column(String(256), nullable=True)
    shipping_city: Mapped[str | None] = mapped_column(String(128), nullable=True)
    shipping_postal_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    shipping_country: Mapped[str | None] = mapped_column(String(3), nullable=True)
    shipping_method: Mapped[str | None] = mapped_column(String(64), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    meta: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    customer: Mapped[Customer | None] = relationship()

Index("ix_sales_order_status_priority", SalesOrder.status, SalesOrder.priority, SalesOrder.created_at)


class SalesOrderLine(Base, HasId, HasCreatedAt):
    """Sales order line items"""
    __tablename__ = "sales_order_line"

    order_id: Mapped[str] = mapped_column(ForeignKey("sales_order.id"), nullable=False, index=True)
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)

    # Service/free-text lines have no item and never consume stock
    item_id: Mapped[str | None] = mapped_column(ForeignKey("inv_item_master.id"), nullable=True, index=True)
    description: Mapped[str | None] = mapped_column(String(512), nullable=True)

    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 6), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(18, 6), default=0, nullable=False)

    meta: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    order: Mapped[SalesOrder] = relationship()

Index("ix_sales_order_line_order_line", SalesOrderLine.order_id, SalesOrderLine.line_number)
