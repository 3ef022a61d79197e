"""
Module: inventory_kernel.models.sales
Responsibility: Read model of customer sales orders and their lines, as
    needed for profit attribution.  Checkout, payment and shipping flows
    that write these rows live outside the kernel.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - total and net_profit are Decimal.  net_profit may be NULL for orders
      whose costs were never settled; those orders are ignored by profit
      attribution.

Audit relevance:
    Only orders in a counted status (PAID, SENT by default) contribute to
    the ABC ranking.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import TrackedBase, UUIDString


class SalesOrderStatus(str, Enum):
    PENDING = "PENDING"
    CREATED = "CREATED"
    PAID = "PAID"
    SENT = "SENT"
    CANCELLED = "CANCELLED"


class SalesOrder(TrackedBase):
    """Customer order header (external entity, read by the kernel)."""

    __tablename__ = "sales_orders"

    __table_args__ = (
        Index("idx_sales_order_store_status", "store_id", "status"),
        Index("idx_sales_order_store_created", "store_id", "created_at"),
    )

    store_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    order_number: Mapped[str | None] = mapped_column(String(50), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=SalesOrderStatus.PENDING.value,
    )

    total: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    net_profit: Mapped[Decimal | None] = mapped_column(nullable=True)

    paid_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    lines: Mapped[list["SalesOrderLine"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<SalesOrder {self.order_number or self.id} status={self.status}>"


class SalesOrderLine(TrackedBase):
    """One product line of a sales order."""

    __tablename__ = "sales_order_lines"

    __table_args__ = (
        Index("idx_sales_line_order", "order_id"),
        Index("idx_sales_line_product", "product_id"),
    )

    order_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("sales_orders.id"),
        nullable=False,
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=False,
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    # Unit price actually charged (after discounts)
    unit_price: Mapped[Decimal] = mapped_column(nullable=False)

    order: Mapped[SalesOrder] = relationship(back_populates="lines")

    def __repr__(self) -> str:
        return f"<SalesOrderLine product={self.product_id} qty={self.quantity}>"
