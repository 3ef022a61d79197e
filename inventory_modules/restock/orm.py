"""
Module: inventory_modules.restock.orm
Responsibility: SQLAlchemy ORM persistence models for restock orders and
    their items.  Maps the frozen DTOs of restock.models to relational tables.

Architecture position: Modules > Restock > ORM.  Inherits from TrackedBase
    (inventory_kernel.db.base).  Items reference products by foreign key;
    suppliers are external and referenced by UUID with NO foreign key.

Invariants enforced:
    - Monetary fields use Decimal (Numeric(38,9)), never float.
    - order_number is unique per store.
    - quantity_received never decreases: assigning a lower value raises
      ImmutabilityViolationError at attribute-set time.
    - Status stored as String(30) for portability and readability.

Failure modes:
    - IntegrityError on a duplicate (store_id, order_number).
    - ImmutabilityViolationError on a quantity_received decrease.

Audit relevance:
    - quantity_received is cumulative.  Each increment has a matching
      RESTOCK_RECEIVED movement whose reference_id is the order id.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from inventory_kernel.db.base import TrackedBase, UUIDString
from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.logging_config import get_logger

logger = get_logger("modules.restock.orm")


# =============================================================================
# RestockOrderModel
# =============================================================================

class RestockOrderModel(TrackedBase):
    """
    ORM model for supplier purchase orders.

    Maps to: inventory_modules.restock.models.RestockOrder (frozen dataclass).
    """

    __tablename__ = "restock_orders"

    __table_args__ = (
        UniqueConstraint("store_id", "order_number", name="uq_restock_order_number"),
        Index("idx_restock_order_store_status", "store_id", "status"),
        Index("idx_restock_order_supplier", "supplier_id"),
    )

    store_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    supplier_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    order_number: Mapped[str] = mapped_column(String(30), nullable=False)

    status: Mapped[str] = mapped_column(String(30), nullable=False, default="DRAFT")

    total_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    shipping_cost: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    items: Mapped[list["RestockOrderItemModel"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="RestockOrderItemModel.index",
        lazy="selectin",
    )

    def to_dto(self):
        """Convert ORM model to frozen RestockOrder DTO."""
        from inventory_modules.restock.models import RestockOrder, RestockOrderStatus
        return RestockOrder(
            id=self.id,
            store_id=self.store_id,
            supplier_id=self.supplier_id,
            order_number=self.order_number,
            status=RestockOrderStatus(self.status),
            total_amount=self.total_amount,
            shipping_cost=self.shipping_cost,
            notes=self.notes,
            items=tuple(item.to_dto() for item in self.items),
        )

    def __repr__(self) -> str:
        return f"<RestockOrderModel {self.order_number} status={self.status}>"


# =============================================================================
# RestockOrderItemModel
# =============================================================================

class RestockOrderItemModel(TrackedBase):
    """
    ORM model for one ordered product line.

    Maps to: inventory_modules.restock.models.RestockOrderItem.

    Guarantees:
        - quantity_received is monotonically non-decreasing.
    """

    __tablename__ = "restock_order_items"

    __table_args__ = (
        Index("idx_restock_item_order", "restock_order_id"),
        Index("idx_restock_item_product", "product_id"),
        CheckConstraint("quantity > 0", name="chk_restock_item_quantity_positive"),
        CheckConstraint(
            "quantity_received >= 0",
            name="chk_restock_item_received_non_negative",
        ),
    )

    restock_order_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("restock_orders.id", ondelete="CASCADE"),
        nullable=False,
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=False,
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    # Unit cost at order time
    cost: Mapped[Decimal] = mapped_column(nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(nullable=False)

    quantity_received: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    order: Mapped[RestockOrderModel] = relationship(back_populates="items")

    @validates("quantity_received")
    def _validate_quantity_received(self, key: str, value: int) -> int:
        current = self.quantity_received
        if current is not None and value < current:
            logger.error(
                "immutability_violation_blocked",
                extra={
                    "entity_type": "RestockOrderItem",
                    "entity_id": str(self.id),
                    "quantity_received": current,
                    "attempted": value,
                },
            )
            raise ImmutabilityViolationError(
                "RestockOrderItem",
                str(self.id),
                f"quantity_received cannot decrease ({current} -> {value})",
            )
        return value

    def to_dto(self):
        """Convert ORM model to frozen RestockOrderItem DTO."""
        from inventory_modules.restock.models import RestockOrderItem
        return RestockOrderItem(
            id=self.id,
            product_id=self.product_id,
            quantity=self.quantity,
            cost=self.cost,
            subtotal=self.subtotal,
            quantity_received=self.quantity_received or 0,
            index=self.index,
        )

    def __repr__(self) -> str:
        return (
            f"<RestockOrderItemModel product={self.product_id} "
            f"{self.quantity_received}/{self.quantity}>"
        )
