"""
Module: inventory_kernel.models.movement
Responsibility: ORM persistence for inventory movements -- the immutable,
    append-only record of every stock change.
Architecture position: Kernel > Models.  Imports db/base.py and the pure
    MovementType enum from domain/movement_policy.py.

Invariants enforced:
    - new_stock = previous_stock + quantity (CHECK constraint).
    - quantity != 0 (CHECK constraint).
    - (product_id, sequence) is unique: replay order is total per product.
    - At most one INITIAL_MIGRATION movement per product (partial unique
      index), backing the migration guard's check-before-write.
    - Immutability: db/immutability.py rejects UPDATE and DELETE.

Failure modes:
    - IntegrityError on a second INITIAL_MIGRATION row for a product.
    - ImmutabilityViolationError on any UPDATE/DELETE through the ORM.

Audit relevance:
    Movement rows are the authoritative stock history.  Product.stock at
    any instant is reconstructible by replaying a product's movements in
    (created_at, sequence) order.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString
from inventory_kernel.domain.movement_policy import MovementType


class Movement(Base):
    """
    One signed stock change with before/after snapshots.

    Contract:
        Rows are created by the LedgerWriter only and never modified.

    Non-goals:
        - Does NOT enforce the sign policy at the database level; the
          LedgerWriter checks it before insert.
    """

    __tablename__ = "inventory_movements"

    __table_args__ = (
        UniqueConstraint("product_id", "sequence", name="uq_movement_product_seq"),
        CheckConstraint("quantity <> 0", name="ck_movement_nonzero_quantity"),
        CheckConstraint(
            "new_stock = previous_stock + quantity",
            name="ck_movement_stock_arithmetic",
        ),
        Index("idx_movement_product_type", "product_id", "type"),
        Index("idx_movement_store_created", "store_id", "created_at"),
        Index("idx_movement_reference", "reference_id"),
        Index(
            "uq_movement_initial_migration",
            "product_id",
            unique=True,
            postgresql_where=text("type = 'INITIAL_MIGRATION'"),
            sqlite_where=text("type = 'INITIAL_MIGRATION'"),
        ),
    )

    store_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=False,
    )

    type: Mapped[MovementType] = mapped_column(String(30), nullable=False)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    previous_stock: Mapped[int] = mapped_column(Integer, nullable=False)

    new_stock: Mapped[int] = mapped_column(Integer, nullable=False)

    # Per-product monotonic position, replay tiebreak for equal created_at
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    reason: Mapped[str] = mapped_column(String(500), nullable=False)

    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    # Unit cost and unit sell price at the time of the movement
    cost: Mapped[Decimal | None] = mapped_column(nullable=True)

    price: Mapped[Decimal | None] = mapped_column(nullable=True)

    # Order id, restock order id, import batch id ...
    reference_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    created_by: Mapped[str] = mapped_column(String(100), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<Movement {self.type} {self.quantity:+d} "
            f"{self.previous_stock}->{self.new_stock}>"
        )
