"""
Module: inventory_kernel.models.product
Responsibility: ORM persistence for catalog products as far as the stock
    ledger is concerned: current stock, acquisition cost, sell price and the
    ABC tier.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - stock is derived state: it changes only through the LedgerWriter.
      db/immutability.py rejects any flush that alters stock without a
      ledger grant on the session.
    - movement_seq is the per-product movement counter; it is incremented
      under the same row lock that guards stock.
    - abc_classification is one of A, B, C (default C).

Failure modes:
    - StockWriteViolationError on a direct stock assignment.

Audit relevance:
    Product.stock must always equal the new_stock of the product's latest
    movement once the initial migration has run (see MovementSelector.verify_product).
"""

from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import CheckConstraint, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase, UUIDString


class AbcClass(str, Enum):
    """Pareto tier of a product by attributed profit."""

    A = "A"
    B = "B"
    C = "C"


class Product(TrackedBase):
    """
    Catalog product owned by a store.

    Non-goals:
        - Catalog taxonomy (categories, sizes, colors, suppliers) lives
          outside this kernel.
    """

    __tablename__ = "products"

    __table_args__ = (
        Index("idx_product_store", "store_id"),
        Index("idx_product_store_abc", "store_id", "abc_classification"),
        CheckConstraint(
            "abc_classification IN ('A', 'B', 'C')",
            name="ck_product_abc_classification",
        ),
    )

    store_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    sku: Mapped[str | None] = mapped_column(String(100), nullable=True)

    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Unit acquisition cost, used as the opening-balance movement cost
    acq_price: Mapped[Decimal | None] = mapped_column(nullable=True)

    price: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    abc_classification: Mapped[str] = mapped_column(
        String(1),
        nullable=False,
        default=AbcClass.C.value,
    )

    movement_seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<Product {self.name} stock={self.stock} abc={self.abc_classification}>"
