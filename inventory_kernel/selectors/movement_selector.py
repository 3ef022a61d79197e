"""
Module: inventory_kernel.selectors.movement_selector
Responsibility: Read access to the movement ledger: listings for stores and
    products, existence checks for the migration guard, point-in-time stock
    replay and snapshot-chain verification.
Architecture position: Kernel > Selectors.  Read-only.

Invariants enforced:
    - Replay order is (created_at, sequence); sequence is unique per product
      so the order is total.
    - Chain verification: each movement's previous_stock equals the
      new_stock of the movement before it, and the last new_stock equals
      Product.stock.

Audit relevance:
    verify_product() is the tool an auditor runs to prove that a product's
    stock was produced by its movements and nothing else.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select

from inventory_kernel.domain.dtos import MovementRecord
from inventory_kernel.domain.movement_policy import MovementType
from inventory_kernel.exceptions import ProductNotFoundError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.movement import Movement
from inventory_kernel.models.product import Product
from inventory_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.movement")


@dataclass(frozen=True)
class ChainBreak:
    """A movement whose previous_stock does not continue the chain."""

    movement_id: UUID
    sequence: int
    expected_previous: int
    actual_previous: int


@dataclass(frozen=True)
class ChainVerification:
    """Outcome of verifying one product's movement chain."""

    product_id: UUID
    movement_count: int
    product_stock: int
    last_new_stock: int | None
    replayed_stock: int
    breaks: tuple[ChainBreak, ...] = ()

    @property
    def is_valid(self) -> bool:
        if self.movement_count == 0:
            return self.product_stock == 0
        return (
            not self.breaks
            and self.last_new_stock == self.product_stock
            and self.replayed_stock == self.product_stock
        )


class MovementSelector(BaseSelector[Movement]):
    """Query the movement ledger."""

    def list_for_store(
        self,
        store_id: UUID,
        limit: int = 100,
        movement_type: MovementType | None = None,
    ) -> list[MovementRecord]:
        """Most recent movements of a store, newest first."""
        stmt = select(Movement).where(Movement.store_id == store_id)
        if movement_type is not None:
            stmt = stmt.where(Movement.type == MovementType(movement_type).value)
        stmt = stmt.order_by(
            Movement.created_at.desc(), Movement.sequence.desc()
        ).limit(limit)
        return [MovementRecord.from_model(m) for m in self.session.scalars(stmt)]

    def list_for_product(
        self,
        product_id: UUID,
        as_of: datetime | None = None,
    ) -> list[MovementRecord]:
        """All movements of a product in replay order."""
        stmt = select(Movement).where(Movement.product_id == product_id)
        if as_of is not None:
            stmt = stmt.where(Movement.created_at <= as_of)
        stmt = stmt.order_by(Movement.created_at, Movement.sequence)
        return [MovementRecord.from_model(m) for m in self.session.scalars(stmt)]

    def list_for_reference(self, reference_id: str) -> list[MovementRecord]:
        """Movements emitted for one order, restock order or import batch."""
        stmt = (
            select(Movement)
            .where(Movement.reference_id == reference_id)
            .order_by(Movement.created_at, Movement.sequence)
        )
        return [MovementRecord.from_model(m) for m in self.session.scalars(stmt)]

    def has_movement(self, product_id: UUID, movement_type: MovementType) -> bool:
        stmt = select(
            select(Movement.id)
            .where(
                Movement.product_id == product_id,
                Movement.type == MovementType(movement_type).value,
            )
            .exists()
        )
        return bool(self.session.scalar(stmt))

    def replay_stock(self, product_id: UUID, as_of: datetime | None = None) -> int:
        """Stock reconstructed from movements, optionally as of a point in time."""
        stmt = select(func.coalesce(func.sum(Movement.quantity), 0)).where(
            Movement.product_id == product_id
        )
        if as_of is not None:
            stmt = stmt.where(Movement.created_at <= as_of)
        return int(self.session.scalar(stmt))

    def totals_by_type(self, store_id: UUID) -> dict[MovementType, int]:
        """Signed quantity per movement type for a store."""
        stmt = (
            select(Movement.type, func.sum(Movement.quantity))
            .where(Movement.store_id == store_id)
            .group_by(Movement.type)
        )
        return {
            MovementType(mtype): int(total)
            for mtype, total in self.session.execute(stmt)
        }

    def verify_product(self, product_id: UUID) -> ChainVerification:
        """
        Check that a product's movements form an unbroken snapshot chain
        ending at its current stock.

        Raises:
            ProductNotFoundError: product does not exist.
        """
        product = self.session.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError(str(product_id))

        # Sequence is assigned under the product row lock, so it is the write order
        stmt = (
            select(Movement)
            .where(Movement.product_id == product_id)
            .order_by(Movement.sequence)
        )
        movements = [MovementRecord.from_model(m) for m in self.session.scalars(stmt)]
        breaks: list[ChainBreak] = []
        expected_previous: int | None = None
        for m in movements:
            if expected_previous is not None and m.previous_stock != expected_previous:
                breaks.append(ChainBreak(
                    movement_id=m.movement_id,
                    sequence=m.sequence,
                    expected_previous=expected_previous,
                    actual_previous=m.previous_stock,
                ))
            expected_previous = m.new_stock

        result = ChainVerification(
            product_id=product_id,
            movement_count=len(movements),
            product_stock=product.stock,
            last_new_stock=movements[-1].new_stock if movements else None,
            replayed_stock=sum(m.quantity for m in movements),
            breaks=tuple(breaks),
        )
        if not result.is_valid:
            logger.warning(
                "movement_chain_invalid",
                extra={
                    "product_id": str(product_id),
                    "movement_count": result.movement_count,
                    "product_stock": result.product_stock,
                    "last_new_stock": result.last_new_stock,
                    "replayed_stock": result.replayed_stock,
                    "break_count": len(breaks),
                },
            )
        return result
