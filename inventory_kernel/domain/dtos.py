"""
DTOs -- Pure domain data transfer objects for the stock ledger.

Responsibility:
    Defines the immutable structures that cross the ledger boundary:
    MovementParams (input to the LedgerWriter), MovementRecord (persisted
    movement as seen by callers), BatchOutcome (resilient batch result),
    MigrationResult (initial stock migration summary) and the SoldOrder
    read model consumed by profit attribution.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    ``from_model()`` exists as a boundary converter and is only invoked from
    the service and selector layers.

Invariants enforced:
    - MovementRecord.new_stock == previous_stock + quantity (checked in
      __post_init__ so a corrupted row can never be handed out silently).
    - Money fields are Decimal, never float.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from inventory_kernel.domain.movement_policy import MovementType

if TYPE_CHECKING:
    from inventory_kernel.models.movement import Movement

SYSTEM_ACTOR = "SYSTEM"


@dataclass(frozen=True)
class MovementParams:
    """
    One requested stock change.

    Contract:
        ``quantity`` is already sign-normalized by the movement policy
        (``normalize_quantity`` / ``normalize_adjustment``); the writer
        re-checks the sign but never flips it.

    Non-goals:
        - Does NOT validate itself; the LedgerWriter validates every params
          object of a batch before its first write.
    """

    store_id: UUID
    product_id: UUID
    type: MovementType | str
    quantity: int
    reason: str
    description: str | None = None
    cost: Decimal | None = None
    price: Decimal | None = None
    reference_id: str | None = None
    created_by: str = SYSTEM_ACTOR


@dataclass(frozen=True)
class MovementRecord:
    """A persisted movement with its before/after stock snapshots."""

    movement_id: UUID
    store_id: UUID
    product_id: UUID
    type: MovementType
    quantity: int
    previous_stock: int
    new_stock: int
    sequence: int
    reason: str
    created_by: str
    created_at: datetime
    description: str | None = None
    cost: Decimal | None = None
    price: Decimal | None = None
    reference_id: str | None = None

    def __post_init__(self) -> None:
        if self.previous_stock + self.quantity != self.new_stock:
            raise ValueError(
                f"Movement {self.movement_id} snapshot mismatch: "
                f"{self.previous_stock} + {self.quantity} != {self.new_stock}"
            )

    @classmethod
    def from_model(cls, model: Movement) -> MovementRecord:
        return cls(
            movement_id=model.id,
            store_id=model.store_id,
            product_id=model.product_id,
            type=MovementType(model.type),
            quantity=model.quantity,
            previous_stock=model.previous_stock,
            new_stock=model.new_stock,
            sequence=model.sequence,
            reason=model.reason,
            created_by=model.created_by,
            created_at=model.created_at,
            description=model.description,
            cost=model.cost,
            price=model.price,
            reference_id=model.reference_id,
        )


@dataclass(frozen=True)
class BatchFailure:
    """A line of a resilient batch that was not applied."""

    index: int
    params: MovementParams
    error_code: str
    reason: str


@dataclass(frozen=True)
class BatchOutcome:
    """Result of ``LedgerWriter.create_movement_batch_resilient``."""

    succeeded: tuple[MovementRecord, ...] = ()
    failed: tuple[BatchFailure, ...] = ()

    @property
    def all_succeeded(self) -> bool:
        return not self.failed


@dataclass(frozen=True)
class MigrationError:
    """A product the initial migration could not process."""

    product_id: UUID
    product_name: str
    error: str


@dataclass(frozen=True)
class MigrationResult:
    """
    Summary of one ``migrate_initial_stock`` run.

    Guarantees:
        - processed == migrated + skipped + len(errors)
    """

    processed: int
    migrated: int
    skipped: int
    errors: tuple[MigrationError, ...] = field(default_factory=tuple)

    @property
    def is_complete(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class SoldLine:
    """One product line of a counted sales order."""

    product_id: UUID
    quantity: int
    unit_price: Decimal

    @property
    def revenue(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class SoldOrder:
    """A sales order eligible for profit attribution."""

    order_id: UUID
    total: Decimal
    net_profit: Decimal | None
    lines: tuple[SoldLine, ...] = ()
