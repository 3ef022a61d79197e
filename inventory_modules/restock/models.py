"""
Restock Domain Models (``inventory_modules.restock.models``).

Responsibility
--------------
Frozen value objects for supplier purchase orders ("restock orders") and
their receipt: the order and its items as seen by callers, the inputs to
create and receive, and the receipt result.

Architecture
------------
Layer: **Modules** -- pure domain data structures.  No database identity
beyond the ids they carry and no I/O; ``orm.py`` converts to and from them.

Invariants
----------
- ``RestockItemInput`` requires a positive integer quantity and a
  non-negative unit cost.
- ``ReceiveLine`` is NOT validated on construction: invalid lines are
  reported in ``ReceiveResult.skipped_lines`` instead of raising.
- All monetary fields use ``Decimal``.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from uuid import UUID

from inventory_kernel.exceptions import InvalidQuantityError
from inventory_kernel.logging_config import get_logger

logger = get_logger("modules.restock.models")


class RestockOrderStatus(str, Enum):
    """Lifecycle of a restock order."""
    DRAFT = "DRAFT"
    ORDERED = "ORDERED"
    PARTIALLY_RECEIVED = "PARTIALLY_RECEIVED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class SkipReason(str, Enum):
    """Why a receive line was not applied."""
    UNKNOWN_ITEM = "unknown_item"
    NON_POSITIVE_QUANTITY = "non_positive_quantity"


@dataclass(frozen=True)
class RestockItemInput:
    """One line of a new (or replaced) order."""
    product_id: UUID
    quantity: int
    cost: Decimal

    def __post_init__(self):
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise InvalidQuantityError("quantity", self.quantity, "must be an integer")
        if self.quantity <= 0:
            raise InvalidQuantityError("quantity", self.quantity, "must be positive")
        if self.cost < 0:
            raise InvalidQuantityError("cost", self.cost, "cannot be negative")

    @property
    def subtotal(self) -> Decimal:
        return self.cost * self.quantity


@dataclass(frozen=True)
class ReceiveLine:
    """Goods received against one order item.

    ``cost`` overrides the item's order-time unit cost when the supplier
    invoiced a different price.
    """
    item_id: UUID
    quantity: int
    cost: Decimal | None = None


@dataclass(frozen=True)
class SkippedLine:
    item_id: UUID
    quantity: int
    reason: SkipReason


@dataclass(frozen=True)
class ReceivedLine:
    """A receive line that produced a RESTOCK_RECEIVED movement."""
    item_id: UUID
    product_id: UUID
    quantity: int
    base_unit_cost: Decimal
    landed_unit_cost: Decimal
    movement_id: UUID


@dataclass(frozen=True)
class RestockOrderItem:
    id: UUID
    product_id: UUID
    quantity: int
    cost: Decimal
    subtotal: Decimal
    quantity_received: int
    index: int

    @property
    def outstanding(self) -> int:
        """Units still expected; zero once fully (or over-) received."""
        return max(self.quantity - self.quantity_received, 0)

    @property
    def is_fully_received(self) -> bool:
        return self.quantity_received >= self.quantity


@dataclass(frozen=True)
class RestockOrder:
    id: UUID
    store_id: UUID
    supplier_id: UUID
    order_number: str
    status: RestockOrderStatus
    total_amount: Decimal
    shipping_cost: Decimal
    notes: str | None = None
    items: tuple[RestockOrderItem, ...] = ()

    @property
    def has_receipts(self) -> bool:
        return any(item.quantity_received > 0 for item in self.items)


@dataclass(frozen=True)
class ReceiveResult:
    """
    Outcome of ``RestockOrderService.receive``.

    Guarantees:
        - One entry in ``received`` per movement written.
        - Every input line is either in ``received`` or in ``skipped_lines``.
    """
    order_id: UUID
    previous_status: RestockOrderStatus
    status: RestockOrderStatus
    received: tuple[ReceivedLine, ...] = ()
    skipped_lines: tuple[SkippedLine, ...] = ()

    @property
    def status_changed(self) -> bool:
        return self.previous_status != self.status

    @property
    def total_units(self) -> int:
        return sum(line.quantity for line in self.received)
