"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the ledger (request handlers, batch importers, the restock and
classification modules) need to react to failures precisely. Parsing message
strings is fragile, so every error here carries:

  1. A TYPED exception class (catch by type, not message)
  2. A CODE attribute (machine-readable, API-safe)
  3. Structured DATA (product ids, quantities, statuses)

Example:
    try:
        writer.create_movement(params)
    except InsufficientStockError as e:
        api_response(code=e.code, product=e.product_id, available=e.available)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from InventoryKernelError:

    InventoryKernelError (base)
    |
    +-- ValidationError
    |   +-- MissingFieldError
    |   +-- ZeroQuantityError
    |   +-- InvalidQuantityError
    |   +-- UnknownMovementTypeError
    |   +-- DisallowedMovementTypeError
    |   +-- MovementSignError
    |   +-- InsufficientStockError
    |
    +-- NotFoundError
    |   +-- ProductNotFoundError
    |   +-- RestockOrderNotFoundError
    |
    +-- ConflictError
    |   +-- RestockOrderNotEditableError
    |   +-- RestockOrderNotDeletableError
    |   +-- RestockOrderNotReceivableError
    |   +-- InvalidStatusTransitionError
    |
    +-- PartialInputError
    |   +-- NoValidReceiveLinesError
    |
    +-- StorageError
    |   +-- LedgerStorageError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError
        +-- StockWriteViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                        | When Raised
-------------|-----------------------------|--------------------------------------
Validation   | MISSING_FIELD               | product/store/reason absent
             | ZERO_QUANTITY               | movement quantity is 0
             | INVALID_QUANTITY            | ordered quantity/cost out of range
             | UNKNOWN_MOVEMENT_TYPE       | type outside the closed enumeration
             | DISALLOWED_MOVEMENT_TYPE    | system type on a user-facing path
             | MOVEMENT_SIGN_VIOLATION     | quantity sign contradicts the type
             | INSUFFICIENT_STOCK          | decrement exceeds available stock
-------------|-----------------------------|--------------------------------------
Not found    | PRODUCT_NOT_FOUND           | product absent or in another store
             | RESTOCK_ORDER_NOT_FOUND     | order absent or in another store
-------------|-----------------------------|--------------------------------------
Conflict     | RESTOCK_ORDER_NOT_EDITABLE  | items/supplier edit outside DRAFT
             | RESTOCK_ORDER_NOT_DELETABLE | delete outside DRAFT/CANCELLED
             | RESTOCK_ORDER_NOT_RECEIVABLE| receive on DRAFT/CANCELLED
             | INVALID_STATUS_TRANSITION   | transition not declared in workflow
-------------|-----------------------------|--------------------------------------
Partial      | NO_VALID_RECEIVE_LINES      | every receive line was skipped
-------------|-----------------------------|--------------------------------------
Storage      | LEDGER_STORAGE_ERROR        | flush failed while writing movements
-------------|-----------------------------|--------------------------------------
Immutability | IMMUTABILITY_VIOLATION      | movement update/delete attempted
             | STOCK_WRITE_VIOLATION       | Product.stock written outside ledger

===============================================================================
"""


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"


# Validation exceptions


class ValidationError(InventoryKernelError):
    """Base exception for rejected input."""

    code: str = "VALIDATION_ERROR"


class MissingFieldError(ValidationError):
    """A required field was not supplied."""

    code: str = "MISSING_FIELD"

    def __init__(self, field_name: str, context: str | None = None):
        self.field_name = field_name
        self.context = context
        detail = f" ({context})" if context else ""
        super().__init__(f"Missing required field '{field_name}'{detail}")


class ZeroQuantityError(ValidationError):
    """A movement must change stock by a non-zero amount."""

    code: str = "ZERO_QUANTITY"

    def __init__(self, movement_type: str, product_id: str | None = None):
        self.movement_type = movement_type
        self.product_id = product_id
        target = f" for product {product_id}" if product_id else ""
        super().__init__(f"Movement {movement_type}{target} has zero quantity")


class InvalidQuantityError(ValidationError):
    """A quantity or amount is outside its allowed range."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, field_name: str, value: object, reason: str):
        self.field_name = field_name
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field_name}={value!r}: {reason}")


class UnknownMovementTypeError(ValidationError):
    """Movement type is not a member of the closed enumeration."""

    code: str = "UNKNOWN_MOVEMENT_TYPE"

    def __init__(self, movement_type: object):
        self.movement_type = movement_type
        super().__init__(f"Unknown movement type: {movement_type!r}")


class DisallowedMovementTypeError(ValidationError):
    """Movement type exists but may not be used on this path."""

    code: str = "DISALLOWED_MOVEMENT_TYPE"

    def __init__(self, movement_type: str, allowed: tuple[str, ...]):
        self.movement_type = movement_type
        self.allowed = allowed
        super().__init__(
            f"Movement type {movement_type} is not allowed here; "
            f"allowed: {', '.join(allowed)}"
        )


class MovementSignError(ValidationError):
    """Quantity sign contradicts the sign rule of its movement type."""

    code: str = "MOVEMENT_SIGN_VIOLATION"

    def __init__(self, movement_type: str, quantity: int, expected_sign: str):
        self.movement_type = movement_type
        self.quantity = quantity
        self.expected_sign = expected_sign
        super().__init__(
            f"Movement {movement_type} requires a {expected_sign} quantity, "
            f"got {quantity}"
        )


class InsufficientStockError(ValidationError):
    """One or more products cannot cover the requested decrements."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, shortages: list[dict]):
        # Each shortage: {"product_id", "name", "available", "requested"}
        self.shortages = shortages
        if len(shortages) == 1:
            s = shortages[0]
            msg = (
                f"Insufficient stock for product {s['product_id']}: "
                f"available {s['available']}, requested {s['requested']}"
            )
        else:
            ids = ", ".join(str(s["product_id"]) for s in shortages)
            msg = f"Insufficient stock for {len(shortages)} products: {ids}"
        super().__init__(msg)

    @property
    def product_ids(self) -> list[str]:
        return [str(s["product_id"]) for s in self.shortages]


# Not-found exceptions


class NotFoundError(InventoryKernelError):
    """Base exception for missing entities."""

    code: str = "NOT_FOUND"


class ProductNotFoundError(NotFoundError):
    """Product does not exist in the given store."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str, store_id: str | None = None):
        self.product_id = product_id
        self.store_id = store_id
        where = f" in store {store_id}" if store_id else ""
        super().__init__(f"Product not found: {product_id}{where}")


class RestockOrderNotFoundError(NotFoundError):
    """Restock order does not exist in the given store."""

    code: str = "RESTOCK_ORDER_NOT_FOUND"

    def __init__(self, order_id: str, store_id: str | None = None):
        self.order_id = order_id
        self.store_id = store_id
        where = f" in store {store_id}" if store_id else ""
        super().__init__(f"Restock order not found: {order_id}{where}")


# Conflict exceptions


class ConflictError(InventoryKernelError):
    """Base exception for operations that conflict with current state."""

    code: str = "CONFLICT"


class RestockOrderNotEditableError(ConflictError):
    """Fields of the order are frozen in its current status."""

    code: str = "RESTOCK_ORDER_NOT_EDITABLE"

    def __init__(self, order_id: str, status: str, fields: tuple[str, ...]):
        self.order_id = order_id
        self.status = status
        self.fields = fields
        super().__init__(
            f"Restock order {order_id} in status {status} cannot change "
            f"{', '.join(fields)}"
        )


class RestockOrderNotDeletableError(ConflictError):
    """Only DRAFT or CANCELLED orders may be deleted."""

    code: str = "RESTOCK_ORDER_NOT_DELETABLE"

    def __init__(self, order_id: str, status: str):
        self.order_id = order_id
        self.status = status
        super().__init__(
            f"Restock order {order_id} in status {status} cannot be deleted"
        )


class RestockOrderNotReceivableError(ConflictError):
    """Goods can only be received against a placed order."""

    code: str = "RESTOCK_ORDER_NOT_RECEIVABLE"

    def __init__(self, order_id: str, status: str):
        self.order_id = order_id
        self.status = status
        super().__init__(
            f"Restock order {order_id} in status {status} must be placed "
            "before receiving"
        )


class InvalidStatusTransitionError(ConflictError):
    """Requested status change is not declared by the order workflow."""

    code: str = "INVALID_STATUS_TRANSITION"

    def __init__(self, order_id: str, from_status: str, to_status: str):
        self.order_id = order_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Restock order {order_id} cannot move from {from_status} "
            f"to {to_status}"
        )


# Partial-input exceptions


class PartialInputError(InventoryKernelError):
    """Base exception for requests whose usable part is empty."""

    code: str = "PARTIAL_INPUT"


class NoValidReceiveLinesError(PartialInputError):
    """Every submitted receive line was skipped."""

    code: str = "NO_VALID_RECEIVE_LINES"

    def __init__(self, order_id: str, skipped: list[dict]):
        self.order_id = order_id
        self.skipped = skipped
        super().__init__(
            f"No valid receive lines for restock order {order_id} "
            f"({len(skipped)} skipped)"
        )


# Storage exceptions


class StorageError(InventoryKernelError):
    """Base exception for persistence failures."""

    code: str = "STORAGE_ERROR"


class LedgerStorageError(StorageError):
    """Writing movements failed; nothing from the call was persisted."""

    code: str = "LEDGER_STORAGE_ERROR"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Ledger {operation} failed: {detail}")


# Immutability exceptions


class ImmutabilityError(InventoryKernelError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Movements are immutable from creation; restock receipts are
    cumulative and may never decrease.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


class StockWriteViolationError(ImmutabilityError):
    """Product.stock was changed without a ledger movement."""

    code: str = "STOCK_WRITE_VIOLATION"

    def __init__(self, product_id: str, old_stock: int | None, new_stock: int | None):
        self.product_id = product_id
        self.old_stock = old_stock
        self.new_stock = new_stock
        super().__init__(
            f"Stock of product {product_id} changed from {old_stock} to "
            f"{new_stock} outside the movement ledger"
        )
