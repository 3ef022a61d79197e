"""
LedgerWriter -- the single mutation path for product stock.

Responsibility:
    Turns MovementParams into persisted Movement rows and applies each
    movement's signed quantity to Product.stock, recording the before/after
    snapshots on the movement.

Architecture position:
    Kernel > Services -- imperative shell.  Called by request handlers,
    the restock module (receiving), checkout hooks (ORDER_PLACED /
    ORDER_CANCELLED) and the migration service (opening balances).

Invariants enforced:
    - new_stock = previous_stock + quantity for every movement, with
      previous_stock read under a row lock (SELECT ... FOR UPDATE).
    - Exactly one stock mutation per movement; movements of the same
      product inside a batch chain their snapshots, they are never merged.
    - The quantity sign satisfies the movement type policy.
    - Batches are all-or-nothing: every params object is validated and
      every product is locked before the first write, and the writes run
      inside a SAVEPOINT.
    - Products are locked in sorted id order so concurrent batches cannot
      deadlock on each other.

Failure modes:
    - ZeroQuantityError, MissingFieldError, UnknownMovementTypeError,
      MovementSignError, InvalidQuantityError: rejected before any write.
    - ProductNotFoundError: product absent or owned by another store.
    - InsufficientStockError: batch decrements exceed available stock
      (only when validate_stock=True).
    - LedgerStorageError: flush failed mid-batch; the SAVEPOINT is rolled
      back so no movement and no stock change from the call survives.

Audit relevance:
    Every movement is logged (movement_recorded) with product, type,
    quantity and both snapshots.  Batch start/completion/rejection events
    carry the batch size and the offending line.

Non-goals:
    - Does NOT commit; the caller owns the transaction.
    - Does NOT retry.  Movement calls are not idempotent.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventory_kernel.db.immutability import grant_stock_write, revoke_stock_writes
from inventory_kernel.domain.clock import Clock
from inventory_kernel.domain.dtos import (
    BatchFailure,
    BatchOutcome,
    MovementParams,
    MovementRecord,
)
from inventory_kernel.domain.movement_policy import (
    MovementType,
    check_sign,
    parse_movement_type,
)
from inventory_kernel.exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    InventoryKernelError,
    LedgerStorageError,
    MissingFieldError,
    ProductNotFoundError,
    ZeroQuantityError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.movement import Movement
from inventory_kernel.models.product import Product
from inventory_kernel.services.base import BaseService

logger = get_logger("services.ledger_writer")


@dataclass(frozen=True)
class _ValidatedMovement:
    """A params object that passed validation, with its parsed type."""

    index: int
    params: MovementParams
    movement_type: MovementType


class LedgerWriter(BaseService[Movement]):
    """
    Writes movements and the stock changes they imply.

    Contract:
        ``create_movement`` and ``create_movement_batch`` either persist
        every requested movement (flushed, uncommitted) or raise and
        persist nothing.  ``create_movement_batch_resilient`` isolates each
        movement in its own SAVEPOINT and reports the failures.

    Guarantees:
        - Returned MovementRecords are in input order.
        - Product.stock equals the new_stock of the product's last movement
          written by this call.

    Non-goals:
        - Does NOT normalize signs.  Callers run quantities through
          ``normalize_quantity`` / ``normalize_adjustment`` first.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session, clock)

    # =========================================================================
    # Public API
    # =========================================================================

    def create_movement(
        self,
        params: MovementParams,
        validate_stock: bool = False,
    ) -> MovementRecord:
        """
        Record one movement and apply it to the product's stock.

        Args:
            params: Sign-normalized movement request.
            validate_stock: Reject a decrement larger than current stock.

        Returns:
            The persisted MovementRecord.
        """
        return self.create_movement_batch([params], validate_stock=validate_stock)[0]

    def create_movement_batch(
        self,
        params_list: Sequence[MovementParams],
        validate_stock: bool = True,
    ) -> list[MovementRecord]:
        """
        Record several movements atomically.

        Preconditions:
            - Each params object carries a sign-normalized quantity.

        Postconditions:
            - On success, one Movement row per params object exists and each
              product's stock reflects every one of its movements in order.
            - On failure, nothing from this call was persisted.

        Args:
            params_list: Movements to record, applied in order.
            validate_stock: When True, reject the whole batch if the summed
                decrements of any product exceed its current stock.

        Returns:
            MovementRecords in input order.
        """
        if not params_list:
            return []

        validated = [self._validate(index, p) for index, p in enumerate(params_list)]

        logger.info(
            "ledger_batch_started",
            extra={
                "batch_size": len(validated),
                "product_count": len({v.params.product_id for v in validated}),
                "validate_stock": validate_stock,
            },
        )

        products = self._lock_products(validated)

        if validate_stock:
            self._check_availability(validated, products)

        try:
            with self.session.begin_nested():
                records = [
                    self._apply(v, products[v.params.product_id]) for v in validated
                ]
        except InventoryKernelError:
            raise
        except SQLAlchemyError as exc:
            logger.error(
                "ledger_storage_failed",
                extra={"batch_size": len(validated)},
                exc_info=True,
            )
            raise LedgerStorageError("batch write", str(exc)) from exc
        finally:
            revoke_stock_writes(self.session)

        logger.info(
            "ledger_batch_completed",
            extra={
                "batch_size": len(records),
                "movement_ids": [str(r.movement_id) for r in records],
            },
        )
        return records

    def create_movement_batch_resilient(
        self,
        params_list: Sequence[MovementParams],
        validate_stock: bool = False,
    ) -> BatchOutcome:
        """
        Record movements one by one, isolating failures.

        Each movement runs in its own SAVEPOINT.  A failing movement is
        rolled back alone and reported in ``BatchOutcome.failed``; the
        others are kept.
        """
        succeeded: list[MovementRecord] = []
        failed: list[BatchFailure] = []

        for index, params in enumerate(params_list):
            try:
                validated = self._validate(index, params)
                products = self._lock_products([validated])
                if validate_stock:
                    self._check_availability([validated], products)
                with self.session.begin_nested():
                    record = self._apply(validated, products[params.product_id])
                succeeded.append(record)
            except InventoryKernelError as exc:
                failed.append(BatchFailure(index, params, exc.code, str(exc)))
            except SQLAlchemyError as exc:
                failed.append(
                    BatchFailure(index, params, LedgerStorageError.code, str(exc))
                )
            finally:
                revoke_stock_writes(self.session)

        log = logger.warning if failed else logger.info
        log(
            "ledger_resilient_batch_completed",
            extra={
                "batch_size": len(params_list),
                "succeeded": len(succeeded),
                "failed": len(failed),
                "failed_indexes": [f.index for f in failed],
            },
        )
        return BatchOutcome(succeeded=tuple(succeeded), failed=tuple(failed))

    def record_opening_balance(self, params: MovementParams) -> MovementRecord:
        """
        Record an opening-balance movement for stock that already exists.

        The movement snapshots previous_stock=0 and new_stock=current stock
        and leaves Product.stock untouched.  Used only by the initial stock
        migration.

        Raises:
            InvalidQuantityError: params.quantity differs from current stock.
        """
        validated = self._validate(0, params)
        product = self._lock_products([validated])[params.product_id]

        if params.quantity != product.stock:
            raise InvalidQuantityError(
                "quantity",
                params.quantity,
                f"opening balance must equal current stock {product.stock}",
            )

        try:
            with self.session.begin_nested():
                movement = self._insert(validated, product, previous_stock=0)
                self.session.flush()
        except SQLAlchemyError as exc:
            logger.error(
                "ledger_storage_failed",
                extra={"product_id": str(params.product_id), "operation": "opening_balance"},
                exc_info=True,
            )
            raise LedgerStorageError("opening balance", str(exc)) from exc

        record = MovementRecord.from_model(movement)
        logger.info(
            "opening_balance_recorded",
            extra={
                "movement_id": str(record.movement_id),
                "product_id": str(record.product_id),
                "movement_type": record.type.value,
                "quantity": record.quantity,
            },
        )
        return record

    # =========================================================================
    # Validation and locking
    # =========================================================================

    def _validate(self, index: int, params: MovementParams) -> _ValidatedMovement:
        context = f"movement #{index}"
        if params.product_id is None:
            raise MissingFieldError("product_id", context)
        if params.store_id is None:
            raise MissingFieldError("store_id", context)
        if not params.reason or not params.reason.strip():
            raise MissingFieldError("reason", context)

        movement_type = parse_movement_type(params.type)

        quantity = params.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InvalidQuantityError("quantity", quantity, "must be an integer")
        if quantity == 0:
            raise ZeroQuantityError(movement_type.value, str(params.product_id))
        check_sign(movement_type, quantity)

        for name in ("cost", "price"):
            value = getattr(params, name)
            if value is not None and Decimal(value) < 0:
                raise InvalidQuantityError(name, value, "cannot be negative")

        return _ValidatedMovement(index, params, movement_type)

    def _lock_products(
        self,
        validated: Sequence[_ValidatedMovement],
    ) -> dict[UUID, Product]:
        """Load and row-lock every product of the batch in sorted id order."""
        wanted: dict[UUID, UUID] = {}
        for v in validated:
            wanted.setdefault(v.params.product_id, v.params.store_id)

        ids = sorted(wanted, key=str)
        rows = self.session.execute(
            select(Product)
            .where(Product.id.in_(ids))
            .order_by(Product.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars().all()
        products = {p.id: p for p in rows}

        for product_id in ids:
            product = products.get(product_id)
            store_id = wanted[product_id]
            if product is None or product.store_id != store_id:
                logger.warning(
                    "ledger_product_not_found",
                    extra={"product_id": str(product_id), "store_id": str(store_id)},
                )
                raise ProductNotFoundError(str(product_id), str(store_id))

        return products

    def _check_availability(
        self,
        validated: Sequence[_ValidatedMovement],
        products: dict[UUID, Product],
    ) -> None:
        """Aggregate decrements per product and compare with current stock."""
        requested: dict[UUID, int] = defaultdict(int)
        for v in validated:
            if v.params.quantity < 0:
                requested[v.params.product_id] += -v.params.quantity

        shortages = []
        for product_id, qty in requested.items():
            product = products[product_id]
            if qty > product.stock:
                shortages.append({
                    "product_id": str(product_id),
                    "name": product.name,
                    "available": product.stock,
                    "requested": qty,
                })

        if shortages:
            logger.warning(
                "ledger_batch_rejected",
                extra={"reason": "insufficient_stock", "shortages": shortages},
            )
            raise InsufficientStockError(shortages)

    # =========================================================================
    # Writes
    # =========================================================================

    def _apply(self, validated: _ValidatedMovement, product: Product) -> MovementRecord:
        previous_stock = product.stock
        new_stock = previous_stock + validated.params.quantity

        movement = self._insert(validated, product, previous_stock=previous_stock)

        grant_stock_write(self.session, product.id, new_stock)
        product.stock = new_stock
        self.session.flush()

        record = MovementRecord.from_model(movement)
        logger.info(
            "movement_recorded",
            extra={
                "movement_id": str(record.movement_id),
                "product_id": str(record.product_id),
                "movement_type": record.type.value,
                "quantity": record.quantity,
                "previous_stock": record.previous_stock,
                "new_stock": record.new_stock,
                "sequence": record.sequence,
                "reference_id": record.reference_id,
            },
        )
        return record

    def _insert(
        self,
        validated: _ValidatedMovement,
        product: Product,
        previous_stock: int,
    ) -> Movement:
        params = validated.params
        product.movement_seq = (product.movement_seq or 0) + 1

        movement = Movement(
            id=uuid4(),
            store_id=params.store_id,
            product_id=params.product_id,
            type=validated.movement_type.value,
            quantity=params.quantity,
            previous_stock=previous_stock,
            new_stock=previous_stock + params.quantity,
            sequence=product.movement_seq,
            reason=params.reason.strip(),
            description=params.description,
            cost=params.cost,
            price=params.price,
            reference_id=params.reference_id,
            created_by=params.created_by,
            created_at=self.clock.now(),
        )
        self.session.add(movement)
        return movement
