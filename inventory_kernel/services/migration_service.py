"""
InventoryMigrationService -- one-time, idempotent capture of legacy stock.

Responsibility:
    Stores that existed before the movement ledger carry Product.stock
    values with no movement history.  ``migrate_initial_stock`` records an
    INITIAL_MIGRATION opening-balance movement for each such product so that
    replaying movements reproduces the current stock.

Architecture position:
    Kernel > Services -- imperative shell.  Delegates every write to the
    LedgerWriter (``record_opening_balance``) and every existence check to
    the MovementSelector.

Invariants enforced:
    - Idempotency: a product that already has an INITIAL_MIGRATION movement
      is skipped.  The check runs after the product row is locked and is
      backed by a partial unique index on (product_id) for that type.
    - Product.stock is never changed by the migration.
    - Each product runs in its own SAVEPOINT: one failure never undoes the
      products already migrated in the same run.

Failure modes:
    - Products with negative stock cannot be migrated (INITIAL_MIGRATION is
      forced positive); they are reported in ``MigrationResult.errors``.
    - Any other per-product failure is reported in ``errors``, never dropped.

Audit relevance:
    ``inventory_migration_completed`` logs processed/migrated/skipped/error
    counts for the store.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock
from inventory_kernel.domain.dtos import (
    SYSTEM_ACTOR,
    MigrationError,
    MigrationResult,
    MovementParams,
)
from inventory_kernel.domain.movement_policy import MovementType
from inventory_kernel.exceptions import InventoryKernelError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.product import Product
from inventory_kernel.selectors.movement_selector import MovementSelector
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.ledger_writer import LedgerWriter

logger = get_logger("services.migration")

MIGRATION_REASON = "Initial stock migration"
MIGRATION_DESCRIPTION = "Opening balance recorded from pre-ledger stock"


class InventoryMigrationService(BaseService[Product]):
    """
    Records opening-balance movements for pre-ledger stock.

    Contract:
        Safe to run any number of times per store.  A second run over
        unchanged data migrates nothing and skips every product.

    Non-goals:
        - Does NOT reconcile products whose later movements already diverge
          from their stock (use MovementSelector.verify_product for that).
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        ledger_writer: LedgerWriter | None = None,
    ):
        super().__init__(session, clock)
        self._writer = ledger_writer or LedgerWriter(session, self.clock)
        self._movements = MovementSelector(session)

    def migrate_initial_stock(
        self,
        store_id: UUID,
        created_by: str = SYSTEM_ACTOR,
    ) -> MigrationResult:
        """
        Create an INITIAL_MIGRATION movement for every product of the store
        with non-zero stock that does not have one yet.

        Returns:
            MigrationResult with processed, migrated, skipped and errors.
        """
        product_ids = self.session.execute(
            select(Product.id)
            .where(Product.store_id == store_id, Product.stock != 0)
            .order_by(Product.id)
        ).scalars().all()

        logger.info(
            "inventory_migration_started",
            extra={"store_id": str(store_id), "candidate_count": len(product_ids)},
        )

        migrated = 0
        skipped = 0
        errors: list[MigrationError] = []

        for product_id in product_ids:
            product_name = ""
            try:
                with self.session.begin_nested():
                    product = self.session.execute(
                        select(Product)
                        .where(Product.id == product_id)
                        .with_for_update()
                        .execution_options(populate_existing=True)
                    ).scalar_one()
                    product_name = product.name

                    if self._movements.has_movement(product_id, MovementType.INITIAL_MIGRATION):
                        skipped += 1
                        logger.debug(
                            "inventory_migration_skipped",
                            extra={"product_id": str(product_id)},
                        )
                        continue

                    if product.stock < 0:
                        errors.append(MigrationError(
                            product_id=product_id,
                            product_name=product_name,
                            error=f"negative stock {product.stock} cannot be migrated",
                        ))
                        continue

                    self._writer.record_opening_balance(MovementParams(
                        store_id=store_id,
                        product_id=product_id,
                        type=MovementType.INITIAL_MIGRATION,
                        quantity=product.stock,
                        reason=MIGRATION_REASON,
                        description=MIGRATION_DESCRIPTION,
                        cost=product.acq_price if product.acq_price is not None else Decimal("0"),
                        price=product.price,
                        created_by=created_by,
                    ))
                    migrated += 1
            except (InventoryKernelError, SQLAlchemyError) as exc:
                logger.warning(
                    "inventory_migration_product_failed",
                    extra={"product_id": str(product_id)},
                    exc_info=True,
                )
                errors.append(MigrationError(
                    product_id=product_id,
                    product_name=product_name,
                    error=str(exc),
                ))

        result = MigrationResult(
            processed=len(product_ids),
            migrated=migrated,
            skipped=skipped,
            errors=tuple(errors),
        )
        log = logger.warning if errors else logger.info
        log(
            "inventory_migration_completed",
            extra={
                "store_id": str(store_id),
                "processed": result.processed,
                "migrated": result.migrated,
                "skipped": result.skipped,
                "error_count": len(result.errors),
            },
        )
        return result
