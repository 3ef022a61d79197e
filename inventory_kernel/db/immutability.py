"""
ORM-Level Immutability Enforcement for the stock ledger.

===============================================================================
WHAT IS PROTECTED
===============================================================================

Entity          | Rule                                   | Listener
----------------|----------------------------------------|------------------------
Movement        | Never updated, never deleted           | before_update/before_delete
Product.stock   | Changed only with a ledger grant       | Session before_flush

Stock is derived state.  The only code allowed to change it is the
LedgerWriter, which records a movement for every change.  The writer
announces each stock value it is about to flush through
``grant_stock_write()``; the ``before_flush`` gate rejects any dirty
Product whose stock differs from its persisted value without a matching
grant.  Newly inserted products are not gated: their opening stock is
legacy data that the initial migration later captures as an
INITIAL_MIGRATION movement.

===============================================================================
HOW IT WORKS
===============================================================================

    session.flush()
         |
         v
    [before_flush] --> _check_stock_writes() --> StockWriteViolationError
         |
         v
    [before_update / before_delete on Movement] --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

Bulk ``update(Product)`` statements bypass the ORM unit of work and are not
seen by these listeners.  The ABC classifier uses bulk updates, but only
for abc_classification.

===============================================================================
USAGE
===============================================================================

    from inventory_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
    ...
    register_immutability_listeners()
"""

from uuid import UUID

from sqlalchemy import event
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import get_history

from inventory_kernel.exceptions import (
    ImmutabilityViolationError,
    StockWriteViolationError,
)
from inventory_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_STOCK_GRANTS_KEY = "inventory_stock_write_grants"


def grant_stock_write(session: Session, product_id: UUID, new_stock: int) -> None:
    """Authorize the next flush to persist ``new_stock`` for ``product_id``."""
    session.info.setdefault(_STOCK_GRANTS_KEY, {})[product_id] = new_stock


def revoke_stock_writes(session: Session) -> None:
    """Drop every outstanding grant on ``session``."""
    session.info.pop(_STOCK_GRANTS_KEY, None)


def _check_stock_writes(session, flush_context, instances):
    """
    Reject Product.stock changes that were not granted by the LedgerWriter.

    Runs in SessionEvents.before_flush so the flush plan never contains an
    unauthorized stock UPDATE.  Grants are consumed as they are checked.
    """
    from inventory_kernel.models.product import Product

    grants: dict = session.info.get(_STOCK_GRANTS_KEY, {})

    for obj in list(session.dirty):
        if not isinstance(obj, Product):
            continue

        hist = get_history(obj, "stock")
        if not hist.added:
            continue
        old_stock = hist.deleted[0] if hist.deleted else None
        new_stock = hist.added[0]
        if old_stock == new_stock:
            continue

        granted = grants.pop(obj.id, None)
        if granted is not None and granted == new_stock:
            continue

        logger.error(
            "immutability_violation_blocked",
            extra={
                "entity_type": "Product",
                "entity_id": str(obj.id),
                "operation": "UPDATE",
                "field": "stock",
                "old_stock": old_stock,
                "new_stock": new_stock,
            },
        )
        raise StockWriteViolationError(
            product_id=str(obj.id),
            old_stock=old_stock,
            new_stock=new_stock,
        )


def _check_movement_immutability(mapper, connection, target):
    """Movements are immutable from creation."""
    from inventory_kernel.models.movement import Movement

    if not isinstance(target, Movement):
        return

    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "Movement",
            "entity_id": str(target.id),
            "operation": "UPDATE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="Movement",
        entity_id=str(target.id),
        reason="Inventory movements cannot be modified",
    )


def _check_movement_delete(mapper, connection, target):
    """Movements cannot be deleted."""
    from inventory_kernel.models.movement import Movement

    if not isinstance(target, Movement):
        return

    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "Movement",
            "entity_id": str(target.id),
            "operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="Movement",
        entity_id=str(target.id),
        reason="Inventory movements cannot be deleted",
    )


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Idempotent: listeners already registered are not added twice.
    """
    from inventory_kernel.models.movement import Movement

    if not event.contains(Session, "before_flush", _check_stock_writes):
        event.listen(Session, "before_flush", _check_stock_writes)
    if not event.contains(Movement, "before_update", _check_movement_immutability):
        event.listen(Movement, "before_update", _check_movement_immutability)
    if not event.contains(Movement, "before_delete", _check_movement_delete):
        event.listen(Movement, "before_delete", _check_movement_delete)

    logger.debug("immutability_listeners_registered")


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if it is not registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests that must simulate tampering.
    """
    from inventory_kernel.models.movement import Movement

    _safe_remove_listener(Session, "before_flush", _check_stock_writes)
    _safe_remove_listener(Movement, "before_update", _check_movement_immutability)
    _safe_remove_listener(Movement, "before_delete", _check_movement_delete)

    logger.debug("immutability_listeners_unregistered")
