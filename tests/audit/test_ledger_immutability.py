"""
Tests for ORM-level immutability of the stock ledger.

- Movements are never updated and never deleted.
- Product.stock cannot be written outside the LedgerWriter.
- RestockOrderItem.quantity_received never decreases.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from inventory_kernel.domain.dtos import MovementParams
from inventory_kernel.domain.movement_policy import MovementType
from inventory_kernel.exceptions import (
    ImmutabilityViolationError,
    StockWriteViolationError,
)
from inventory_kernel.models.movement import Movement
from inventory_modules.restock.models import ReceiveLine, RestockItemInput


@pytest.fixture
def recorded_movement(session, ledger_writer, make_product):
    product = make_product(stock=10)
    record = ledger_writer.create_movement(MovementParams(
        store_id=product.store_id,
        product_id=product.id,
        type=MovementType.DAMAGE,
        quantity=-2,
        reason="Cracked",
    ))
    return session.get(Movement, record.movement_id)


class TestMovementImmutability:

    def test_update_blocked(self, session, recorded_movement):
        recorded_movement.reason = "Rewritten history"
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()
        assert exc_info.value.entity_type == "Movement"

    def test_quantity_update_blocked(self, session, recorded_movement):
        recorded_movement.quantity = -1
        recorded_movement.new_stock = 9
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_delete_blocked(self, session, recorded_movement):
        session.delete(recorded_movement)
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_violation_logged(self, session, recorded_movement, captured_logs):
        recorded_movement.reason = "x"
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

        blocked = [r for r in captured_logs() if r["message"] == "immutability_violation_blocked"]
        assert blocked[0]["entity_type"] == "Movement"


class TestStockWriteGate:

    def test_direct_stock_write_blocked(self, session, make_product):
        product = make_product(stock=10)

        product.stock = 50
        with pytest.raises(StockWriteViolationError) as exc_info:
            session.flush()
        assert exc_info.value.code == "STOCK_WRITE_VIOLATION"

    def test_new_product_not_gated(self, session, make_product):
        product = make_product(stock=99)
        session.refresh(product)
        assert product.stock == 99

    def test_other_fields_writable(self, session, make_product):
        product = make_product(stock=10)

        product.name = "Renamed"
        product.price = Decimal("30.00")
        session.flush()

        session.refresh(product)
        assert product.name == "Renamed"

    def test_stale_grant_does_not_authorize_other_value(self, session, make_product):
        from inventory_kernel.db.immutability import grant_stock_write, revoke_stock_writes

        product = make_product(stock=10)
        grant_stock_write(session, product.id, 11)
        product.stock = 12
        try:
            with pytest.raises(StockWriteViolationError):
                session.flush()
        finally:
            revoke_stock_writes(session)


class TestQuantityReceivedMonotonic:

    def test_decrease_blocked(self, session, restock_service, make_product, store_id, test_actor_id):
        product = make_product(stock=0)
        order = restock_service.create_order(
            store_id=store_id,
            supplier_id=uuid4(),
            items=[RestockItemInput(product.id, 10, Decimal("5"))],
            actor_id=test_actor_id,
        )
        restock_service.place_order(order.id)
        restock_service.receive(order.id, [ReceiveLine(order.items[0].id, 4)], actor_id=test_actor_id)

        from inventory_modules.restock.orm import RestockOrderItemModel
        item = session.get(RestockOrderItemModel, order.items[0].id)

        with pytest.raises(ImmutabilityViolationError):
            item.quantity_received = 1
        assert item.quantity_received == 4
