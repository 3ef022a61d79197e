"""
Restock Module Service (``inventory_modules.restock.service``).

Responsibility
--------------
Manages supplier purchase orders through their lifecycle and receives goods
against them.  Receiving composes the landed-cost engine
(``inventory_engines.landed_cost``) with the kernel ``LedgerWriter``, so
every received line becomes a RESTOCK_RECEIVED movement carrying its landed
unit cost.

Architecture
------------
Layer: **Modules** -- stateful orchestration wrapper.

1. Validates status changes against ``RESTOCK_ORDER_WORKFLOW``.
2. Calls ``LandedCostCalculator`` for the unit cost of each received line.
3. Calls ``LedgerWriter.create_movement_batch`` for the stock movements.

Invariants
----------
- The caller owns the transaction.  This service flushes, never commits.
- ``receive`` locks the order row, writes the movements and the
  quantity_received increments inside one SAVEPOINT, then re-reads the
  items fresh before recomputing status.
- Status only moves forward: DRAFT -> ORDERED -> PARTIALLY_RECEIVED ->
  COMPLETED, with CANCELLED reachable from DRAFT or ORDERED.
- ``total_amount`` equals the sum of item subtotals while the order is a
  draft.

Failure Modes
-------------
- ``RestockOrderNotFoundError``: unknown order or order of another store.
- ``RestockOrderNotEditableError`` / ``RestockOrderNotDeletableError`` /
  ``RestockOrderNotReceivableError``: operation not allowed in the current
  status.
- ``InvalidStatusTransitionError``: the workflow declares no such transition.
- ``NoValidReceiveLinesError``: every receive line was skipped.
- Ledger errors from ``LedgerWriter`` propagate unchanged; the SAVEPOINT is
  rolled back so no item increment survives without its movement.

Audit Relevance
---------------
Movements carry ``reference_id = str(order.id)`` so the receipts of one
order can be listed with ``MovementSelector.list_for_reference``.

Usage::

    service = RestockOrderService(session, clock=clock)
    order = service.create_order(
        store_id=store_id, supplier_id=supplier_id,
        items=[RestockItemInput(product_id, 100, Decimal("1000"))],
        actor_id="user-42",
    )
    service.place_order(order.id)
    result = service.receive(order.id, [ReceiveLine(order.items[0].id, 40)], actor_id="user-42")
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_engines.landed_cost import LandedCostCalculator, OrderCostBasis
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import MovementParams
from inventory_kernel.domain.movement_policy import MovementType
from inventory_kernel.exceptions import (
    InvalidQuantityError,
    MissingFieldError,
    NoValidReceiveLinesError,
    ProductNotFoundError,
    RestockOrderNotDeletableError,
    RestockOrderNotEditableError,
    RestockOrderNotFoundError,
    RestockOrderNotReceivableError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.product import Product
from inventory_kernel.services.ledger_writer import LedgerWriter
from inventory_modules.restock.config import RestockConfig
from inventory_modules.restock.models import (
    ReceivedLine,
    ReceiveLine,
    ReceiveResult,
    RestockItemInput,
    RestockOrder,
    RestockOrderStatus,
    SkippedLine,
    SkipReason,
)
from inventory_modules.restock.orm import RestockOrderItemModel, RestockOrderModel
from inventory_modules.restock.workflows import (
    DELETABLE_STATES,
    EDITABLE_STATES,
    RECEIVABLE_STATES,
    require_transition,
)

logger = get_logger("modules.restock.service")


class RestockOrderService:
    """
    Lifecycle and receiving of restock orders.

    Contract
    --------
    Every public method takes the caller's session (given at construction),
    flushes its changes and returns frozen DTOs.  Nothing is committed here.

    Guarantees
    ----------
    - ``receive`` writes one RESTOCK_RECEIVED movement per valid line, in
      input order, and reports every skipped line.
    - Over-receipt is allowed and counts as complete.

    Non-goals
    ---------
    - Does NOT compute landed cost itself; see ``inventory_engines.landed_cost``.
    - Does NOT touch Product.stock directly; only the LedgerWriter does.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: RestockConfig | None = None,
        ledger_writer: LedgerWriter | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or RestockConfig.with_defaults()
        self._writer = ledger_writer or LedgerWriter(session, self._clock)
        self._landed_cost = LandedCostCalculator(
            method=self._config.landed_cost_method,
            quantum=self._config.cost_quantum,
        )

    # =========================================================================
    # Queries
    # =========================================================================

    def get_order(self, order_id: UUID, store_id: UUID | None = None) -> RestockOrder:
        return self._load_order(order_id, store_id).to_dto()

    def list_orders(
        self,
        store_id: UUID,
        status: RestockOrderStatus | str | None = None,
    ) -> list[RestockOrder]:
        """Orders of a store, newest first."""
        stmt = select(RestockOrderModel).where(RestockOrderModel.store_id == store_id)
        if status is not None:
            stmt = stmt.where(RestockOrderModel.status == RestockOrderStatus(status).value)
        stmt = stmt.order_by(RestockOrderModel.order_number.desc())
        return [m.to_dto() for m in self._session.scalars(stmt)]

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def create_order(
        self,
        store_id: UUID,
        supplier_id: UUID,
        items: Sequence[RestockItemInput],
        actor_id: str,
        shipping_cost: Decimal = Decimal("0"),
        notes: str | None = None,
    ) -> RestockOrder:
        """Create a DRAFT order with a per-store order number."""
        if supplier_id is None:
            raise MissingFieldError("supplier_id", "restock order")
        if not items:
            raise MissingFieldError("items", "restock order")
        self._check_shipping_cost(shipping_cost)
        self._check_products(store_id, items)

        order = RestockOrderModel(
            store_id=store_id,
            supplier_id=supplier_id,
            order_number=self._next_order_number(store_id),
            status=RestockOrderStatus.DRAFT.value,
            total_amount=sum((i.subtotal for i in items), Decimal("0")),
            shipping_cost=shipping_cost,
            notes=notes,
            created_by=str(actor_id),
            items=self._build_items(items, actor_id),
        )
        self._session.add(order)
        self._session.flush()

        logger.info(
            "restock_order_created",
            extra={
                "order_id": str(order.id),
                "store_id": str(store_id),
                "order_number": order.order_number,
                "item_count": len(items),
                "total_amount": str(order.total_amount),
                "shipping_cost": str(order.shipping_cost),
            },
        )
        return order.to_dto()

    def update_order(
        self,
        order_id: UUID,
        store_id: UUID | None = None,
        *,
        items: Sequence[RestockItemInput] | None = None,
        supplier_id: UUID | None = None,
        shipping_cost: Decimal | None = None,
        notes: str | None = None,
        actor_id: str | None = None,
    ) -> RestockOrder:
        """
        Edit an order.

        Items and supplier can change only while DRAFT; replacing the items
        recomputes total_amount.  Shipping cost can change until the first
        receipt.  Notes can always change.
        """
        order = self._load_order(order_id, store_id, lock=True)

        core_fields = tuple(
            name for name, value in (("items", items), ("supplier_id", supplier_id))
            if value is not None
        )
        if core_fields and order.status not in EDITABLE_STATES:
            raise RestockOrderNotEditableError(str(order.id), order.status, core_fields)

        if shipping_cost is not None:
            received = any((i.quantity_received or 0) > 0 for i in order.items)
            if received or order.status == RestockOrderStatus.CANCELLED.value:
                raise RestockOrderNotEditableError(
                    str(order.id), order.status, ("shipping_cost",)
                )
            self._check_shipping_cost(shipping_cost)
            order.shipping_cost = shipping_cost

        if items is not None:
            if not items:
                raise MissingFieldError("items", f"restock order {order.id}")
            self._check_products(order.store_id, items)
            order.items.clear()
            order.items.extend(self._build_items(items, actor_id or order.created_by))
            order.total_amount = sum((i.subtotal for i in items), Decimal("0"))

        if supplier_id is not None:
            order.supplier_id = supplier_id
        if notes is not None:
            order.notes = notes
        if actor_id is not None:
            order.updated_by = str(actor_id)

        self._session.flush()
        logger.info(
            "restock_order_updated",
            extra={
                "order_id": str(order.id),
                "status": order.status,
                "items_replaced": items is not None,
                "supplier_changed": supplier_id is not None,
                "shipping_changed": shipping_cost is not None,
            },
        )
        return order.to_dto()

    def place_order(
        self,
        order_id: UUID,
        store_id: UUID | None = None,
        actor_id: str | None = None,
    ) -> RestockOrder:
        """DRAFT -> ORDERED."""
        order = self._load_order(order_id, store_id, lock=True)
        if not order.items:
            raise MissingFieldError("items", f"restock order {order.id}")
        return self._transition(order, RestockOrderStatus.ORDERED, actor_id)

    def cancel_order(
        self,
        order_id: UUID,
        store_id: UUID | None = None,
        actor_id: str | None = None,
    ) -> RestockOrder:
        """DRAFT or ORDERED -> CANCELLED."""
        order = self._load_order(order_id, store_id, lock=True)
        return self._transition(order, RestockOrderStatus.CANCELLED, actor_id)

    def delete_order(self, order_id: UUID, store_id: UUID | None = None) -> None:
        """Delete a DRAFT or CANCELLED order together with its items."""
        order = self._load_order(order_id, store_id, lock=True)
        if order.status not in DELETABLE_STATES:
            raise RestockOrderNotDeletableError(str(order.id), order.status)

        self._session.delete(order)
        self._session.flush()
        logger.info(
            "restock_order_deleted",
            extra={
                "order_id": str(order_id),
                "order_number": order.order_number,
                "status": order.status,
            },
        )

    # =========================================================================
    # Receiving
    # =========================================================================

    def receive(
        self,
        order_id: UUID,
        received_lines: Sequence[ReceiveLine],
        actor_id: str,
        store_id: UUID | None = None,
    ) -> ReceiveResult:
        """
        Receive goods against an ORDERED, PARTIALLY_RECEIVED or COMPLETED order.

        Args:
            order_id: Order being received.
            received_lines: Item ids with the quantity received and an
                optional unit cost override.
            actor_id: Recorded as created_by on the movements.
            store_id: When given, the order must belong to this store.

        Returns:
            ReceiveResult with the written lines, the skipped lines and the
            status before and after.
        """
        order = self._load_order(order_id, store_id, lock=True)

        with LogContext.bind(
            store_id=str(order.store_id),
            order_id=str(order.id),
            actor_id=str(actor_id),
        ):
            if order.status not in RECEIVABLE_STATES:
                raise RestockOrderNotReceivableError(str(order.id), order.status)

            items_by_id = {item.id: item for item in order.items}
            valid: list[tuple[RestockOrderItemModel, ReceiveLine]] = []
            skipped: list[SkippedLine] = []
            for line in received_lines:
                item = items_by_id.get(line.item_id)
                if item is None:
                    skipped.append(SkippedLine(line.item_id, line.quantity, SkipReason.UNKNOWN_ITEM))
                elif line.quantity <= 0:
                    skipped.append(
                        SkippedLine(line.item_id, line.quantity, SkipReason.NON_POSITIVE_QUANTITY)
                    )
                else:
                    valid.append((item, line))

            if skipped:
                logger.warning(
                    "restock_receive_lines_skipped",
                    extra={
                        "skipped": [
                            {"item_id": str(s.item_id), "quantity": s.quantity, "reason": s.reason.value}
                            for s in skipped
                        ],
                    },
                )
            if not valid:
                raise NoValidReceiveLinesError(
                    str(order.id),
                    [
                        {"item_id": str(s.item_id), "quantity": s.quantity, "reason": s.reason.value}
                        for s in skipped
                    ],
                )

            basis = OrderCostBasis(
                order_value=order.total_amount,
                shipping_cost=order.shipping_cost,
                ordered_units=sum(item.quantity for item in order.items),
            )
            reason = self._config.receive_reason_template.format(order_number=order.order_number)

            costs = []
            params_list = []
            for item, line in valid:
                base_cost = line.cost if line.cost is not None else item.cost
                landed = self._landed_cost.compute(basis=basis, base_unit_cost=base_cost)
                costs.append(landed)
                params_list.append(MovementParams(
                    store_id=order.store_id,
                    product_id=item.product_id,
                    type=MovementType.RESTOCK_RECEIVED,
                    quantity=line.quantity,
                    reason=reason,
                    cost=landed.landed_unit_cost,
                    reference_id=str(order.id),
                    created_by=str(actor_id),
                ))

            with self._session.begin_nested():
                for item, line in valid:
                    item.quantity_received = (item.quantity_received or 0) + line.quantity
                    item.updated_by = str(actor_id)
                records = self._writer.create_movement_batch(params_list, validate_stock=False)

            previous_status = RestockOrderStatus(order.status)
            new_status = self._status_after_receipt(order)
            if new_status != previous_status:
                self._transition(order, new_status, actor_id)

            result = ReceiveResult(
                order_id=order.id,
                previous_status=previous_status,
                status=new_status,
                received=tuple(
                    ReceivedLine(
                        item_id=item.id,
                        product_id=item.product_id,
                        quantity=line.quantity,
                        base_unit_cost=cost.base_unit_cost,
                        landed_unit_cost=cost.landed_unit_cost,
                        movement_id=record.movement_id,
                    )
                    for (item, line), cost, record in zip(valid, costs, records)
                ),
                skipped_lines=tuple(skipped),
            )

            logger.info(
                "restock_order_received",
                extra={
                    "order_number": order.order_number,
                    "lines_received": len(result.received),
                    "lines_skipped": len(result.skipped_lines),
                    "units_received": result.total_units,
                    "previous_status": previous_status.value,
                    "new_status": new_status.value,
                },
            )
            return result

    # =========================================================================
    # Internals
    # =========================================================================

    def _load_order(
        self,
        order_id: UUID,
        store_id: UUID | None = None,
        lock: bool = False,
    ) -> RestockOrderModel:
        stmt = select(RestockOrderModel).where(RestockOrderModel.id == order_id)
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        order = self._session.scalars(stmt).first()
        if order is None or (store_id is not None and order.store_id != store_id):
            raise RestockOrderNotFoundError(
                str(order_id), str(store_id) if store_id is not None else None
            )
        return order

    def _status_after_receipt(self, order: RestockOrderModel) -> RestockOrderStatus:
        """Recompute status from a fresh read of the order's items."""
        self._session.flush()
        items = self._session.scalars(
            select(RestockOrderItemModel)
            .where(RestockOrderItemModel.restock_order_id == order.id)
            .execution_options(populate_existing=True)
        ).all()

        if items and all(i.quantity_received >= i.quantity for i in items):
            return RestockOrderStatus.COMPLETED
        if any(i.quantity_received > 0 for i in items):
            return RestockOrderStatus.PARTIALLY_RECEIVED
        return RestockOrderStatus(order.status)

    def _transition(
        self,
        order: RestockOrderModel,
        to_status: RestockOrderStatus,
        actor_id: str | None,
    ) -> RestockOrder:
        from_status = order.status
        transition = require_transition(str(order.id), from_status, to_status.value)
        order.status = to_status.value
        if actor_id is not None:
            order.updated_by = str(actor_id)
        self._session.flush()

        logger.info(
            "restock_order_status_changed",
            extra={
                "order_id": str(order.id),
                "action": transition.action,
                "from_status": from_status,
                "to_status": to_status.value,
            },
        )
        return order.to_dto()

    def _next_order_number(self, store_id: UUID) -> str:
        """One past the highest numeric suffix already used in the store."""
        prefix = self._config.order_number_prefix
        pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)$")
        numbers = self._session.scalars(
            select(RestockOrderModel.order_number).where(RestockOrderModel.store_id == store_id)
        ).all()
        highest = 0
        for number in numbers:
            match = pattern.match(number)
            if match:
                highest = max(highest, int(match.group(1)))
        return self._config.format_order_number(highest + 1)

    def _check_products(self, store_id: UUID, items: Sequence[RestockItemInput]) -> None:
        wanted = {i.product_id for i in items}
        found = set(self._session.scalars(
            select(Product.id).where(Product.id.in_(wanted), Product.store_id == store_id)
        ))
        missing = sorted(wanted - found, key=str)
        if missing:
            raise ProductNotFoundError(str(missing[0]), str(store_id))

    @staticmethod
    def _check_shipping_cost(shipping_cost: Decimal) -> None:
        if shipping_cost is None or shipping_cost < 0:
            raise InvalidQuantityError("shipping_cost", shipping_cost, "cannot be negative")

    @staticmethod
    def _build_items(
        items: Sequence[RestockItemInput],
        actor_id: str,
    ) -> list[RestockOrderItemModel]:
        return [
            RestockOrderItemModel(
                product_id=i.product_id,
                quantity=i.quantity,
                cost=i.cost,
                subtotal=i.subtotal,
                quantity_received=0,
                index=idx,
                created_by=str(actor_id),
            )
            for idx, i in enumerate(items)
        ]
