"""
Module: inventory_kernel.selectors.sales_selector
Responsibility: Loads counted sales orders of a store inside a time window,
    as input for profit attribution.
Architecture position: Kernel > Selectors.  Read-only.  Returns SoldOrder
    DTOs; the arithmetic lives in inventory_engines.profit_attribution.

Window rule: an order counts when created_at falls inside the window and,
    if it has been paid, paid_at falls inside the window too.
"""

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from sqlalchemy import or_, select

from inventory_kernel.domain.dtos import SoldLine, SoldOrder
from inventory_kernel.models.sales import SalesOrder, SalesOrderStatus
from inventory_kernel.selectors.base import BaseSelector

DEFAULT_COUNTED_STATUSES: tuple[str, ...] = (
    SalesOrderStatus.PAID.value,
    SalesOrderStatus.SENT.value,
)


class SalesSelector(BaseSelector[SalesOrder]):
    """Read counted sales orders for profit attribution."""

    def counted_orders(
        self,
        store_id: UUID,
        since: datetime,
        until: datetime | None = None,
        statuses: Iterable[str] = DEFAULT_COUNTED_STATUSES,
    ) -> list[SoldOrder]:
        """Orders of ``store_id`` in a counted status inside [since, until]."""
        status_values = [SalesOrderStatus(s).value for s in statuses]
        stmt = select(SalesOrder).where(
            SalesOrder.store_id == store_id,
            SalesOrder.status.in_(status_values),
            SalesOrder.created_at >= since,
            or_(SalesOrder.paid_at.is_(None), SalesOrder.paid_at >= since),
        )
        if until is not None:
            stmt = stmt.where(
                SalesOrder.created_at <= until,
                or_(SalesOrder.paid_at.is_(None), SalesOrder.paid_at <= until),
            )
        stmt = stmt.order_by(SalesOrder.created_at, SalesOrder.id)
        return [
            SoldOrder(
                order_id=order.id,
                total=order.total,
                net_profit=order.net_profit,
                lines=tuple(
                    SoldLine(
                        product_id=line.product_id,
                        quantity=line.quantity,
                        unit_price=line.unit_price,
                    )
                    for line in order.lines
                ),
            )
            for order in self.session.scalars(stmt)
        ]
