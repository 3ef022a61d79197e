"""
Module: inventory_engines.profit_attribution
Responsibility:
    Distribute each counted sales order's net profit over its lines in
    proportion to line revenue, and rank products by the profit attributed
    to them.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Consumes SoldOrder DTOs
    produced by inventory_kernel.selectors.sales_selector.

Invariants enforced:
    - line profit = order.net_profit * line_revenue / order.total
    - Orders with no (or zero) net profit, or a zero total, contribute nothing.
    - Rankings are sorted by total_profit descending; ties are broken by
      product id so the order is deterministic.

Audit relevance:
    Rankings feed the ABC classifier.  Recomputing from the same orders
    gives the same ranking and the same classification.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.dtos import SoldOrder
from inventory_kernel.logging_config import get_logger

logger = get_logger("engines.profit_attribution")

_HUNDRED = Decimal("100")
_MARGIN_QUANTUM = Decimal("0.01")


@dataclass(frozen=True)
class ProfitRanking:
    """Profit attributed to one product over the ranked orders."""

    product_id: UUID
    total_revenue: Decimal
    total_profit: Decimal
    total_quantity_sold: int
    profit_margin_pct: Decimal


def _margin(profit: Decimal, revenue: Decimal) -> Decimal:
    if not revenue:
        return Decimal("0")
    return (profit / revenue * _HUNDRED).quantize(_MARGIN_QUANTUM)


@traced_engine("profit_attribution", "1.0")
def rank_products_by_profit(orders: Iterable[SoldOrder]) -> list[ProfitRanking]:
    """Rank products by attributed profit, highest first."""
    revenue: dict[UUID, Decimal] = {}
    profit: dict[UUID, Decimal] = {}
    sold: dict[UUID, int] = {}
    ignored = 0

    for order in orders:
        if not order.net_profit or not order.total:
            ignored += 1
            continue
        for line in order.lines:
            line_revenue = line.revenue
            share = order.net_profit * line_revenue / order.total
            revenue[line.product_id] = revenue.get(line.product_id, Decimal("0")) + line_revenue
            profit[line.product_id] = profit.get(line.product_id, Decimal("0")) + share
            sold[line.product_id] = sold.get(line.product_id, 0) + line.quantity

    rankings = [
        ProfitRanking(
            product_id=product_id,
            total_revenue=revenue[product_id],
            total_profit=profit[product_id],
            total_quantity_sold=sold[product_id],
            profit_margin_pct=_margin(profit[product_id], revenue[product_id]),
        )
        for product_id in revenue
    ]
    rankings.sort(key=lambda r: str(r.product_id))
    rankings.sort(key=lambda r: r.total_profit, reverse=True)

    logger.debug(
        "profit_ranking_computed",
        extra={"product_count": len(rankings), "ignored_orders": ignored},
    )
    return rankings
