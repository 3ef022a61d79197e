"""
Classification Pure Functions (``inventory_modules.classification.helpers``).

Responsibility
--------------
Stateless Pareto tiering of products by attributed profit.

Architecture
------------
Layer: **Modules** -- pure helper functions.  No I/O, no session, no clock.

Invariants
----------
- Products with ``total_profit <= 0`` are always C and do not count towards
  the cumulative total.
- Positive-profit products are walked in descending profit order; the
  cumulative share INCLUDING the current product decides its tier:
  ``<= a_pct`` -> A, ``<= a_pct + b_pct`` -> B, otherwise C.
- All arithmetic is Decimal.

Failure Modes
-------------
- ``ValueError`` if a percentage is negative or ``a_pct + b_pct > 100``.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from uuid import UUID

from inventory_engines.profit_attribution import ProfitRanking
from inventory_kernel.models.product import AbcClass

_HUNDRED = Decimal("100")


def classify_by_profit(
    rankings: Sequence[ProfitRanking],
    a_pct: Decimal = Decimal("80"),
    b_pct: Decimal = Decimal("15"),
) -> dict[UUID, AbcClass]:
    """
    Classify ranked products into A/B/C by cumulative profit share.

    Postconditions:
        - Returns ``{product_id: AbcClass}`` covering every ranked product.
        - An empty ranking gives an empty mapping.

    Args:
        rankings: Output of ``rank_products_by_profit``; order is not relied on.
        a_pct: Cumulative % threshold for A products (default 80).
        b_pct: Further % for B products (default 15, so A+B=95).
    """
    if a_pct < 0 or b_pct < 0:
        raise ValueError(f"Percentages cannot be negative: a_pct={a_pct}, b_pct={b_pct}")
    if a_pct + b_pct > _HUNDRED:
        raise ValueError(f"a_pct ({a_pct}) + b_pct ({b_pct}) exceeds 100%")

    result: dict[UUID, AbcClass] = {}
    positive = []
    for ranking in rankings:
        if ranking.total_profit <= 0:
            result[ranking.product_id] = AbcClass.C
        else:
            positive.append(ranking)

    total_positive = sum((r.total_profit for r in positive), Decimal("0"))
    if not positive:
        return result

    positive.sort(key=lambda r: str(r.product_id))
    positive.sort(key=lambda r: r.total_profit, reverse=True)

    cumulative = Decimal("0")
    ab_pct = a_pct + b_pct
    for ranking in positive:
        cumulative += ranking.total_profit
        share = cumulative / total_positive * _HUNDRED
        if share <= a_pct:
            result[ranking.product_id] = AbcClass.A
        elif share <= ab_pct:
            result[ranking.product_id] = AbcClass.B
        else:
            result[ranking.product_id] = AbcClass.C

    return result
