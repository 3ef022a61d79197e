"""
Module: inventory_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines used by the
    inventory modules.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May import inventory_kernel domain types and logging only.
    MUST NOT import inventory_modules.

Invariants enforced:
    - Engines never read the clock; callers pass times in.
    - Decimal-only arithmetic for money.
    - Identical inputs give identical outputs.

Usage:
    from inventory_engines.landed_cost import LandedCostCalculator, LandedCostMethod
    from inventory_engines.profit_attribution import rank_products_by_profit
"""

from inventory_engines.landed_cost import (
    DEFAULT_COST_QUANTUM,
    LandedCost,
    LandedCostCalculator,
    LandedCostMethod,
    OrderCostBasis,
)
from inventory_engines.profit_attribution import (
    ProfitRanking,
    rank_products_by_profit,
)
from inventory_engines.tracer import traced_engine

__all__ = [
    "DEFAULT_COST_QUANTUM",
    "LandedCost",
    "LandedCostCalculator",
    "LandedCostMethod",
    "OrderCostBasis",
    "ProfitRanking",
    "rank_products_by_profit",
    "traced_engine",
]
