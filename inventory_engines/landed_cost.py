"""
Module: inventory_engines.landed_cost
Responsibility:
    Amortize a restock order's shared freight into the unit cost of the goods
    received, producing the landed unit cost recorded on RESTOCK_RECEIVED
    movements.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import inventory_kernel logging and sibling engine modules.

Invariants enforced:
    - Decimal-only arithmetic; results quantized with ROUND_HALF_UP.
    - BY_VALUE: landed = base * (1 + shipping / max(order_value, 1)).
    - BY_QUANTITY: landed = base + shipping / ordered_units, where zero
      ordered units are treated as 1.
    - With zero shipping the landed cost equals the base cost.

Failure modes:
    - ValueError on negative base cost, shipping cost or order value.
    - ValueError on an unknown method.

Usage:
    from inventory_engines.landed_cost import LandedCostCalculator, OrderCostBasis

    calc = LandedCostCalculator()
    basis = OrderCostBasis(
        order_value=Decimal("1000000"),
        shipping_cost=Decimal("50000"),
        ordered_units=1000,
    )
    calc.compute(basis=basis, base_unit_cost=Decimal("1000")).landed_unit_cost
    # Decimal("1050.0000")
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from inventory_engines.tracer import traced_engine
from inventory_kernel.logging_config import get_logger

logger = get_logger("engines.landed_cost")

DEFAULT_COST_QUANTUM = Decimal("0.0001")


class LandedCostMethod(str, Enum):
    """How shared freight is spread over the received goods."""

    BY_VALUE = "by_value"  # Proportional to declared order value
    BY_QUANTITY = "by_quantity"  # Equal share per ordered unit


@dataclass(frozen=True)
class OrderCostBasis:
    """
    Order-level figures the freight is amortized against.

    Guarantees:
        - All amounts are non-negative.
    """

    order_value: Decimal
    shipping_cost: Decimal
    ordered_units: int = 0

    def __post_init__(self) -> None:
        if self.order_value < 0:
            raise ValueError(f"Order value cannot be negative: {self.order_value}")
        if self.shipping_cost < 0:
            raise ValueError(f"Shipping cost cannot be negative: {self.shipping_cost}")
        if self.ordered_units < 0:
            raise ValueError(f"Ordered units cannot be negative: {self.ordered_units}")


@dataclass(frozen=True)
class LandedCost:
    """Base and landed unit cost of one received line."""

    base_unit_cost: Decimal
    landed_unit_cost: Decimal
    method: LandedCostMethod

    @property
    def freight_per_unit(self) -> Decimal:
        return self.landed_unit_cost - self.base_unit_cost


class LandedCostCalculator:
    """
    Compute landed unit costs for received restock lines.

    Contract:
        Pure; the same basis and base cost always give the same result.
    Non-goals:
        - Does not decide which base cost applies (order cost or a receipt
          override); the caller passes it in.
    """

    def __init__(
        self,
        method: LandedCostMethod | str = LandedCostMethod.BY_VALUE,
        quantum: Decimal = DEFAULT_COST_QUANTUM,
    ):
        try:
            self.method = LandedCostMethod(method)
        except ValueError:
            raise ValueError(f"Unknown landed cost method: {method}") from None
        self.quantum = quantum

    def landed_factor(self, basis: OrderCostBasis) -> Decimal:
        """Multiplier applied to the base cost under BY_VALUE."""
        order_value = max(basis.order_value, Decimal("1"))
        return Decimal("1") + basis.shipping_cost / order_value

    @traced_engine("landed_cost", "1.0", fingerprint_fields=("basis", "base_unit_cost"))
    def compute(self, basis: OrderCostBasis, base_unit_cost: Decimal) -> LandedCost:
        if base_unit_cost < 0:
            raise ValueError(f"Base unit cost cannot be negative: {base_unit_cost}")

        if self.method == LandedCostMethod.BY_VALUE:
            raw = base_unit_cost * self.landed_factor(basis)
        else:
            units = Decimal(basis.ordered_units or 1)
            raw = base_unit_cost + basis.shipping_cost / units

        return LandedCost(
            base_unit_cost=base_unit_cost,
            landed_unit_cost=raw.quantize(self.quantum, rounding=ROUND_HALF_UP),
            method=self.method,
        )
