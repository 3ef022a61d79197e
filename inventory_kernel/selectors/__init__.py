"""Selectors for the inventory kernel (read side)."""

from inventory_kernel.selectors.movement_selector import (
    ChainBreak,
    ChainVerification,
    MovementSelector,
)
from inventory_kernel.selectors.sales_selector import SalesSelector

__all__ = [
    "ChainBreak",
    "ChainVerification",
    "MovementSelector",
    "SalesSelector",
]
