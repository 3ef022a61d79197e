"""
Restock Configuration Schema.

Defines the structure and defaults for restock order settings.  Values are
loaded from the ``restock`` section of the settings file at runtime.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Self

from inventory_engines.landed_cost import DEFAULT_COST_QUANTUM, LandedCostMethod
from inventory_kernel.logging_config import get_logger

logger = get_logger("modules.restock.config")


VALID_LANDED_COST_METHODS = {m.value for m in LandedCostMethod}


@dataclass
class RestockConfig:
    """
    Configuration schema for the restock module.

        config = RestockConfig.from_dict(get_settings().restock)
    """

    # Freight amortization
    landed_cost_method: str = LandedCostMethod.BY_VALUE.value
    cost_quantum: Decimal = DEFAULT_COST_QUANTUM

    # Order numbering: PO-0001, PO-0002, ... per store
    order_number_prefix: str = "PO"
    order_number_width: int = 4

    # Reason written on RESTOCK_RECEIVED movements
    receive_reason_template: str = "Restock order #{order_number} received"

    def __post_init__(self):
        if isinstance(self.landed_cost_method, LandedCostMethod):
            self.landed_cost_method = self.landed_cost_method.value
        if self.landed_cost_method not in VALID_LANDED_COST_METHODS:
            raise ValueError(
                f"landed_cost_method must be one of {sorted(VALID_LANDED_COST_METHODS)}, "
                f"got '{self.landed_cost_method}'"
            )

        self.cost_quantum = Decimal(str(self.cost_quantum))
        if self.cost_quantum <= 0:
            raise ValueError("cost_quantum must be positive")

        if not self.order_number_prefix:
            raise ValueError("order_number_prefix cannot be empty")
        if self.order_number_width <= 0:
            raise ValueError("order_number_width must be positive")

        if "{order_number}" not in self.receive_reason_template:
            raise ValueError("receive_reason_template must contain '{order_number}'")

        logger.info(
            "restock_config_initialized",
            extra={
                "landed_cost_method": self.landed_cost_method,
                "cost_quantum": str(self.cost_quantum),
                "order_number_prefix": self.order_number_prefix,
            },
        )

    def format_order_number(self, sequence: int) -> str:
        return f"{self.order_number_prefix}-{sequence:0{self.order_number_width}d}"

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with the standard defaults."""
        logger.info("restock_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary (e.g., the settings file section)."""
        logger.info(
            "restock_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)
