"""
Classification Configuration Schema.

Thresholds and the sales window used by the profit-based ABC classifier.
Loaded from the ``classification`` section of the settings file.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Self

from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.sales import SalesOrderStatus

logger = get_logger("modules.classification.config")


@dataclass
class ClassificationConfig:
    """Configuration schema for the classification module."""

    # ABC thresholds (by attributed profit)
    a_pct: Decimal = Decimal("80")  # top 80% of profit
    b_pct: Decimal = Decimal("15")  # next 15%
    # Class C is remainder

    # Sales window
    lookback_days: int = 180
    counted_statuses: tuple[str, ...] = (
        SalesOrderStatus.PAID.value,
        SalesOrderStatus.SENT.value,
    )

    def __post_init__(self):
        self.a_pct = Decimal(str(self.a_pct))
        self.b_pct = Decimal(str(self.b_pct))
        if self.a_pct < 0:
            raise ValueError("a_pct cannot be negative")
        if self.b_pct < 0:
            raise ValueError("b_pct cannot be negative")
        if self.a_pct + self.b_pct > Decimal("100"):
            raise ValueError(
                f"a_pct + b_pct cannot exceed 100%, got {self.a_pct + self.b_pct}%"
            )

        if self.lookback_days <= 0:
            raise ValueError("lookback_days must be positive")

        self.counted_statuses = tuple(
            SalesOrderStatus(s).value for s in self.counted_statuses
        )
        if not self.counted_statuses:
            raise ValueError("counted_statuses cannot be empty")

        logger.info(
            "classification_config_initialized",
            extra={
                "a_pct": str(self.a_pct),
                "b_pct": str(self.b_pct),
                "lookback_days": self.lookback_days,
                "counted_statuses": list(self.counted_statuses),
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        logger.info("classification_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary (e.g., the settings file section)."""
        logger.info(
            "classification_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)
