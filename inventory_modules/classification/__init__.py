"""
Classification Module (``inventory_modules.classification``).

Profit-based ABC tiering of a store's products: A for the products making
up the top 80% of attributed profit, B for the next 15%, C for the rest and
for anything with no positive profit in the window.
"""

from inventory_modules.classification.config import ClassificationConfig
from inventory_modules.classification.helpers import classify_by_profit
from inventory_modules.classification.models import ClassificationResult
from inventory_modules.classification.service import AbcClassificationService

__all__ = [
    "AbcClassificationService",
    "ClassificationConfig",
    "ClassificationResult",
    "classify_by_profit",
]
