"""
Inventory Modules.

Thin orchestration layers over the inventory kernel and engines.
Each module contains:
- Domain models (the nouns)
- ORM persistence models
- Workflows (state machines), where the module has a lifecycle
- Configuration schemas (policy and settings)
- A service composing engines with the kernel LedgerWriter

Modules:
- Restock: supplier purchase orders, receiving, landed cost
- Classification: profit-based ABC tiering of products
"""

from inventory_modules import classification, restock

__all__ = [
    "classification",
    "restock",
]
