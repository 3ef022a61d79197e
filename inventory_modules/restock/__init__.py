"""
Restock Module (``inventory_modules.restock``).

Responsibility
--------------
Supplier purchase orders ("restock orders"): drafting, placing, cancelling,
deleting and receiving.  Receiving amortizes the order's freight into a
landed unit cost (``inventory_engines.landed_cost``) and records one
RESTOCK_RECEIVED movement per received line through the kernel
``LedgerWriter``.

Architecture
------------
Layer: **Modules** -- DTOs, ORM, workflow, config schema and a thin
orchestration service.  Imports from ``inventory_engines`` and
``inventory_kernel`` but never the reverse.

Failure Modes
-------------
- Status violations raise typed ConflictError subclasses.
- A receipt with no valid line raises ``NoValidReceiveLinesError`` before
  any write.
"""

from inventory_modules.restock.config import RestockConfig
from inventory_modules.restock.models import (
    ReceivedLine,
    ReceiveLine,
    ReceiveResult,
    RestockItemInput,
    RestockOrder,
    RestockOrderItem,
    RestockOrderStatus,
    SkippedLine,
    SkipReason,
)
from inventory_modules.restock.service import RestockOrderService
from inventory_modules.restock.workflows import RESTOCK_ORDER_WORKFLOW

__all__ = [
    "RESTOCK_ORDER_WORKFLOW",
    "ReceiveLine",
    "ReceiveResult",
    "ReceivedLine",
    "RestockConfig",
    "RestockItemInput",
    "RestockOrder",
    "RestockOrderItem",
    "RestockOrderService",
    "RestockOrderStatus",
    "SkipReason",
    "SkippedLine",
]
