"""Services for the inventory kernel (write side)."""

from inventory_kernel.services.base import BaseService
from inventory_kernel.services.ledger_writer import LedgerWriter
from inventory_kernel.services.migration_service import InventoryMigrationService

__all__ = [
    "BaseService",
    "InventoryMigrationService",
    "LedgerWriter",
]
