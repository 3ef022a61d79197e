"""Domain models for the inventory kernel."""

from inventory_kernel.models.movement import Movement
from inventory_kernel.models.product import AbcClass, Product
from inventory_kernel.models.sales import SalesOrder, SalesOrderLine, SalesOrderStatus

__all__ = [
    "AbcClass",
    "Movement",
    "Product",
    "SalesOrder",
    "SalesOrderLine",
    "SalesOrderStatus",
]
