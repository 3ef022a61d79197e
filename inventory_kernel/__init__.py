"""
Inventory Kernel

An append-only stock ledger for multi-store retail catalogs with:
- A single mutation path for product stock (the movement ledger)
- Closed movement-type sign policy
- All-or-nothing batch writes under row locks
- Idempotent one-time stock migration
- Point-in-time stock replay from the movement history
"""

__version__ = "0.1.0"
