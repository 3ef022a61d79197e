"""
Module ORM Registry (``inventory_modules._orm_registry``).

Responsibility
--------------
Ensure every SQLAlchemy ORM model is imported so that ``Base.metadata``
contains its table before tables are created.  ``create_tables()`` in the
kernel calls ``import_all_orm_models()`` first.

Architecture position
---------------------
**Modules layer** -- utility.  Imports kernel models and each
``inventory_modules.*.orm`` module (allowed: modules -> kernel).  The kernel
only imports it lazily, from inside ``create_tables()`` / ``drop_tables()``.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``inventory_modules.*.orm`` module.

    Kernel tables (products, inventory_movements, sales_orders) are
    registered first because module tables reference them by foreign key.
    Idempotent -- repeated calls are harmless.
    """
    import inventory_kernel.models  # noqa: F401
    import inventory_modules.restock.orm  # noqa: F401
