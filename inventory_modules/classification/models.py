"""Classification result DTOs."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class ClassificationResult:
    """
    Outcome of one ABC recompute for a store.

    ``count_c`` is the number of store products set to C, including
    products with no counted sales in the window.
    """
    store_id: UUID
    count_a: int
    count_b: int
    count_c: int
    since: datetime
    ranked_products: int = 0
    a_product_ids: tuple[UUID, ...] = field(default=(), repr=False)
    b_product_ids: tuple[UUID, ...] = field(default=(), repr=False)
