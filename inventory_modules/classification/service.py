"""
Classification Module Service (``inventory_modules.classification.service``).

Responsibility
--------------
Recomputes the ABC classification of every product of a store from the
profit attributed to it by counted sales orders in a lookback window.

Architecture
------------
Layer: **Modules** -- thin orchestration.

1. ``SalesSelector.counted_orders`` loads the window's counted orders.
2. ``rank_products_by_profit`` (engine) attributes order profit to products.
3. ``classify_by_profit`` (helper) assigns A/B/C.
4. Three bulk updates (A set, B set, everything else -> C) run inside one
   SAVEPOINT of the caller's transaction.

Invariants
----------
- Products absent from the ranking end up C.
- Only ``abc_classification`` is written; stock is never touched.
- The caller owns the transaction; this service does not commit.
"""

from __future__ import annotations

from datetime import timedelta
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from inventory_engines.profit_attribution import rank_products_by_profit
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import InvalidQuantityError
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.product import AbcClass, Product
from inventory_kernel.selectors.sales_selector import SalesSelector
from inventory_modules.classification.config import ClassificationConfig
from inventory_modules.classification.helpers import classify_by_profit
from inventory_modules.classification.models import ClassificationResult

logger = get_logger("modules.classification.service")


class AbcClassificationService:
    """
    Profit-based ABC classifier for one store at a time.

    Contract
    --------
    ``recompute`` rewrites ``Product.abc_classification`` for every product
    of the store and returns the per-class counts.

    Non-goals
    ---------
    - Does NOT schedule itself; callers (the CLI, a cron job) decide when.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: ClassificationConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or ClassificationConfig.with_defaults()
        self._sales = SalesSelector(session)

    def recompute(
        self,
        store_id: UUID,
        lookback_days: int | None = None,
    ) -> ClassificationResult:
        days = self._config.lookback_days if lookback_days is None else lookback_days
        if days <= 0:
            raise InvalidQuantityError("lookback_days", days, "must be positive")

        now = self._clock.now()
        since = now - timedelta(days=days)

        with LogContext.bind(store_id=str(store_id)):
            orders = self._sales.counted_orders(
                store_id,
                since=since,
                until=now,
                statuses=self._config.counted_statuses,
            )
            rankings = rank_products_by_profit(orders)
            tiers = classify_by_profit(rankings, self._config.a_pct, self._config.b_pct)

            a_ids = sorted((pid for pid, tier in tiers.items() if tier == AbcClass.A), key=str)
            b_ids = sorted((pid for pid, tier in tiers.items() if tier == AbcClass.B), key=str)

            with self._session.begin_nested():
                count_a = self._set_class(store_id, AbcClass.A, Product.id.in_(a_ids)) if a_ids else 0
                count_b = self._set_class(store_id, AbcClass.B, Product.id.in_(b_ids)) if b_ids else 0
                count_c = self._set_class(store_id, AbcClass.C, Product.id.not_in(a_ids + b_ids))

            result = ClassificationResult(
                store_id=store_id,
                count_a=count_a,
                count_b=count_b,
                count_c=count_c,
                since=since,
                ranked_products=len(rankings),
                a_product_ids=tuple(a_ids),
                b_product_ids=tuple(b_ids),
            )
            logger.info(
                "abc_classification_recomputed",
                extra={
                    "lookback_days": days,
                    "orders_counted": len(orders),
                    "ranked_products": len(rankings),
                    "count_a": count_a,
                    "count_b": count_b,
                    "count_c": count_c,
                },
            )
            return result

    def _set_class(self, store_id: UUID, tier: AbcClass, id_filter) -> int:
        result = self._session.execute(
            update(Product)
            .where(Product.store_id == store_id, id_filter)
            .values(abc_classification=tier.value)
            .execution_options(synchronize_session="evaluate")
        )
        return result.rowcount
