"""
Tests for profit-based ABC classification.

Covers the pure tiering helper and the service that rewrites
Product.abc_classification for a store.
"""

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from inventory_engines.profit_attribution import ProfitRanking
from inventory_kernel.exceptions import InvalidQuantityError
from inventory_kernel.models.product import AbcClass
from inventory_kernel.models.sales import SalesOrderStatus
from inventory_modules.classification.config import ClassificationConfig
from inventory_modules.classification.helpers import classify_by_profit
from inventory_modules.classification.service import AbcClassificationService


def _ranking(profit, product_id=None):
    return ProfitRanking(
        product_id=product_id or uuid4(),
        total_revenue=Decimal("100"),
        total_profit=Decimal(profit),
        total_quantity_sold=1,
        profit_margin_pct=Decimal("0"),
    )


class TestClassifyByProfit:

    def test_pareto_split(self):
        a, b, c = _ranking("80"), _ranking("15"), _ranking("5")

        tiers = classify_by_profit([c, a, b])

        assert tiers == {a.product_id: AbcClass.A, b.product_id: AbcClass.B, c.product_id: AbcClass.C}

    def test_cumulative_share_includes_current_product(self):
        # The top product alone holds 90%, above the A threshold
        top, rest = _ranking("90"), _ranking("10")

        tiers = classify_by_profit([top, rest])

        assert tiers[top.product_id] == AbcClass.B
        assert tiers[rest.product_id] == AbcClass.C

    def test_non_positive_profit_is_c(self):
        zero, loss, win = _ranking("0"), _ranking("-5"), _ranking("10")

        tiers = classify_by_profit([zero, loss, win])

        assert tiers[zero.product_id] == AbcClass.C
        assert tiers[loss.product_id] == AbcClass.C
        assert tiers[win.product_id] == AbcClass.C

    def test_many_small_products(self):
        rankings = [_ranking("10") for _ in range(10)]

        tiers = classify_by_profit(rankings)

        values = list(tiers.values())
        assert values.count(AbcClass.A) == 8
        assert values.count(AbcClass.B) == 1
        assert values.count(AbcClass.C) == 1

    def test_custom_thresholds(self):
        a, b = _ranking("50"), _ranking("50")

        tiers = classify_by_profit([a, b], a_pct=Decimal("50"), b_pct=Decimal("50"))

        assert sorted(tiers.values()) == [AbcClass.A, AbcClass.B]

    def test_empty(self):
        assert classify_by_profit([]) == {}

    @pytest.mark.parametrize("a_pct,b_pct", [("-1", "15"), ("80", "-1"), ("90", "20")])
    def test_invalid_thresholds(self, a_pct, b_pct):
        with pytest.raises(ValueError):
            classify_by_profit([_ranking("1")], Decimal(a_pct), Decimal(b_pct))


class TestRecompute:

    def test_classifies_store_products(
        self, session, classification_service, make_product, make_sales_order, store_id,
    ):
        p1 = make_product(name="P1")
        p2 = make_product(name="P2")
        p3 = make_product(name="P3")
        unsold = make_product(name="Unsold")
        make_sales_order([(p1, 1, Decimal("100"))], net_profit=Decimal("80"))
        make_sales_order([(p2, 1, Decimal("100"))], net_profit=Decimal("15"))
        make_sales_order([(p3, 1, Decimal("100"))], net_profit=Decimal("5"))

        result = classification_service.recompute(store_id)

        assert (result.count_a, result.count_b, result.count_c) == (1, 1, 2)
        assert result.ranked_products == 3
        assert result.a_product_ids == (p1.id,)
        assert result.b_product_ids == (p2.id,)
        for product in (p1, p2, p3, unsold):
            session.refresh(product)
        assert p1.abc_classification == AbcClass.A.value
        assert p2.abc_classification == AbcClass.B.value
        assert p3.abc_classification == AbcClass.C.value
        assert unsold.abc_classification == AbcClass.C.value

    def test_loss_making_product_is_c(
        self, session, classification_service, make_product, make_sales_order, store_id,
    ):
        loser = make_product(name="Loser")
        make_sales_order([(loser, 1, Decimal("50"))], net_profit=Decimal("-10"))

        result = classification_service.recompute(store_id)

        assert result.count_a == 0
        session.refresh(loser)
        assert loser.abc_classification == AbcClass.C.value

    def test_demotes_previous_tier(
        self, session, classification_service, make_product, make_sales_order, store_id, deterministic_clock,
    ):
        product = make_product(name="Leader")
        runner_up = make_product(name="Runner-up")
        make_sales_order([(product, 1, Decimal("100"))], net_profit=Decimal("80"))
        make_sales_order([(runner_up, 1, Decimal("100"))], net_profit=Decimal("20"))
        classification_service.recompute(store_id)
        session.refresh(product)
        assert product.abc_classification == AbcClass.A.value

        deterministic_clock.advance(200 * 24 * 3600)
        result = classification_service.recompute(store_id)

        assert result.ranked_products == 0
        session.refresh(product)
        assert product.abc_classification == AbcClass.C.value

    def test_lookback_window(
        self, session, classification_service, make_product, make_sales_order, store_id, deterministic_clock,
    ):
        product = make_product()
        make_sales_order(
            [(product, 1, Decimal("10"))],
            net_profit=Decimal("5"),
            created_at=deterministic_clock.now() - timedelta(days=30),
        )

        short = classification_service.recompute(store_id, lookback_days=7)
        long = classification_service.recompute(store_id, lookback_days=60)

        assert short.ranked_products == 0
        assert long.ranked_products == 1

    def test_uncounted_statuses_ignored(
        self, classification_service, make_product, make_sales_order, store_id,
    ):
        product = make_product()
        make_sales_order(
            [(product, 1, Decimal("10"))], net_profit=Decimal("5"), status=SalesOrderStatus.CANCELLED,
        )

        assert classification_service.recompute(store_id).count_a == 0

    def test_other_store_untouched(
        self, session, classification_service, make_product, make_sales_order, store_id, other_store_id,
    ):
        mine = make_product()
        foreign = make_product(store=other_store_id)
        foreign_tail = make_product(store=other_store_id)
        make_sales_order([(foreign, 1, Decimal("100"))], net_profit=Decimal("80"), store=other_store_id)
        make_sales_order([(foreign_tail, 1, Decimal("100"))], net_profit=Decimal("20"), store=other_store_id)
        classification_service.recompute(other_store_id)
        session.refresh(foreign)
        assert foreign.abc_classification == AbcClass.A.value

        result = classification_service.recompute(store_id)

        assert result.count_c == 1
        session.refresh(foreign)
        assert foreign.abc_classification == AbcClass.A.value
        session.refresh(mine)
        assert mine.abc_classification == AbcClass.C.value

    def test_non_positive_lookback_rejected(self, classification_service, store_id):
        with pytest.raises(InvalidQuantityError):
            classification_service.recompute(store_id, lookback_days=0)

    def test_config_thresholds(
        self, session, deterministic_clock, make_product, make_sales_order, store_id,
    ):
        service = AbcClassificationService(
            session,
            clock=deterministic_clock,
            config=ClassificationConfig(a_pct=Decimal("50"), b_pct=Decimal("50")),
        )
        p1 = make_product(name="P1")
        p2 = make_product(name="P2")
        make_sales_order([(p1, 1, Decimal("10")), (p2, 1, Decimal("10"))], net_profit=Decimal("10"))

        result = service.recompute(store_id)

        assert (result.count_a, result.count_b) == (1, 1)

    def test_logs_counts(self, classification_service, make_product, store_id, captured_logs):
        make_product()

        classification_service.recompute(store_id)

        (entry,) = [r for r in captured_logs() if r["message"] == "abc_classification_recomputed"]
        assert entry["store_id"] == str(store_id)
        assert entry["count_c"] == 1
