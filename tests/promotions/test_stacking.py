import pytest

from promotions.enums import DiscountScope, DiscountType
from tests.conftest import cart_target, make_context, product_target, shipment_target

pytestmark = pytest.mark.django_db


def percentage(value, **fields):
    return dict(discount_type=DiscountType.PERCENTAGE, discount_value=value, **fields)


def fixed(value, **fields):
    return dict(discount_type=DiscountType.FIXED_AMOUNT, discount_value=value, **fields)


class TestProductScope:

    def test_best_non_stackable_then_stackable(self, engine, make_campaign):
        ten_percent = make_campaign(targets=[product_target()], priority=50, **percentage(10))
        five_off = make_campaign(targets=[product_target()], priority=10, is_stackable=True, **fixed(500))

        results = engine.apply_discounts(make_context((1, 1, 10000)), DiscountScope.PRODUCTS)

        assert [(r.campaign_id, r.amount_saved) for r in results] == [(ten_percent.pk, 1000), (five_off.pk, 500)]
        assert sum(r.amount_saved for r in results) == 1500
        assert results[1].affected_items[0]['final_amount'] == 8500

    def test_per_item_best_of_non_stackables(self, engine, make_campaign):
        make_campaign(targets=[product_target(1)], **fixed(300))
        best = make_campaign(targets=[product_target(1)], **fixed(500))

        results = engine.apply_discounts(make_context((1, 1, 2000)), DiscountScope.PRODUCTS)

        assert [(r.campaign_id, r.amount_saved) for r in results] == [(best.pk, 500)]

    def test_different_items_can_keep_different_campaigns(self, engine, make_campaign):
        for_first = make_campaign(targets=[product_target(1)], **fixed(400))
        everywhere = make_campaign(targets=[product_target()], **percentage(10))

        results = engine.apply_discounts(make_context((1, 1, 1000), (2, 1, 1000)), DiscountScope.PRODUCTS)
        by_campaign = {r.campaign_id: r for r in results}

        assert by_campaign[for_first.pk].amount_saved == 400
        assert [i['product_id'] for i in by_campaign[for_first.pk].affected_items] == [1]
        assert by_campaign[everywhere.pk].amount_saved == 100
        assert [i['product_id'] for i in by_campaign[everywhere.pk].affected_items] == [2]

    def test_stackables_apply_sequentially_on_remaining_price(self, engine, make_campaign):
        first = make_campaign(priority=20, is_stackable=True, **percentage(50))
        second = make_campaign(priority=10, is_stackable=True, **percentage(50))

        results = engine.apply_discounts(make_context((1, 1, 1000)), DiscountScope.PRODUCTS)

        assert [(r.campaign_id, r.amount_saved) for r in results] == [(first.pk, 500), (second.pk, 250)]

    def test_line_price_never_goes_below_zero(self, engine, make_campaign):
        make_campaign(priority=30, **percentage(90))
        make_campaign(priority=20, is_stackable=True, **fixed(800))
        make_campaign(priority=10, is_stackable=True, **fixed(800))

        results = engine.apply_discounts(make_context((1, 2, 1000), (2, 1, 150)), DiscountScope.PRODUCTS)

        saved_per_line = {}
        for result in results:
            for item in result.affected_items:
                saved_per_line[item['line']] = saved_per_line.get(item['line'], 0) + item['discount_amount']
        assert saved_per_line == {0: 2000, 1: 150}

    def test_cart_and_shipping_campaigns_are_left_out(self, engine, make_campaign):
        make_campaign(targets=[cart_target()], **percentage(10))
        make_campaign(targets=[shipment_target()], **percentage(10))

        assert engine.apply_discounts(make_context((1, 1, 1000)), DiscountScope.PRODUCTS) == []

    def test_unknown_discount_type_is_skipped(self, engine, make_campaign):
        make_campaign(discount_type=DiscountType.BOGO, discount_value=1, priority=99)
        regular = make_campaign(**percentage(10))

        results = engine.apply_discounts(make_context((1, 1, 1000)), DiscountScope.PRODUCTS)
        assert [r.campaign_id for r in results] == [regular.pk]


class TestShippingScope:

    def test_metadata_only_until_cost_is_known(self, engine, make_campaign):
        campaign = make_campaign(targets=[shipment_target()], **percentage(50))

        before = engine.apply_discounts(make_context((1, 1, 1000)), DiscountScope.SHIPPING)
        assert [(r.campaign_id, r.amount_saved) for r in before] == [(campaign.pk, 0)]
        assert before[0].metadata == {'shipping_discount': True, 'discount_type': 'percentage', 'discount_value': 50}

        after = engine.apply_discounts(make_context((1, 1, 1000), calculated_cost=2000), DiscountScope.SHIPPING)
        assert after[0].amount_saved == 1000

    def test_best_non_stackable_is_chosen_by_discount_value(self, engine, make_campaign):
        # 600 cents off beats 50% on a 2000 cost by value, not by saving
        make_campaign(targets=[shipment_target()], priority=10, **percentage(50))
        bigger_value = make_campaign(targets=[shipment_target()], priority=1, **fixed(600))

        results = engine.apply_discounts(make_context((1, 1, 1000), calculated_cost=2000), DiscountScope.SHIPPING)
        assert [(r.campaign_id, r.amount_saved) for r in results] == [(bigger_value.pk, 600)]

    def test_stackables_reduce_remaining_cost(self, engine, make_campaign):
        make_campaign(targets=[shipment_target()], **fixed(1500))
        make_campaign(targets=[shipment_target()], is_stackable=True, priority=5, **percentage(50))
        make_campaign(targets=[shipment_target()], is_stackable=True, priority=1, **fixed(1000))

        results = engine.apply_discounts(make_context((1, 1, 1000), calculated_cost=2000), DiscountScope.SHIPPING)
        # 2000 - 1500 = 500; 50% floor -> 250; then min(1000, 250)
        assert [r.amount_saved for r in results] == [1500, 250, 250]

    def test_percentage_is_floored(self, engine, make_campaign):
        make_campaign(targets=[shipment_target()], **percentage(33))
        results = engine.apply_discounts(make_context((1, 1, 1000), calculated_cost=1999), DiscountScope.SHIPPING)
        assert results[0].amount_saved == 659


class TestCartScope:

    def test_best_non_stackable_by_amount_saved(self, engine, make_campaign):
        make_campaign(targets=[cart_target()], **fixed(500))
        best = make_campaign(targets=[cart_target()], **percentage(10))

        results = engine.apply_discounts(make_context((1, 1, 10000)), DiscountScope.CART)
        assert [(r.campaign_id, r.amount_saved) for r in results] == [(best.pk, 1000)]

    def test_stackable_cart_discounts_follow(self, engine, make_campaign):
        make_campaign(targets=[cart_target()], **percentage(10))
        make_campaign(targets=[cart_target()], is_stackable=True, **percentage(10))

        results = engine.apply_discounts(make_context((1, 1, 10000)), DiscountScope.CART)
        assert [r.amount_saved for r in results] == [1000, 900]

    def test_cart_scope_uses_total_as_given(self, engine, make_campaign):
        make_campaign(targets=[product_target()], **fixed(2000))
        make_campaign(targets=[cart_target()], **percentage(10))

        results = engine.apply_discounts(make_context((1, 1, 10000), cart_total=8000), DiscountScope.CART)
        assert [r.amount_saved for r in results] == [800]


class TestAllScopes:

    def test_cart_stage_starts_after_product_discounts(self, engine, make_campaign):
        product = make_campaign(targets=[product_target()], priority=3, **fixed(2000))
        shipping = make_campaign(targets=[shipment_target()], priority=2, **percentage(100))
        cart = make_campaign(targets=[cart_target()], priority=1, **percentage(10))

        results = engine.apply_discounts(make_context((1, 1, 10000), calculated_cost=2000))

        assert [(r.campaign_id, r.amount_saved) for r in results] == [
            (product.pk, 2000),
            (shipping.pk, 2000),
            (cart.pk, 800),
        ]
        assert results[1].is_shipping and results[2].is_cart_level

    def test_same_context_gives_same_results(self, engine, make_campaign):
        make_campaign(priority=5, **percentage(15))
        make_campaign(priority=1, is_stackable=True, **fixed(250))
        make_campaign(targets=[cart_target()], **percentage(5))
        context = make_context((1, 2, 1999), (2, 1, 4500))

        first = engine.apply_discounts(context)
        second = engine.apply_discounts(context)

        assert first == second
        assert context.cart_total == 2 * 1999 + 4500

    def test_apply_campaign_probe(self, engine, make_campaign):
        campaign = make_campaign(**percentage(25))
        assert engine.apply_campaign(campaign, make_context((1, 1, 400))).amount_saved == 100

        bogo = make_campaign(discount_type=DiscountType.BOGO, discount_value=1)
        assert engine.apply_campaign(bogo, make_context((1, 1, 400))) is None
