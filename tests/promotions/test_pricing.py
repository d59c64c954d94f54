import pytest

from cart.models import Cart, CartItem
from promotions.enums import DiscountType
from promotions.pricing import (
    ProductDiscountService, ShipmentDiscountService, ShopCartDiscountService,
)
from promotions.services import build_discount_service
from tests.conftest import (
    StubCategoryProvider, StubOrderHistory, cart_target, product_target, shipment_target,
)

pytestmark = pytest.mark.django_db


@pytest.fixture
def product_service():
    categories = StubCategoryProvider({7: {1}})
    service = build_discount_service(category_provider=categories, order_history=StubOrderHistory())
    return ProductDiscountService(discount_service=service, category_provider=categories)


def first_order():
    return {'condition_type': 'first_order'}


class TestProductDiscountService:

    def test_final_price_combines_best_and_stackables(self, product_service, make_campaign):
        make_campaign(priority=5, discount_value=10)
        make_campaign(priority=1, is_stackable=True, discount_type=DiscountType.FIXED_AMOUNT, discount_value=500)

        assert product_service.get_most_favorable_discount(1, 'sunglasses', 10000) == 1500
        assert product_service.calculate_final_price(10000, 1, 'sunglasses') == 8500

    def test_showcase_price_ignores_conditional_campaigns(self, product_service, make_campaign):
        make_campaign(discount_value=50, conditions=[first_order()])
        make_campaign(discount_value=10, targets=[{'target_type': 'category', 'target_id': 7}])

        assert product_service.calculate_showcase_price(2000, 1, 'sunglasses') == 1800

    def test_details_of_best_discount(self, product_service, make_campaign):
        make_campaign(discount_value=10)
        best = make_campaign(discount_type=DiscountType.FIXED_AMOUNT, discount_value=300)

        details = product_service.get_most_favorable_discount_details(1, 'sunglasses', 2000)
        assert details == {
            'campaign_id': best.pk,
            'campaign_name': best.name,
            'discount_type': 'fixed_amount',
            'amount_saved': 300,
            'is_stackable': False,
        }
        assert product_service.get_most_favorable_discount_details(1, 'sunglasses', 2000, only_unconditional=True)['campaign_id'] == best.pk

    def test_stackable_discounts(self, product_service, make_campaign):
        make_campaign(discount_value=50)
        stackable = make_campaign(is_stackable=True, discount_value=10)

        for only_unconditional in (False, True):
            stacked = product_service.get_stackable_discounts(
                1, 'sunglasses', 2000, only_unconditional=only_unconditional,
            )
            assert [(d['campaign_id'], d['amount_saved']) for d in stacked] == [(stackable.pk, 100)]

    def test_no_discount_for_untargeted_product(self, product_service, make_campaign):
        make_campaign(targets=[product_target(2)])
        assert product_service.calculate_final_price(1000, 1, 'sunglasses') == 1000
        assert product_service.get_most_favorable_discount_details(1, 'sunglasses', 1000) is None

    def test_possible_discounts_respect_usage_limits(self, product_service, make_campaign):
        open_campaign = make_campaign(conditions=[first_order()])
        make_campaign(max_uses_total=1, current_uses=1)

        assert product_service.get_possible_discounts(1) == [open_campaign]

    def test_disabled_switch_keeps_prices(self, product_service, make_campaign, settings):
        settings.DISCOUNTS = {'ENABLED': False}
        make_campaign(discount_value=50)

        assert product_service.calculate_final_price(1000, 1, 'sunglasses') == 1000
        assert product_service.calculate_showcase_price(1000, 1, 'sunglasses') == 1000


@pytest.fixture
def cart(db, make_product):
    cart = Cart.objects.create(session_key='abc')
    CartItem.objects.create(cart=cart, product=make_product(), quantity=2, unit_price_cents=5000)
    return cart


class TestShopCartDiscountService:

    def test_cart_discount_on_total_after_product_discounts(self, cart, make_campaign):
        make_campaign(targets=[product_target()], discount_type=DiscountType.FIXED_AMOUNT, discount_value=1000)
        cart_campaign = make_campaign(targets=[cart_target()], discount_value=10)

        service = ShopCartDiscountService()
        discounts = service.apply_discounts_to_cart(cart)

        assert [(d['campaign_id'], d['amount_saved']) for d in discounts] == [(cart_campaign.pk, 800)]
        assert discounts[0]['metadata']['cart_total'] == 8000

    def test_breakdown(self, cart, make_campaign):
        make_campaign(targets=[product_target()], discount_value=20)
        make_campaign(targets=[cart_target()], discount_type=DiscountType.FIXED_AMOUNT, discount_value=1000)

        breakdown = ShopCartDiscountService().discount_breakdown(cart)

        assert breakdown['subtotal'] == 10000
        assert breakdown['total_product_discount'] == 2000
        assert breakdown['total_cart_discount'] == 1000
        assert breakdown['discounted_subtotal'] == 7000

    def test_empty_cart(self, db):
        assert ShopCartDiscountService().apply_discounts_to_cart(Cart.objects.create()) == []


class TestShipmentDiscountService:

    def test_quote_with_shipping_discount(self, cart, make_campaign):
        campaign = make_campaign(targets=[shipment_target()], discount_value=50)

        quote = ShipmentDiscountService().apply_discounts_to_shipment(cart, 2000, shipping_method='standard')

        assert quote['original_price'] == 2000
        assert quote['discounted_price'] == 1000
        assert quote['shipping_discount_applied'] is True
        assert quote['shipping_discounts'] == [{
            'campaign_id': campaign.pk,
            'campaign_name': campaign.name,
            'discount_type': 'percentage',
            'discount_value': 50,
            'amount_saved': 1000,
        }]

    def test_quote_without_campaigns(self, cart):
        quote = ShipmentDiscountService().apply_discounts_to_shipment(cart, 2000)
        assert quote['discounted_price'] == 2000
        assert quote['shipping_discounts'] == []
