from datetime import timedelta

import pytest
from django.utils import timezone

from catalog.models import Category, Product
from promotions.context import DiscountContext, LineItem
from promotions.enums import DiscountType, TargetType
from promotions.models import DiscountCampaign, DiscountCondition, DiscountTarget
from promotions.services import build_discount_service


class StubCategoryProvider:
    """In-memory category membership: {category_id: {product_id, ...}}"""

    def __init__(self, members=None):
        self.members = {k: set(v) for k, v in (members or {}).items()}
        self.calls = 0

    def product_ids_in_category(self, category_id):
        self.calls += 1
        return set(self.members.get(category_id, set()))

    def category_ids_for_product(self, product_id):
        return {cid for cid, products in self.members.items() if product_id in products}


class StubOrderHistory:

    def __init__(self, customers_with_orders=()):
        self.customers_with_orders = set(customers_with_orders)

    def has_prior_orders(self, customer_id, customer_type=None, exclude_order_id=None):
        return customer_id in self.customers_with_orders


@pytest.fixture
def category_provider():
    return StubCategoryProvider()


@pytest.fixture
def order_history():
    return StubOrderHistory()


@pytest.fixture
def engine(category_provider, order_history):
    return build_discount_service(category_provider=category_provider, order_history=order_history)


@pytest.fixture
def make_campaign(db):
    """Persist a running campaign with optional conditions and targets."""
    counter = {'n': 0}

    def _make(conditions=(), targets=(), **fields):
        counter['n'] += 1
        now = timezone.now()
        values = {
            'name': f"Campaign {counter['n']}",
            'discount_type': DiscountType.PERCENTAGE,
            'discount_value': 10,
            'start_date': now - timedelta(days=1),
            'end_date': now + timedelta(days=1),
            'priority': 0,
            'is_stackable': False,
        }
        values.update(fields)
        campaign = DiscountCampaign.objects.create(**values)
        for condition in conditions:
            DiscountCondition.objects.create(campaign=campaign, **condition)
        for target in targets:
            DiscountTarget.objects.create(campaign=campaign, **target)
        return campaign

    return _make


def product_target(product_id=None):
    return {'target_type': TargetType.PRODUCT, 'target_id': product_id}


def category_target(category_id):
    return {'target_type': TargetType.CATEGORY, 'target_id': category_id}


def cart_target():
    return {'target_type': TargetType.SHOPCART, 'target_id': None}


def shipment_target():
    return {'target_type': TargetType.SHIPMENT, 'target_id': None}


def make_context(*lines, customer_id=None, customer_type=None, cart_total=None, **request_data):
    """Lines are (product_id, quantity, unit_price) tuples."""
    items = [LineItem(product_id, 'accessories', quantity, unit_price) for product_id, quantity, unit_price in lines]
    return DiscountContext.from_cart(
        cart_total=sum(item.total for item in items) if cart_total is None else cart_total,
        items=items,
        customer_id=customer_id,
        customer_type=customer_type,
        request_data=request_data,
    )


@pytest.fixture
def category(db):
    return Category.objects.create(name='Sunglasses', slug='sunglasses')


@pytest.fixture
def make_product(db, category):
    counter = {'n': 0}

    def _make(price_cents=10000, **fields):
        counter['n'] += 1
        values = {
            'sku': f"SKU-{counter['n']}",
            'name': f"Product {counter['n']}",
            'slug': f"product-{counter['n']}",
            'product_type': 'sunglasses',
            'category': category,
            'price_cents': price_cents,
        }
        values.update(fields)
        return Product.objects.create(**values)

    return _make


@pytest.fixture
def customer(django_user_model):
    return django_user_model.objects.create_user(username='amal', email='amal@example.com', password='pass12345')
