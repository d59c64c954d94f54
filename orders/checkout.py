# orders/checkout.py
import random
import string
import logging

from django.db import transaction
from django.utils import timezone

from .models import Order, OrderItem, OrderStatusHistory
from cart.views import calculate_shipping_cost
from promotions.order_processing import DiscountOrderProcessor
from promotions.pricing import ShopCartDiscountService

logger = logging.getLogger(__name__)


class EmptyCartError(Exception):
    pass


def generate_order_number():
    timestamp  = timezone.now().strftime('%Y%m%d')
    random_str = ''.join(random.choices(string.ascii_uppercase + string.digits, k=6))
    return f"ORD-{timestamp}-{random_str}"


def _line_discounts(product_discounts):
    """Cart line index -> product discount cents"""
    per_line = {}
    for discount in product_discounts:
        for item in discount['affected_items']:
            per_line[item['line']] = per_line.get(item['line'], 0) + item['discount_amount']
    return per_line


def place_order_from_cart(cart, customer, customer_notes='', cart_service=None, processor=None):
    """
    Turn a cart into a confirmed order.

    Product and cart discounts are the ones the cart shows right now; the
    discount processor records their usages and works out shipping discounts
    in the same transaction, so a failure (a campaign hitting its usage limit
    included) leaves no order and no usage behind.
    """
    cart_service = cart_service or ShopCartDiscountService()
    processor = processor or DiscountOrderProcessor()

    lines = list(cart.items.select_related('product').order_by('id'))
    if not lines:
        raise EmptyCartError('Your cart is empty.')

    breakdown = cart_service.discount_breakdown(cart, customer)
    per_line = _line_discounts(breakdown['product_discounts'])
    subtotal = breakdown['subtotal'] - breakdown['total_product_discount']
    shipping = calculate_shipping_cost(breakdown['discounted_subtotal'])

    with transaction.atomic():
        order = Order.objects.create(
            order_number   = generate_order_number(),
            customer       = customer,
            status         = 'pending',
            currency       = cart.currency,
            subtotal_cents = subtotal,
            shipping_cents = shipping,
            discount_cents = 0,
            total_cents    = subtotal + shipping,
            customer_notes = customer_notes,
        )

        for index, cart_item in enumerate(lines):
            discount = per_line.get(index, 0)
            OrderItem.objects.create(
                order            = order,
                product          = cart_item.product,
                product_name     = cart_item.product.name,
                product_sku      = cart_item.product.sku,
                product_type     = cart_item.product.product_type,
                quantity         = cart_item.quantity,
                unit_price_cents = cart_item.unit_price_cents,
                discount_cents   = discount,
                subtotal_cents   = cart_item.line_total() - discount,
            )

        context = {
            'discounts': {
                'product_discounts': breakdown['product_discounts'],
                'cart_discounts':    breakdown['cart_discounts'],
            },
            'total': subtotal,
        }
        processed = processor.process_order(order, context)

        shipping_discount = min(
            sum(d['amount_saved'] for d in context.get('shipping_discounts', [])), shipping
        )
        order.discount_cents = (
            breakdown['total_product_discount'] + processed['total_cart_discount'] + shipping_discount
        )
        order.total_cents    = max(context['total'], 0) + shipping - shipping_discount
        order.status         = 'confirmed'
        order.confirmed_at   = timezone.now()
        order.save(update_fields=['discount_cents', 'total_cents', 'status', 'confirmed_at', 'updated_at'])

        OrderStatusHistory.objects.create(
            order      = order,
            to_status  = 'confirmed',
            notes      = 'Order placed',
            changed_by = customer,
        )
        cart.items.all().delete()

    logger.info(
        f"Order {order.order_number} placed for customer {customer.pk}: "
        f"total {order.total_cents}, discounts {order.discount_cents}"
    )
    return order


def order_as_dict(order, processor=None):
    processor = processor or DiscountOrderProcessor()
    data = {
        'order_number': order.order_number,
        'status':       order.status,
        'currency':     order.currency,
        'subtotal':     order.subtotal_cents,
        'shipping':     order.shipping_cents,
        'discount':     order.discount_cents,
        'total':        order.total_cents,
        'items': [
            {
                'product_id':   item.product_id,
                'product_name': item.product_name,
                'quantity':     item.quantity,
                'unit_price':   item.unit_price_cents,
                'discount':     item.discount_cents,
                'subtotal':     item.subtotal_cents,
            }
            for item in order.items.all()
        ],
        'created_at':   order.created_at.isoformat(),
    }
    return processor.extend_order_dict(order, data)
