# cart/views.py
import logging

from django.conf import settings
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_POST, require_GET

from .models import Cart, CartItem
from catalog.models import Product
from promotions.pricing import ShopCartDiscountService, ShipmentDiscountService

logger = logging.getLogger(__name__)


# ============================================
# HELPER FUNCTIONS
# ============================================

def get_or_create_cart(request):
    """Get or create cart for user or session"""
    if request.user.is_authenticated:
        cart, created = Cart.objects.get_or_create(
            customer=request.user,
            defaults={'currency': settings.STORE_CURRENCY}
        )
    else:
        if not request.session.session_key:
            request.session.create()
        session_key = request.session.session_key
        cart, created = Cart.objects.get_or_create(
            session_key=session_key,
            customer=None,
            defaults={'currency': settings.STORE_CURRENCY}
        )
    return cart


def calculate_shipping_cost(subtotal_cents):
    """Flat rate, free over the threshold"""
    if subtotal_cents <= 0 or subtotal_cents >= settings.FREE_SHIPPING_THRESHOLD_CENTS:
        return 0
    return settings.SHIPPING_FLAT_RATE_CENTS


def get_cart_totals(cart, customer=None):
    """Cart totals in cents, with product and cart-total discounts applied"""
    breakdown = ShopCartDiscountService().discount_breakdown(cart, customer)
    discounted = breakdown['discounted_subtotal']

    shipping = calculate_shipping_cost(discounted)
    shipping_quote = ShipmentDiscountService().apply_discounts_to_shipment(cart, shipping, customer=customer)

    return {
        'subtotal':          breakdown['subtotal'],
        'product_discounts': breakdown['product_discounts'],
        'cart_discounts':    breakdown['cart_discounts'],
        'discount':          breakdown['total_product_discount'] + breakdown['total_cart_discount'],
        'shipping':          shipping_quote['discounted_price'],
        'shipping_quote':    shipping_quote,
        'total':             discounted + shipping_quote['discounted_price'],
        'item_count':        cart.item_count(),
    }


# ============================================
# ADD / UPDATE / REMOVE
# ============================================

@require_POST
def add_to_cart(request):
    """Add a product to cart"""
    try:
        product_id = request.POST.get('product_id')
        quantity   = max(1, int(request.POST.get('quantity', 1)))
    except (TypeError, ValueError):
        return JsonResponse({'success': False, 'message': 'Invalid quantity.'}, status=400)

    product = get_object_or_404(Product, id=product_id, is_active=True)
    cart = get_or_create_cart(request)

    existing = cart.items.filter(product=product).first()
    if existing:
        existing.quantity += quantity
        existing.save()
    else:
        CartItem.objects.create(
            cart=cart,
            product=product,
            quantity=quantity,
            unit_price_cents=product.price_cents,
        )

    return JsonResponse({
        'success':    True,
        'message':    f'{product.name} added to cart.',
        'cart_count': cart.item_count(),
        'subtotal':   cart.subtotal_cents(),
    })


@require_POST
def update_cart_quantity(request, item_id, action):
    """Increase or decrease a cart line"""
    cart = get_or_create_cart(request)
    cart_item = get_object_or_404(CartItem, id=item_id, cart=cart)

    if action == 'increase':
        cart_item.quantity += 1
        cart_item.save()
    elif action == 'decrease':
        if cart_item.quantity <= 1:
            return JsonResponse({
                'success': False,
                'block': True,
                'quantity': cart_item.quantity,
                'message': 'Minimum quantity is 1. Use the Remove button to delete.',
            })
        cart_item.quantity -= 1
        cart_item.save()
    else:
        return JsonResponse({'success': False, 'message': 'Invalid action.'}, status=400)

    totals = get_cart_totals(cart, request.user)
    return JsonResponse({
        'success':    True,
        'quantity':   cart_item.quantity,
        'item_total': cart_item.line_total(),
        'subtotal':   totals['subtotal'],
        'discount':   totals['discount'],
        'shipping':   totals['shipping'],
        'cart_total': totals['total'],
        'cart_count': totals['item_count'],
    })


@require_POST
def remove_from_cart(request, item_id):
    """Remove item from cart"""
    cart = get_or_create_cart(request)
    cart_item = get_object_or_404(CartItem, id=item_id, cart=cart)

    product_name = cart_item.product.name
    cart_item.delete()

    return JsonResponse({
        'success':    True,
        'message':    f'{product_name} removed from cart.',
        'cart_count': cart.item_count(),
    })


# ============================================
# AJAX HELPERS
# ============================================

@require_GET
def get_cart_summary(request):
    """Cart lines, totals and every discount that applies"""
    cart = get_or_create_cart(request)
    totals = get_cart_totals(cart, request.user)

    items_data = [
        {
            'id':           item.id,
            'product_id':   item.product_id,
            'product_name': item.product.name,
            'quantity':     item.quantity,
            'unit_price':   item.unit_price_cents,
            'item_total':   item.line_total(),
        }
        for item in cart.items.select_related('product')
    ]

    return JsonResponse({
        'items':             items_data,
        'currency':          cart.currency,
        'subtotal':          totals['subtotal'],
        'product_discounts': totals['product_discounts'],
        'cart_discounts':    totals['cart_discounts'],
        'discount':          totals['discount'],
        'shipping':          totals['shipping'],
        'shipping_discounts': totals['shipping_quote']['shipping_discounts'],
        'total':             totals['total'],
        'count':             totals['item_count'],
    })


@require_GET
def shipping_quote(request):
    """Shipping cost for the cart with shipping discounts applied"""
    cart = get_or_create_cart(request)
    breakdown = ShopCartDiscountService().discount_breakdown(cart, request.user)
    cost = calculate_shipping_cost(breakdown['discounted_subtotal'])
    quote = ShipmentDiscountService().apply_discounts_to_shipment(
        cart, cost, shipping_method=request.GET.get('method', 'standard'), customer=request.user,
    )
    return JsonResponse(quote)
