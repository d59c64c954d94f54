# orders/views.py
import logging

from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_POST

from .checkout import place_order_from_cart, order_as_dict, EmptyCartError
from .models import Order, OrderStatusHistory
from cart.views import get_or_create_cart
from promotions.exceptions import UsageLimitExceeded

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
# CHECKOUT
# ─────────────────────────────────────────────────────────────

@login_required
@require_POST
def place_order(request):
    cart = get_or_create_cart(request)
    try:
        order = place_order_from_cart(cart, request.user, request.POST.get('customer_notes', ''))
    except EmptyCartError as e:
        return JsonResponse({'success': False, 'error': str(e)}, status=400)
    except UsageLimitExceeded as e:
        logger.warning(f"place_order rejected for {request.user.pk}: {e}")
        return JsonResponse({
            'success': False,
            'error': 'A discount in your cart is no longer available. Please review your cart.',
        }, status=409)

    return JsonResponse({'success': True, 'order': order_as_dict(order)}, status=201)


# ─────────────────────────────────────────────────────────────
# ORDER MANAGEMENT
# ─────────────────────────────────────────────────────────────

@login_required
def order_list(request):
    orders        = Order.objects.filter(customer=request.user).order_by('-created_at')
    status_filter = request.GET.get('status')
    if status_filter and status_filter != 'all':
        orders = orders.filter(status=status_filter)
    return JsonResponse({
        'orders': [
            {
                'order_number': o.order_number,
                'status':       o.status,
                'total':        o.total_cents,
                'created_at':   o.created_at.isoformat(),
            }
            for o in orders
        ],
    })


@login_required
def order_detail(request, order_number):
    order = get_object_or_404(Order, order_number=order_number, customer=request.user)
    return JsonResponse(order_as_dict(order))


@login_required
@require_POST
def cancel_order(request, order_number):
    order = get_object_or_404(Order, order_number=order_number, customer=request.user)
    if not order.can_be_cancelled:
        return JsonResponse({'success': False, 'error': 'This order cannot be cancelled.'}, status=400)
    old_status   = order.status
    order.status = 'cancelled'
    order.save()
    OrderStatusHistory.objects.create(
        order       = order,
        from_status = old_status,
        to_status   = 'cancelled',
        notes       = 'Cancelled by customer',
        changed_by  = request.user,
    )
    return JsonResponse({'success': True, 'status': order.status})
