# promotions/views.py
from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views.decorators.http import require_GET

from catalog.models import Product
from .models import DiscountCampaign, DiscountUsage
from .pricing import ProductDiscountService
from .providers import CampaignRepository


def _campaign_payload(campaign):
    return {
        'id':             campaign.pk,
        'code':           campaign.code,
        'name':           campaign.name,
        'description':    campaign.description,
        'discount_type':  campaign.discount_type,
        'discount_value': campaign.discount_value,
        'is_stackable':   campaign.is_stackable,
        'ends_at':        campaign.end_date.isoformat(),
        'conditions': [
            {
                'condition_type': c.condition_type,
                'operator':       c.operator,
                'value':          c.value,
                'logic_operator': c.logic_operator,
            }
            for c in campaign.conditions.all()
        ],
    }


@require_GET
def product_pricing(request, product_id):
    """Display prices and reachable campaigns for one product."""
    product = get_object_or_404(Product, pk=product_id, is_active=True)
    service = ProductDiscountService()
    customer_id = request.user.pk if request.user.is_authenticated else None

    final_price = service.calculate_final_price(
        product.price_cents, product.pk, product.product_type, customer=request.user
    )
    return JsonResponse({
        'product_id':     product.pk,
        'base_price':     product.price_cents,
        'showcase_price': service.calculate_showcase_price(product.price_cents, product.pk, product.product_type),
        'final_price':    final_price,
        'best_discount':  service.get_most_favorable_discount_details(
            product.pk, product.product_type, product.price_cents, customer=request.user
        ),
        'stackable_discounts': service.get_stackable_discounts(
            product.pk, product.product_type, product.price_cents, customer=request.user
        ),
        'possible_discounts': [
            _campaign_payload(c)
            for c in service.get_possible_discounts(product.pk, product.product_type, customer_id)
        ],
    })


@require_GET
def active_promotions(request):
    """All running campaigns (public)."""
    campaigns = (
        DiscountCampaign.objects
        .active(timezone.now())
        .by_priority('desc')
        .prefetch_related('conditions')
    )
    return JsonResponse({'promotions': [_campaign_payload(c) for c in campaigns]})


@require_GET
def discounted_products(request):
    """Active products reached by at least one running campaign, with showcase prices."""
    products = CampaignRepository().products_with_available_discounts(
        Product.objects.filter(is_active=True).order_by('name')
    )
    service = ProductDiscountService()
    return JsonResponse({
        'products': [
            {
                'id':             p.pk,
                'name':           p.name,
                'base_price':     p.price_cents,
                'showcase_price': service.calculate_showcase_price(p.price_cents, p.pk, p.product_type),
            }
            for p in products
        ],
    })


@login_required
@require_GET
def my_discounts(request):
    """Discount usage history for the logged-in customer."""
    usages = list(DiscountUsage.objects.filter(customer_id=request.user.pk))
    return JsonResponse({
        'usages': [
            {
                'campaign_id':   u.campaign_id,
                'campaign_name': u.metadata.get('campaign_name'),
                'order_id':      u.orderable_id,
                'amount_saved':  u.discount_amount_applied,
                'used_at':       u.used_at.isoformat(),
            }
            for u in usages
        ],
        'total_saved': sum(u.discount_amount_applied for u in usages),
    })
