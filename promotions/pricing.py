# promotions/pricing.py
"""
Integration services used by the storefront:

  ProductDiscountService   : display prices for a single product
  ShopCartDiscountService  : product and cart-total discounts for a cart
  ShipmentDiscountService  : shipping discounts for a quoted shipping cost

All of them return prices unchanged / no discounts when
settings.DISCOUNTS['ENABLED'] is off.
"""

import logging

from .context import DiscountContext, LineItem
from .enums import DiscountScope
from .providers import CampaignRepository, CatalogCategoryProvider, discount_settings
from .services import build_discount_service

logger = logging.getLogger(__name__)


def discounts_enabled():
    return bool(discount_settings()['ENABLED'])


def customer_reference(customer):
    """(customer_id, customer_type) for a user, (None, None) for guests."""
    if customer is None or not getattr(customer, 'is_authenticated', False):
        return None, None
    return customer.pk, 'user'


def _summary(result, is_stackable):
    return {
        'campaign_id':   result.campaign_id,
        'campaign_name': result.campaign_name,
        'discount_type': result.discount_type,
        'amount_saved':  result.amount_saved,
        'is_stackable':  is_stackable,
    }


# ─────────────────────────────────────────────────────────────
# PRODUCT
# ─────────────────────────────────────────────────────────────

class ProductDiscountService:

    def __init__(self, discount_service=None, repository=None, category_provider=None):
        self.category_provider = category_provider or CatalogCategoryProvider()
        self.repository = repository or CampaignRepository()
        self.discount_service = discount_service or build_discount_service(
            repository=self.repository, category_provider=self.category_provider,
        )

    def _context(self, product_id, product_type, base_price, customer=None):
        customer_id, customer_type = customer_reference(customer)
        return DiscountContext.from_cart(
            cart_total=base_price,
            items=[LineItem(product_id, product_type, 1, base_price, base_price)],
            customer_id=customer_id,
            customer_type=customer_type,
        )

    def _unconditional_campaigns(self, product_id):
        category_ids = self.category_provider.category_ids_for_product(product_id)
        return self.repository.find_for_product(product_id, category_ids, only_unconditional=True)

    def _best_non_stackable(self, campaigns, context):
        best = None
        for campaign in campaigns:
            if campaign.is_stackable:
                continue
            result = self.discount_service.apply_campaign(campaign, context)
            if result and result.amount_saved > (best.amount_saved if best else 0):
                best = result
        return best

    def _stackables(self, campaigns, context, remaining):
        """Stackable results applied one after another on a single unit."""
        item = context.items[0]
        results = []
        for campaign in campaigns:
            if not campaign.is_stackable or remaining <= 0:
                continue
            adjusted = context.with_items([LineItem(item.product_id, item.product_type, 1, remaining, remaining)])
            result = self.discount_service.apply_campaign(campaign, adjusted)
            if result and result.amount_saved > 0:
                saved = min(result.amount_saved, remaining)
                remaining -= saved
                results.append((result, saved))
        return results

    def get_most_favorable_discount(self, product_id, product_type, base_price, only_unconditional=False, customer=None):
        """Total cents saved on one unit: best non-stackable plus every stackable."""
        context = self._context(product_id, product_type, base_price, customer)

        if only_unconditional:
            campaigns = self._unconditional_campaigns(product_id)
            if not campaigns:
                return 0
            best = self._best_non_stackable(campaigns, context)
            remaining = base_price - (best.amount_saved if best else 0)
            stacked = self._stackables(campaigns, context, remaining)
            return (best.amount_saved if best else 0) + sum(saved for _, saved in stacked)

        results = self.discount_service.apply_discounts(context, DiscountScope.PRODUCTS)
        return min(sum(r.amount_saved for r in results), base_price)

    def get_most_favorable_discount_details(self, product_id, product_type, base_price,
                                            only_unconditional=False, customer=None):
        context = self._context(product_id, product_type, base_price, customer)

        if only_unconditional:
            campaigns = self._unconditional_campaigns(product_id)
            best = self._best_non_stackable(campaigns, context)
            return _summary(best, False) if best else None

        results = self.discount_service.apply_discounts(context, DiscountScope.PRODUCTS)
        if not results:
            return None
        best = max(results, key=lambda r: r.amount_saved)
        return _summary(best, bool(best.metadata.get('is_stackable')))

    def get_stackable_discounts(self, product_id, product_type, base_price, only_unconditional=False, customer=None):
        context = self._context(product_id, product_type, base_price, customer)

        if only_unconditional:
            campaigns = self._unconditional_campaigns(product_id)
            best = self._best_non_stackable(campaigns, context)
            remaining = base_price - (best.amount_saved if best else 0)
            return [
                dict(_summary(result, True), amount_saved=saved)
                for result, saved in self._stackables(campaigns, context, remaining)
            ]

        results = self.discount_service.apply_discounts(context, DiscountScope.PRODUCTS)
        return [_summary(r, True) for r in results if r.metadata.get('is_stackable')]

    def calculate_final_price(self, base_price, product_id, product_type, customer=None):
        if not discounts_enabled() or not product_id:
            return base_price
        return base_price - self.get_most_favorable_discount(product_id, product_type, base_price, customer=customer)

    def calculate_showcase_price(self, base_price, product_id, product_type):
        """Price shown to everyone: only campaigns without conditions count."""
        if not discounts_enabled() or not product_id:
            return base_price
        discount = self.get_most_favorable_discount(product_id, product_type, base_price, only_unconditional=True)
        return base_price - discount

    def get_possible_discounts(self, product_id, product_type=None, customer_id=None):
        """Campaigns that could reach this product, regardless of their conditions."""
        category_ids = self.category_provider.category_ids_for_product(product_id)
        campaigns = self.repository.find_for_product(product_id, category_ids)
        return [
            c for c in campaigns
            if not c.has_reached_limit() and not c.customer_has_reached_limit(customer_id)
        ]


# ─────────────────────────────────────────────────────────────
# CART
# ─────────────────────────────────────────────────────────────

def cart_context(cart, customer=None, request_data=None):
    """Pre-order context for a cart, valued at the price captured on each line."""
    customer = customer if customer is not None else cart.customer
    customer_id, customer_type = customer_reference(customer)
    items = [
        LineItem(
            product_id=item.product_id,
            product_type=item.product.product_type,
            quantity=item.quantity,
            unit_price=item.unit_price_cents,
        )
        for item in cart.items.select_related('product').order_by('id')
    ]
    return DiscountContext.from_cart(
        cart_total=sum(item.total for item in items),
        items=items,
        customer_id=customer_id,
        customer_type=customer_type,
        request_data=request_data,
    )


class ShopCartDiscountService:

    def __init__(self, discount_service=None):
        self.discount_service = discount_service or build_discount_service()

    def apply_product_discounts_to_cart(self, cart, customer=None):
        if not discounts_enabled():
            return []
        context = cart_context(cart, customer)
        if not context.items:
            return []
        return self.discount_service.apply_discounts(context, DiscountScope.PRODUCTS)

    def apply_discounts_to_cart(self, cart, customer=None, product_results=None):
        """Cart-total discounts, computed on the subtotal after product discounts."""
        if not discounts_enabled():
            return []
        context = cart_context(cart, customer)
        if not context.items:
            return []
        if product_results is None:
            product_results = self.discount_service.apply_discounts(context, DiscountScope.PRODUCTS)
        adjusted = context.with_cart_total(context.cart_total - sum(r.amount_saved for r in product_results))
        results = self.discount_service.apply_discounts(adjusted, DiscountScope.CART)
        return [r.to_dict() for r in results]

    def discount_breakdown(self, cart, customer=None):
        """Everything the checkout needs: product discounts, cart discounts, totals."""
        product_results = self.apply_product_discounts_to_cart(cart, customer)
        cart_discounts = self.apply_discounts_to_cart(cart, customer, product_results=product_results)
        subtotal = cart_context(cart, customer).cart_total
        product_total = sum(r.amount_saved for r in product_results)
        cart_total = sum(d['amount_saved'] for d in cart_discounts)
        return {
            'subtotal':               subtotal,
            'product_discounts':      [r.to_dict() for r in product_results],
            'cart_discounts':         cart_discounts,
            'total_product_discount': product_total,
            'total_cart_discount':    cart_total,
            'discounted_subtotal':    subtotal - product_total - cart_total,
        }


# ─────────────────────────────────────────────────────────────
# SHIPPING
# ─────────────────────────────────────────────────────────────

class ShipmentDiscountService:

    def __init__(self, discount_service=None):
        self.discount_service = discount_service or build_discount_service()

    def apply_discounts_to_shipment(self, cart, calculated_cost, shipping_method=None, customer=None):
        quote = {
            'original_price':            calculated_cost,
            'discounted_price':          calculated_cost,
            'shipping_discount_applied': False,
            'shipping_discount_amount':  0,
            'shipping_discounts':        [],
        }
        if not discounts_enabled():
            return quote

        context = cart_context(cart, customer, request_data={
            'shipping_method': shipping_method,
            'calculated_cost': calculated_cost,
        })
        if not context.items:
            return quote

        product_results = self.discount_service.apply_discounts(context, DiscountScope.PRODUCTS)
        context = context.with_cart_total(context.cart_total - sum(r.amount_saved for r in product_results))

        applied = []
        for result in self.discount_service.apply_discounts(context, DiscountScope.SHIPPING):
            if not result.is_shipping:
                continue
            applied.append({
                'campaign_id':    result.campaign_id,
                'campaign_name':  result.campaign_name,
                'discount_type':  result.metadata.get('discount_type', result.discount_type),
                'discount_value': result.metadata.get('discount_value', 0),
                'amount_saved':   result.amount_saved,
            })
        if not applied:
            return quote

        total = sum(d['amount_saved'] for d in applied)
        quote.update({
            'discounted_price':          calculated_cost - total,
            'shipping_discount_applied': True,
            'shipping_discount_amount':  total,
            'shipping_discounts':        applied,
        })
        logger.debug(f"Shipping discounts applied to cart {cart.pk}: {total} off {calculated_cost}")
        return quote
