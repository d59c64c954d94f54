# promotions/services.py
"""
Discount application: composes applicator results across campaigns.

Per scope, the best non-stackable discount wins and every stackable discount
is then applied on top of what is left:

  products : best non-stackable per line item, then stackables on the
             remaining line prices
  shipping : best non-stackable by discount_value, then stackables on the
             remaining shipping cost
  cart     : best non-stackable by amount saved, then stackables on the
             remaining cart total

With scope ``all`` the three run in that order and the cart stage starts
from the cart total minus the product discounts.
"""

import logging
from dataclasses import replace

from .applicators import build_applicator_registry
from .conditions import build_condition_matcher
from .context import DiscountResult
from .enums import DiscountScope, DiscountType
from .evaluator import CampaignEvaluator
from .providers import (
    CampaignRepository, CatalogCategoryProvider, OrderHistoryProvider, ModelRegistry,
)
from .targets import TargetResolver

logger = logging.getLogger(__name__)


class DiscountApplicationService:

    def __init__(self, evaluator, applicators, target_resolver):
        self.evaluator = evaluator
        self.applicators = applicators
        self.target_resolver = target_resolver

    def apply_discounts(self, context, scope=DiscountScope.ALL, now=None):
        scope = DiscountScope(scope)
        campaigns = self.evaluator.find_applicable(context, scope, now=now)

        results = []
        if scope.includes_products:
            results.extend(self.apply_product_discounts(campaigns, context))

        if scope.includes_shipping:
            results.extend(self.apply_shipping_discounts(campaigns, context))

        if scope.includes_cart:
            cart_total = context.cart_total
            if scope == DiscountScope.ALL:
                product_savings = sum(
                    r.amount_saved for r in results if not r.is_shipping and not r.is_cart_level
                )
                cart_total -= product_savings
            results.extend(self.apply_cart_discounts(campaigns, context, cart_total))

        return results

    def apply_campaign(self, campaign, context):
        """Single-campaign probe; None when no applicator handles its type."""
        applicator = self.applicators.get(campaign.discount_type)
        if applicator is None:
            return None
        return applicator.apply(campaign, context)

    def _apply(self, campaign, context):
        applicator = self.applicators.get(campaign.discount_type)
        if applicator is None:
            logger.debug(f"No applicator for discount type '{campaign.discount_type}' (campaign {campaign.pk})")
            return None
        try:
            return applicator.apply(campaign, context)
        except Exception as e:
            logger.warning(f"Campaign {campaign.pk} could not be applied: {type(e).__name__}: {e}")
            return None

    # ── Products ──────────────────────────────────────────────

    def apply_product_discounts(self, campaigns, context):
        product_campaigns = [
            c for c in campaigns
            if not self.target_resolver.is_cart_level(c) and not self.target_resolver.is_shipping(c)
        ]

        # line -> (campaign, result, entry)
        best = {}
        for campaign in product_campaigns:
            if campaign.is_stackable:
                continue
            result = self._apply(campaign, context)
            if result is None or result.is_cart_level or result.is_shipping or result.amount_saved <= 0:
                continue
            for entry in result.affected_items:
                current = best.get(entry['line'])
                if entry['discount_amount'] > 0 and (
                    current is None or entry['discount_amount'] > current[2]['discount_amount']
                ):
                    best[entry['line']] = (campaign, result, entry)

        remaining = {}
        for line, item in enumerate(context.items):
            taken = best[line][2]['discount_amount'] if line in best else 0
            remaining[line] = item.total - taken

        stacked = []
        for campaign in product_campaigns:
            if not campaign.is_stackable:
                continue
            result = self._apply(campaign, self._adjusted_context(context, remaining))
            if result is None or result.is_cart_level or result.is_shipping or result.amount_saved <= 0:
                continue
            for entry in result.affected_items:
                line = entry['line']
                discount = min(entry['discount_amount'], remaining[line])
                if discount <= 0:
                    continue
                remaining[line] -= discount
                entry = dict(entry, discount_amount=discount, final_amount=entry['original_amount'] - discount)
                stacked.append((campaign, result, entry))

        grouped = {}
        for campaign, result, entry in [best[line] for line in sorted(best)] + stacked:
            group = grouped.setdefault(campaign.pk, {'campaign': campaign, 'result': result, 'items': [], 'total': 0})
            group['items'].append(entry)
            group['total'] += entry['discount_amount']

        return [
            DiscountResult(
                campaign_id=campaign_id,
                campaign_name=group['result'].campaign_name,
                discount_type=group['result'].discount_type,
                amount_saved=group['total'],
                affected_items=tuple(group['items']),
                metadata={'is_stackable': group['campaign'].is_stackable},
            )
            for campaign_id, group in grouped.items()
        ]

    def _adjusted_context(self, context, remaining):
        items = []
        for line, item in enumerate(context.items):
            left = max(remaining[line], 0)
            unit_price = left // item.quantity if item.quantity else left
            items.append(replace(item, unit_price=unit_price, line_total=left))
        return context.with_items(items)

    # ── Shipping ──────────────────────────────────────────────

    def apply_shipping_discounts(self, campaigns, context):
        shipping_campaigns = [c for c in campaigns if self.target_resolver.is_shipping(c)]
        if not shipping_campaigns:
            return []

        shipping_cost = context.request_data.get('calculated_cost')
        can_calculate = shipping_cost is not None and shipping_cost > 0
        remaining = shipping_cost if can_calculate else 0

        # Ranked by raw discount_value, the cost may not be known yet
        best = None
        for campaign in shipping_campaigns:
            if not campaign.is_stackable and (best is None or campaign.discount_value > best.discount_value):
                best = campaign

        results = []
        if best is not None:
            amount = self.shipping_discount_amount(best, remaining) if can_calculate else 0
            remaining -= amount
            results.append(self._shipping_result(best, amount))

        for campaign in shipping_campaigns:
            if not campaign.is_stackable:
                continue
            amount = 0
            if can_calculate and remaining > 0:
                amount = self.shipping_discount_amount(campaign, remaining)
                remaining -= amount
            results.append(self._shipping_result(campaign, amount))

        return results

    def shipping_discount_amount(self, campaign, cost):
        if campaign.discount_type == DiscountType.PERCENTAGE:
            return min(cost * campaign.discount_value // 100, cost)
        if campaign.discount_type == DiscountType.FIXED_AMOUNT:
            return min(campaign.discount_value, cost)
        logger.debug(f"Shipping discount type '{campaign.discount_type}' not supported (campaign {campaign.pk})")
        return 0

    def _shipping_result(self, campaign, amount):
        return DiscountResult(
            campaign_id=campaign.pk,
            campaign_name=campaign.name,
            discount_type=campaign.discount_type,
            amount_saved=amount,
            metadata={
                'shipping_discount': True,
                'discount_type':     campaign.discount_type,
                'discount_value':    campaign.discount_value,
            },
        )

    # ── Cart ──────────────────────────────────────────────────

    def apply_cart_discounts(self, campaigns, context, cart_total):
        cart_campaigns = [c for c in campaigns if self.target_resolver.is_cart_level(c)]

        best = None
        for campaign in cart_campaigns:
            if campaign.is_stackable:
                continue
            result = self._apply(campaign, context.with_cart_total(cart_total))
            if result is not None and result.amount_saved > 0:
                if best is None or result.amount_saved > best.amount_saved:
                    best = result

        results = []
        if best is not None:
            results.append(best)
            cart_total -= best.amount_saved

        for campaign in cart_campaigns:
            if not campaign.is_stackable:
                continue
            result = self._apply(campaign, context.with_cart_total(cart_total))
            if result is not None and result.amount_saved > 0:
                results.append(result)
                cart_total -= result.amount_saved

        return results


def build_discount_service(repository=None, category_provider=None, order_history=None, registry=None):
    """Wire the engine with the database-backed collaborators unless given others."""
    registry = registry or ModelRegistry()
    category_provider = category_provider or CatalogCategoryProvider(registry)
    order_history = order_history or OrderHistoryProvider(registry)

    target_resolver = TargetResolver(category_provider)
    evaluator = CampaignEvaluator(
        repository or CampaignRepository(),
        build_condition_matcher(order_history),
        target_resolver,
    )
    return DiscountApplicationService(evaluator, build_applicator_registry(target_resolver), target_resolver)
