# promotions/applicators.py
"""
Per-type discount strategies.

An applicator turns one campaign plus one context into a DiscountResult.
Applicators hold no state between calls, so the stacking service can re-run
them against adjusted copies of a context.
"""

import logging

from .context import DiscountResult
from .enums import DiscountType

logger = logging.getLogger(__name__)


def percent_of(amount, percentage):
    """Round half-up percentage of a non-negative integer amount."""
    return (amount * percentage + 50) // 100


class DiscountApplicator:
    discount_type = None

    def __init__(self, target_resolver):
        self.target_resolver = target_resolver

    def supports(self, discount_type):
        return discount_type == self.discount_type

    def apply(self, campaign, context):
        if self.target_resolver.is_cart_level(campaign):
            return self.apply_to_cart_total(campaign, context)

        affected = []
        for line, item in self.target_resolver.eligible_items(campaign, context):
            affected.append(self.item_breakdown(campaign, line, item))

        return DiscountResult(
            campaign_id=campaign.pk,
            campaign_name=campaign.name,
            discount_type=campaign.discount_type,
            amount_saved=sum(entry['discount_amount'] for entry in affected),
            affected_items=tuple(affected),
        )

    def apply_to_cart_total(self, campaign, context):
        raise NotImplementedError

    def item_breakdown(self, campaign, line, item):
        raise NotImplementedError

    def _item_entry(self, line, item, discount):
        original = item.total
        discount = max(0, min(discount, original))
        return {
            'line':            line,
            'product_id':      item.product_id,
            'product_type':    item.product_type,
            'quantity':        item.quantity,
            'original_amount': original,
            'discount_amount': discount,
            'final_amount':    original - discount,
        }


class PercentageDiscountApplicator(DiscountApplicator):
    discount_type = DiscountType.PERCENTAGE

    def apply_to_cart_total(self, campaign, context):
        cart_total = max(context.cart_total, 0)
        amount = min(percent_of(cart_total, campaign.discount_value), cart_total)
        return DiscountResult(
            campaign_id=campaign.pk,
            campaign_name=campaign.name,
            discount_type=campaign.discount_type,
            amount_saved=amount,
            metadata={
                'cart_level':          True,
                'cart_total':          cart_total,
                'discount_percentage': campaign.discount_value,
            },
        )

    def item_breakdown(self, campaign, line, item):
        entry = self._item_entry(line, item, percent_of(item.total, campaign.discount_value))
        entry['discount_percentage'] = campaign.discount_value
        return entry


class FixedAmountDiscountApplicator(DiscountApplicator):
    discount_type = DiscountType.FIXED_AMOUNT

    def apply_to_cart_total(self, campaign, context):
        cart_total = max(context.cart_total, 0)
        return DiscountResult(
            campaign_id=campaign.pk,
            campaign_name=campaign.name,
            discount_type=campaign.discount_type,
            amount_saved=min(campaign.discount_value, cart_total),
            metadata={
                'cart_level':      True,
                'cart_total':      cart_total,
                'discount_amount': campaign.discount_value,
            },
        )

    def item_breakdown(self, campaign, line, item):
        # A unit can't be discounted below its own price
        discount_per_unit = min(campaign.discount_value, item.unit_price)
        entry = self._item_entry(line, item, discount_per_unit * item.quantity)
        entry['price_per_unit'] = item.unit_price
        entry['discount_per_unit'] = discount_per_unit
        return entry


# ─────────────────────────────────────────────────────────────
# REGISTRY
# ─────────────────────────────────────────────────────────────

class ApplicatorRegistry:
    """discount_type -> applicator. New types register at startup."""

    def __init__(self, applicators=()):
        self._applicators = {}
        for applicator in applicators:
            self.register(applicator)

    def register(self, applicator):
        self._applicators[str(applicator.discount_type)] = applicator

    def get(self, discount_type):
        return self._applicators.get(str(discount_type))

    def has(self, discount_type):
        return str(discount_type) in self._applicators

    def all(self):
        return dict(self._applicators)

    def types(self):
        return list(self._applicators)


def build_applicator_registry(target_resolver):
    return ApplicatorRegistry([
        PercentageDiscountApplicator(target_resolver),
        FixedAmountDiscountApplicator(target_resolver),
    ])
