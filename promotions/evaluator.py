# promotions/evaluator.py
import logging

from django.utils import timezone

from .enums import DiscountScope

logger = logging.getLogger(__name__)


class CampaignEvaluator:
    """
    Produces the campaigns applicable to a context for one scope.

    Campaigns are loaded once per call (active + in date range, priority
    descending) and each is then checked in order: running, usage limits,
    conditions, target coverage, scope. A campaign that errors out is skipped
    and the rest are still evaluated.
    """

    def __init__(self, repository, condition_matcher, target_resolver):
        self.repository = repository
        self.condition_matcher = condition_matcher
        self.target_resolver = target_resolver

    def find_applicable(self, context, scope=DiscountScope.ALL, now=None):
        now = now or timezone.now()
        scope = DiscountScope(scope)

        applicable = []
        for campaign in self.repository.find_active_in_range(now):
            try:
                if self.is_applicable(campaign, context, scope, now):
                    applicable.append(campaign)
            except Exception as e:
                logger.warning(f"Campaign {campaign.pk} skipped during evaluation: {type(e).__name__}: {e}")
        # Stable: ties keep repository order
        applicable.sort(key=lambda c: -c.priority)
        return applicable

    def is_applicable(self, campaign, context, scope=DiscountScope.ALL, now=None):
        now = now or timezone.now()
        if not campaign.is_running(now):
            return False
        if self.has_reached_usage_limit(campaign, context):
            return False
        if not self.condition_matcher.evaluate_all(campaign.conditions.all(), context, now=now):
            return False
        if not self.target_resolver.covers(campaign, context):
            return False
        return self.matches_scope(campaign, scope)

    def has_reached_usage_limit(self, campaign, context):
        if campaign.has_reached_limit():
            return True
        if context.customer_id is not None and campaign.max_uses_per_customer is not None:
            used = self.repository.count_usages_by_customer(campaign.pk, context.customer_id)
            return used >= campaign.max_uses_per_customer
        return False

    def matches_scope(self, campaign, scope):
        scope = DiscountScope(scope)
        if scope == DiscountScope.ALL:
            return True
        cart_level = self.target_resolver.is_cart_level(campaign)
        shipping = self.target_resolver.is_shipping(campaign)
        if scope == DiscountScope.PRODUCTS:
            return not cart_level and not shipping
        if scope == DiscountScope.CART:
            return cart_level
        return shipping
