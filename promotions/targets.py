# promotions/targets.py
import logging

from .enums import TargetType, TargetAction

logger = logging.getLogger(__name__)


def apply_to_targets(campaign):
    return [t for t in campaign.targets.all() if t.target_action == TargetAction.APPLY_TO]


class TargetResolver:
    """
    Decides what a campaign's apply_to targets cover.

    A campaign without apply_to targets covers everything. Otherwise any one
    covering target is enough for eligibility.
    """

    def __init__(self, category_provider):
        self.category_provider = category_provider

    # ── Classification ────────────────────────────────────────
    # Looks at every target, whatever its action

    def is_cart_level(self, campaign):
        """A null-id shopcart target makes a cart-total discount."""
        return any(
            t.target_type == TargetType.SHOPCART and t.target_id is None
            for t in campaign.targets.all()
        )

    def is_shipping(self, campaign):
        return any(t.target_type == TargetType.SHIPMENT for t in campaign.targets.all())

    # ── Eligibility ───────────────────────────────────────────

    def covers(self, campaign, context):
        targets = apply_to_targets(campaign)
        if not targets:
            return True
        return any(self._target_covers(target, context) for target in targets)

    def _target_covers(self, target, context):
        if target.target_type in (TargetType.SHOPCART, TargetType.SHIPMENT):
            return True
        if target.target_type == TargetType.PRODUCT:
            if target.target_id is None:
                return True
            return context.has_product(target.target_id)
        if target.target_type == TargetType.CATEGORY:
            if target.target_id is None:
                return bool(context.items)
            members = self.category_provider.product_ids_in_category(target.target_id)
            return context.has_any_product(members)
        logger.debug(f"Unknown target type '{target.target_type}' on target {target.pk}")
        return False

    # ── Line items ────────────────────────────────────────────

    def eligible_items(self, campaign, context):
        """
        (line index, item) pairs the campaign's amount is calculated on,
        in cart order.
        """
        targets = apply_to_targets(campaign)
        lines = list(enumerate(context.items))
        if not targets:
            return lines

        product_ids = set()
        for target in targets:
            if target.target_type == TargetType.PRODUCT:
                if target.target_id is None:
                    return lines
                product_ids.add(target.target_id)
            elif target.target_type == TargetType.CATEGORY:
                if target.target_id is None:
                    return lines
                product_ids.update(self.category_provider.product_ids_in_category(target.target_id))

        return [(index, item) for index, item in lines if item.product_id in product_ids]
