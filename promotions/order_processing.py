# promotions/order_processing.py
import logging

from .context import DiscountContext
from .enums import DiscountScope, OrderableType
from .pricing import discounts_enabled
from .services import build_discount_service
from .usage import UsageRecorder

logger = logging.getLogger(__name__)


class DiscountOrderProcessor:
    """
    Order-finalization hook.

    Product and cart discounts are taken as computed at cart time, so the
    customer is charged what they were shown; each one is recorded as a usage.
    Shipping discounts are recomputed from the order because the shipping
    cost is only final at checkout. Must run inside the order's transaction.
    """

    def __init__(self, discount_service=None, usage_recorder=None):
        self.discount_service = discount_service or build_discount_service()
        self.usage_recorder = usage_recorder or UsageRecorder()

    def process_order(self, order, context):
        """
        ``context`` carries ``discounts`` ({'product_discounts': [...],
        'cart_discounts': [...]}) and the running ``total``; both are updated
        in place.
        """
        if not discounts_enabled():
            return {'discounts_applied': [], 'total_cart_discount': 0}

        discounts = context.get('discounts') or {}
        applied = []

        for discount in discounts.get('product_discounts') or []:
            self._record(order, discount)
            applied.append(self._applied(discount, 'product'))

        total_cart_discount = 0
        for discount in discounts.get('cart_discounts') or []:
            total_cart_discount += discount.get('amount_saved') or 0
            self._record(order, discount)
            applied.append(self._applied(discount, 'cart'))

        shipping_discounts = self.calculate_shipping_discounts(order)
        for discount in shipping_discounts:
            if discount['amount_saved'] > 0:
                self._record(order, discount)
                applied.append(self._applied(discount, 'shipping'))
        if shipping_discounts:
            context['shipping_discounts'] = shipping_discounts

        context['total'] = context.get('total', 0) - total_cart_discount
        context['total_cart_discount'] = total_cart_discount

        logger.info(
            f"Order {order.pk}: {len(applied)} discount(s) recorded, cart discount {total_cart_discount}"
        )
        return {'discounts_applied': applied, 'total_cart_discount': total_cart_discount}

    def calculate_shipping_discounts(self, order):
        context = DiscountContext.from_order(order)
        shipping = []
        for result in self.discount_service.apply_discounts(context, DiscountScope.SHIPPING):
            if not result.is_shipping:
                continue
            shipping.append({
                'campaign_id':    result.campaign_id,
                'campaign_name':  result.campaign_name,
                'discount_type':  result.metadata.get('discount_type', result.discount_type),
                'discount_value': result.metadata.get('discount_value', 0),
                'amount_saved':   result.amount_saved,
            })
        return shipping

    def extend_order_dict(self, order, data):
        if not discounts_enabled():
            return data

        usages = list(self.usage_recorder.usages_for(order, OrderableType.ORDER))
        data['discounts'] = {
            'items': [
                {
                    'campaign_id':    usage.campaign_id,
                    'name':           usage.metadata.get('campaign_name', 'Unknown'),
                    'type':           usage.metadata.get('discount_type', 'unknown'),
                    'amount_saved':   usage.discount_amount_applied,
                    'affected_items': usage.metadata.get('affected_items', []),
                }
                for usage in usages
            ],
            'total_amount': sum(usage.discount_amount_applied for usage in usages),
        }
        return data

    # ── Helpers ───────────────────────────────────────────────

    def _record(self, order, discount):
        affected = [
            {
                'product_id':   item.get('product_id'),
                'product_type': item.get('product_type'),
                'quantity':     item.get('quantity', 1),
            }
            for item in discount.get('affected_items') or []
        ]
        self.usage_recorder.record(
            discount['campaign_id'],
            order.customer_id,
            order,
            discount.get('amount_saved') or 0,
            metadata={
                'campaign_name':  discount.get('campaign_name') or 'Discount',
                'discount_type':  discount.get('discount_type'),
                'affected_items': affected,
            },
        )

    def _applied(self, discount, scope):
        return {
            'campaign_id':   discount['campaign_id'],
            'campaign_name': discount.get('campaign_name'),
            'discount_type': discount.get('discount_type'),
            'amount_saved':  discount.get('amount_saved') or 0,
            'scope':         scope,
        }
