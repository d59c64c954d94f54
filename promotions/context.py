# promotions/context.py
"""
Value objects passed through the discount pipeline.

DiscountContext is the snapshot of cart or order state being evaluated and is
never mutated; stacking builds adjusted copies with ``with_items`` /
``with_cart_total``. DiscountResult is what one campaign contributes.
All money values are integer cents.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Optional


@dataclass(frozen=True)
class LineItem:
    product_id: int
    product_type: str
    quantity: int
    unit_price: int
    line_total: Optional[int] = None

    @property
    def total(self) -> int:
        if self.line_total is not None:
            return self.line_total
        return self.unit_price * self.quantity

    def to_dict(self):
        return {
            'product_id':   self.product_id,
            'product_type': self.product_type,
            'quantity':     self.quantity,
            'unit_price':   self.unit_price,
            'line_total':   self.total,
        }


@dataclass(frozen=True)
class DiscountContext:
    cart_total: int
    items: tuple = ()
    customer_id: Optional[int] = None
    customer_type: Optional[str] = None
    request_data: dict = field(default_factory=dict)
    order: Any = None

    @classmethod
    def from_cart(cls, cart_total, items, customer_id=None, customer_type=None, request_data=None):
        """Pre-order context built from cart lines (LineItem or dicts)."""
        return cls(
            cart_total=cart_total,
            items=tuple(_as_line_item(item) for item in items),
            customer_id=customer_id,
            customer_type=customer_type,
            request_data=dict(request_data or {}),
            order=None,
        )

    @classmethod
    def from_order(cls, order, request_data=None):
        """Post-order context built from a finalized order and its items."""
        items = [
            LineItem(
                product_id=item.product_id,
                product_type=item.product_type,
                quantity=item.quantity,
                unit_price=item.unit_price_cents,
                line_total=item.subtotal_cents,
            )
            for item in order.items.all()
        ]
        data = {'calculated_cost': order.shipping_cents}
        data.update(request_data or {})
        return cls(
            cart_total=order.subtotal_cents or 0,
            items=tuple(items),
            customer_id=order.customer_id,
            customer_type=order.customer_type,
            request_data=data,
            order=order,
        )

    # ── Queries ───────────────────────────────────────────────

    @property
    def total_quantity(self):
        return sum(item.quantity for item in self.items)

    def has_product(self, product_id):
        return any(item.product_id == product_id for item in self.items)

    def has_any_product(self, product_ids):
        wanted = set(product_ids)
        return any(item.product_id in wanted for item in self.items)

    def items_for_products(self, product_ids):
        wanted = set(product_ids)
        return [item for item in self.items if item.product_id in wanted]

    @property
    def is_pre_order(self):
        return self.order is None

    @property
    def is_post_order(self):
        return self.order is not None

    # ── Adjusted copies ───────────────────────────────────────

    def with_items(self, items):
        items = tuple(items)
        return replace(self, items=items, cart_total=sum(item.total for item in items))

    def with_cart_total(self, cart_total):
        return replace(self, cart_total=cart_total)


def _as_line_item(item):
    if isinstance(item, LineItem):
        return item
    return LineItem(
        product_id=item['product_id'],
        product_type=item.get('product_type', ''),
        quantity=item.get('quantity', 1),
        unit_price=item['unit_price'],
        line_total=item.get('line_total'),
    )


@dataclass(frozen=True)
class DiscountResult:
    campaign_id: int
    campaign_name: str
    discount_type: str
    amount_saved: int
    affected_items: tuple = ()
    metadata: dict = field(default_factory=dict)

    @property
    def is_cart_level(self):
        return bool(self.metadata.get('cart_level'))

    @property
    def is_shipping(self):
        return bool(self.metadata.get('shipping_discount'))

    def to_dict(self):
        return {
            'campaign_id':    self.campaign_id,
            'campaign_name':  self.campaign_name,
            'discount_type':  self.discount_type,
            'amount_saved':   self.amount_saved,
            'affected_items': [dict(item) for item in self.affected_items],
            'metadata':       dict(self.metadata),
        }
