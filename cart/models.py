# cart/models.py
from django.db import models
from django.conf import settings
from catalog.models import Product


class Cart(models.Model):
    """Shopping cart"""
    customer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, null=True, blank=True, related_name='carts')
    session_key = models.CharField(max_length=255, db_index=True, null=True, blank=True)  # For guest users

    # Currency
    currency = models.CharField(max_length=3, default='QAR')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'cart_carts'
        indexes = [
            models.Index(fields=['customer']),
            models.Index(fields=['session_key']),
        ]

    def subtotal_cents(self):
        return sum(item.line_total() for item in self.items.all())

    def item_count(self):
        return sum(item.quantity for item in self.items.all())


class CartItem(models.Model):
    """Individual cart line"""
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.CASCADE)

    quantity = models.PositiveIntegerField(default=1)

    # Unit price in cents at time of adding
    unit_price_cents = models.PositiveIntegerField()

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'cart_items'
        ordering = ['id']
        indexes = [
            models.Index(fields=['cart']),
        ]

    def line_total(self):
        return self.unit_price_cents * self.quantity
