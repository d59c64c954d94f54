# orders/models.py
from django.db import models
from django.conf import settings
from catalog.models import Product


class Order(models.Model):
    """Main order model"""
    ORDER_STATUS = [
        ('pending', 'Pending'),
        ('confirmed', 'Confirmed'),
        ('processing', 'Processing'),
        ('shipped', 'Shipped'),
        ('delivered', 'Delivered'),
        ('cancelled', 'Cancelled'),
        ('refunded', 'Refunded'),
    ]

    # Discount usages refer to customers by this type
    CUSTOMER_TYPE = 'user'

    # Order Identifiers
    order_number = models.CharField(max_length=50, unique=True, db_index=True)
    customer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='orders')

    # Status
    status = models.CharField(max_length=50, choices=ORDER_STATUS, default='pending', db_index=True)

    # Pricing, all in cents
    currency = models.CharField(max_length=3, default='QAR')
    subtotal_cents = models.PositiveIntegerField()        # after product discounts
    shipping_cents = models.PositiveIntegerField(default=0)  # before shipping discounts
    discount_cents = models.PositiveIntegerField(default=0)  # product + cart + shipping
    total_cents = models.PositiveIntegerField()

    customer_notes = models.TextField(blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['customer', '-created_at']),
            models.Index(fields=['status', '-created_at']),
        ]

    def __str__(self):
        return self.order_number

    @property
    def customer_type(self):
        return self.CUSTOMER_TYPE

    @property
    def can_be_cancelled(self):
        return self.status in ('pending', 'confirmed')


class OrderItem(models.Model):
    """Individual items within an order"""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')

    # Product snapshot
    product = models.ForeignKey(Product, on_delete=models.PROTECT)
    product_name = models.CharField(max_length=255)
    product_sku = models.CharField(max_length=100)
    product_type = models.CharField(max_length=20)

    quantity = models.PositiveIntegerField()
    unit_price_cents = models.PositiveIntegerField()

    # Totals
    discount_cents = models.PositiveIntegerField(default=0)
    subtotal_cents = models.PositiveIntegerField()  # unit price x quantity - discount

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'order_items'
        ordering = ['id']
        indexes = [
            models.Index(fields=['order']),
        ]


class OrderStatusHistory(models.Model):
    """Track order status changes"""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='status_history')
    from_status = models.CharField(max_length=50, blank=True)
    to_status = models.CharField(max_length=50)

    notes = models.TextField(blank=True)
    changed_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'order_status_history'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['order', '-created_at']),
        ]
