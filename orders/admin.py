# orders/admin.py
from django.contrib import admin
from unfold.admin import ModelAdmin
from unfold.decorators import display
from .models import Order, OrderItem, OrderStatusHistory


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0


class OrderStatusHistoryInline(admin.TabularInline):
    model = OrderStatusHistory
    extra = 0


@admin.register(Order)
class OrderAdmin(ModelAdmin):
    list_display = ["order_number", "customer", "status", "discount_display", "total_display", "created_at"]
    list_filter = ["status"]
    search_fields = ["order_number", "customer__email"]
    inlines = [OrderItemInline, OrderStatusHistoryInline]

    @display(description="Discount", ordering="discount_cents")
    def discount_display(self, obj):
        return f"{obj.discount_cents / 100:.2f}"

    @display(description="Total", ordering="total_cents")
    def total_display(self, obj):
        return f"{obj.total_cents / 100:.2f} {obj.currency}"
