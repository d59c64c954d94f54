# promotions/admin.py
from django.contrib import admin
from django.utils.html import format_html
from unfold.admin import ModelAdmin
from unfold.decorators import display

from .enums import DiscountType
from .models import DiscountCampaign, DiscountCondition, DiscountTarget, DiscountUsage


class DiscountConditionInline(admin.TabularInline):
    model = DiscountCondition
    extra = 0


class DiscountTargetInline(admin.TabularInline):
    model = DiscountTarget
    extra = 0


@admin.register(DiscountCampaign)
class DiscountCampaignAdmin(ModelAdmin):
    list_display = [
        "name",
        "code",
        "discount_display",
        "priority",
        "is_stackable",
        "usage_display",
        "status_display",
        "start_date",
        "end_date",
    ]
    list_filter = ["discount_type", "is_active", "is_stackable"]
    search_fields = ["name", "code"]
    readonly_fields = ["current_uses", "created_at", "updated_at"]
    inlines = [DiscountConditionInline, DiscountTargetInline]

    @display(description="Discount", ordering="discount_value")
    def discount_display(self, obj):
        if obj.discount_type == DiscountType.PERCENTAGE:
            return f"{obj.discount_value}%"
        if obj.discount_type == DiscountType.FIXED_AMOUNT:
            return f"{obj.discount_value / 100:.2f}"
        return obj.get_discount_type_display()

    @display(description="Uses", ordering="current_uses")
    def usage_display(self, obj):
        if obj.max_uses_total is None:
            return obj.current_uses
        return f"{obj.current_uses} / {obj.max_uses_total}"

    @display(description="Status")
    def status_display(self, obj):
        if obj.is_running():
            color, label = "#16a34a", "Running"
        elif obj.is_active:
            color, label = "#ca8a04", "Scheduled"
        else:
            color, label = "#6b7280", "Inactive"
        return format_html(
            '<span style="background: {}; color: white; padding: 4px 12px; border-radius: 12px; font-size: 12px;">{}</span>',
            color, label
        )


@admin.register(DiscountUsage)
class DiscountUsageAdmin(ModelAdmin):
    list_display = ["campaign_id", "customer_id", "orderable_type", "orderable_id", "discount_amount_applied", "used_at"]
    list_filter = ["orderable_type"]
    search_fields = ["orderable_id", "customer_id"]
    readonly_fields = [
        "campaign", "customer_id", "orderable_type", "orderable_id",
        "discount_amount_applied", "used_at", "metadata",
    ]

    def has_add_permission(self, request):
        return False
