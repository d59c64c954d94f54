from django.contrib import admin
from django.utils.html import format_html
from unfold.admin import ModelAdmin
from unfold.decorators import display
from .models import Category, Product


@admin.register(Category)
class CategoryAdmin(ModelAdmin):
    list_display = ("name", "parent", "is_active")
    prepopulated_fields = {"slug": ("name",)}
    list_filter = ("is_active",)
    search_fields = ("name",)


@admin.register(Product)
class ProductAdmin(ModelAdmin):
    list_display = [
        "name",
        "sku",
        "category_display",
        "product_type",
        "price_display",
        "is_active",
    ]
    list_filter = ["category", "product_type", "is_active"]
    search_fields = ["name", "sku"]
    prepopulated_fields = {"slug": ("name",)}
    filter_horizontal = ["categories"]

    @display(description="Category", ordering="category__name")
    def category_display(self, obj):
        return format_html(
            '<span style="background: #dbeafe; color: #1e40af; padding: 4px 12px; border-radius: 12px; font-size: 12px; font-weight: 500;">{}</span>',
            obj.category.name
        )

    @display(description="Price", ordering="price_cents")
    def price_display(self, obj):
        return f"{obj.price_cents / 100:.2f}"
