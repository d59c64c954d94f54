# cart/admin.py
from django.contrib import admin
from unfold.admin import ModelAdmin
from .models import Cart, CartItem


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0


@admin.register(Cart)
class CartAdmin(ModelAdmin):
    list_display = ("id", "customer", "session_key", "created_at")
    inlines = [CartItemInline]
