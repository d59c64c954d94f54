# promotions/enums.py
from django.db import models


class DiscountType(models.TextChoices):
    PERCENTAGE = 'percentage', 'Percentage'
    FIXED_AMOUNT = 'fixed_amount', 'Fixed Amount'
    BOGO = 'bogo', 'Buy One Get One'


class ConditionType(models.TextChoices):
    MIN_CART_VALUE = 'min_cart_value', 'Minimum Cart Value'
    MIN_QUANTITY = 'min_quantity', 'Minimum Quantity'
    CUSTOMER_SEGMENT = 'customer_segment', 'Customer Segment'
    HAS_PRODUCT = 'has_product', 'Has Product'
    FIRST_ORDER = 'first_order', 'First Order'
    DATE_RANGE = 'date_range', 'Date Range'


class ConditionOperator(models.TextChoices):
    GREATER_THAN_OR_EQUAL = '>=', '>='
    GREATER_THAN = '>', '>'
    LESS_THAN_OR_EQUAL = '<=', '<='
    LESS_THAN = '<', '<'
    EQUALS = '==', '=='
    NOT_EQUALS = '!=', '!='
    IN = 'in', 'In'
    NOT_IN = 'not_in', 'Not In'


class LogicOperator(models.TextChoices):
    AND = 'AND', 'And'
    OR = 'OR', 'Or'


class TargetType(models.TextChoices):
    PRODUCT = 'product', 'Product'
    CATEGORY = 'category', 'Category'
    SHIPMENT = 'shipment', 'Shipment'
    SHOPCART = 'shopcart', 'Shop Cart'


class TargetAction(models.TextChoices):
    APPLY_TO = 'apply_to', 'Apply To'     # discount applies to these items
    REQUIRES = 'requires', 'Requires'     # must have these items to use discount
    EXCLUDES = 'excludes', 'Excludes'     # cannot have these items to use discount


class OrderableType(models.TextChoices):
    ORDER = 'order', 'Order'


class DiscountScope(models.TextChoices):
    PRODUCTS = 'products', 'Products'
    SHIPPING = 'shipping', 'Shipping'
    CART = 'cart', 'Cart'
    ALL = 'all', 'All'

    @property
    def includes_products(self):
        return self in (DiscountScope.PRODUCTS, DiscountScope.ALL)

    @property
    def includes_shipping(self):
        return self in (DiscountScope.SHIPPING, DiscountScope.ALL)

    @property
    def includes_cart(self):
        return self in (DiscountScope.CART, DiscountScope.ALL)
