from django.db import models
from django.core.validators import MinValueValidator


class Category(models.Model):
    """Main product categories"""
    name = models.CharField(max_length=100)
    slug = models.SlugField(unique=True, db_index=True)
    description = models.TextField(blank=True)
    parent = models.ForeignKey('self', on_delete=models.CASCADE, null=True, blank=True, related_name='subcategories')
    display_order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'catalog_categories'
        verbose_name_plural = 'Categories'
        ordering = ['display_order', 'name']
        indexes = [
            models.Index(fields=['slug']),
            models.Index(fields=['is_active']),
        ]

    def __str__(self):
        return self.name


class Product(models.Model):
    """Base product model for everything sold in the store"""

    PRODUCT_TYPES = [
        ('sunglasses', 'Sunglasses'),
        ('eyeglasses', 'Eyeglasses'),
        ('contact_lenses', 'Contact Lenses'),
        ('accessories', 'Accessories'),
        ('reading_glasses', 'Reading Glasses'),
    ]

    sku = models.CharField(max_length=100, unique=True, db_index=True)
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=300, unique=True, db_index=True)

    product_type = models.CharField(max_length=50, choices=PRODUCT_TYPES, db_index=True)

    # Primary category plus any extra listing categories
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='products')
    categories = models.ManyToManyField(Category, blank=True, related_name='listed_products')

    # Pricing (integer cents)
    price_cents = models.PositiveIntegerField(validators=[MinValueValidator(0)])

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'catalog_products'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['sku']),
            models.Index(fields=['slug']),
            models.Index(fields=['product_type', 'is_active']),
        ]

    def __str__(self):
        return self.name
