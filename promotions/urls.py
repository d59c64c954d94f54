# promotions/urls.py
from django.urls import path
from . import views

app_name = 'promotions'

urlpatterns = [
    path('', views.active_promotions, name='promotions'),
    path('products/', views.discounted_products, name='discounted_products'),
    path('products/<int:product_id>/', views.product_pricing, name='product_pricing'),
    path('my-discounts/', views.my_discounts, name='my_discounts'),
]
