# cart/urls.py
from django.urls import path
from . import views

app_name = 'cart'

urlpatterns = [
    path('add/', views.add_to_cart, name='add_to_cart'),
    path('update/<int:item_id>/<str:action>/', views.update_cart_quantity, name='update_cart_quantity'),
    path('remove/<int:item_id>/', views.remove_from_cart, name='remove_from_cart'),

    # AJAX Endpoints
    path('api/summary/', views.get_cart_summary, name='get_cart_summary'),
    path('api/shipping/', views.shipping_quote, name='shipping_quote'),
]
