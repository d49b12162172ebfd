"""
URL mappings for the pharmacy API.

Paths mirror the front-end routes (``/api/pharmacy/...``) and
omit trailing slashes.
"""
from django.urls import path, include

from .views import health
from .views.dashboard import pharmacy_dashboard
from .views.dispensations import dispensations, dispensation_detail
from .views.inventory import inventory_list, inventory_low_stock, inventory_detail


urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    # Inventory
    path('api/pharmacy/inventory', inventory_list, name='inventory-list'),
    path('api/pharmacy/inventory/low-stock', inventory_low_stock, name='inventory-low-stock'),
    path('api/pharmacy/inventory/<str:pk>', inventory_detail, name='inventory-detail'),
    # Dispensations
    path('api/pharmacy/dispensations', dispensations, name='dispensations'),
    path('api/pharmacy/dispensations/<str:pk>', dispensation_detail, name='dispensation-detail'),
    # Dashboard
    path('api/pharmacy/dashboard', pharmacy_dashboard, name='pharmacy-dashboard'),
]
