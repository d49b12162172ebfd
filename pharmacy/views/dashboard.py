"""
Pharmacy dashboard endpoint.

Provides a high level overview of stock: item counts, low-stock and
out-of-stock totals, recent dispensing activity and the current low-stock
list.  Only pharmacy staff may access it.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from pharmacy.permissions import IsPharmacyStaff
from pharmacy.services.inventory import format_item
from pharmacy.services.reporting import inventory_summary, list_low_stock


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPharmacyStaff])
def pharmacy_dashboard(request):
    return Response({
        'ok': True,
        'data': inventory_summary(),
        'lowStockItems': [format_item(i) for i in list_low_stock()],
    })
