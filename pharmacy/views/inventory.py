"""
Inventory item endpoints.

Any authenticated user may read the catalogue; creating, editing and
deleting items is reserved to pharmacy staff.  Stock leaves inventory only
through the dispensation endpoint.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from pharmacy.permissions import ReadOnlyOrPharmacyStaff
from pharmacy.serializers.inventory import (
    InventoryCreateSerializer,
    InventoryListQuerySerializer,
    InventoryUpdateSerializer,
)
from pharmacy.services import inventory, reporting
from pharmacy.services.inventory import format_item


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, ReadOnlyOrPharmacyStaff])
def inventory_list(request):
    if request.method == 'GET':
        q = InventoryListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        items = reporting.list_items(q.validated_data.get('orderBy', 'name'), q=q.validated_data.get('q'))
        return Response({'ok': True, 'data': [format_item(i) for i in items]})
    # POST
    s = InventoryCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    item = inventory.create_item(s.to_fields(), user=request.user)
    return Response({'ok': True, 'data': format_item(item)}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_low_stock(request):
    items = reporting.list_low_stock()
    return Response({'ok': True, 'data': [format_item(i) for i in items]})


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, ReadOnlyOrPharmacyStaff])
def inventory_detail(request, pk: str):
    if request.method == 'GET':
        return Response({'ok': True, 'data': format_item(inventory.get_item(pk))})
    if request.method == 'PATCH':
        s = InventoryUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        item = inventory.update_item(pk, s.to_fields(), user=request.user)
        return Response({'ok': True, 'data': format_item(item)})
    # DELETE
    inventory.delete_item(pk, user=request.user)
    return Response(status=status.HTTP_204_NO_CONTENT)
