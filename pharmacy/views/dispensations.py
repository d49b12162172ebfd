"""
Dispensation endpoints: fulfill a prescription and browse the log.

Only pharmacists may use them.  The authenticated user is converted once
into a :class:`PharmacistIdentity` and handed to the ledger engine.
"""
from __future__ import annotations

from django.conf import settings
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import UserRateThrottle

from pharmacy.permissions import IsPharmacist
from pharmacy.serializers.dispensation import DispensationCreateSerializer, DispensationListQuerySerializer
from pharmacy.services import ledger
from pharmacy.services.dispensations import format_dispensation, get_dispensation, list_dispensations
from pharmacy.services.identity import PharmacistIdentity


class DispenseRateThrottle(UserRateThrottle):
    scope = 'dispense'


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsPharmacist])
@throttle_classes([UserRateThrottle, DispenseRateThrottle])
def dispensations(request):
    if request.method == 'GET':
        q = DispensationListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        page = q.validated_data.get('page', 1)
        page_size = min(q.validated_data.get('pageSize', 20), settings.PHARMACY_MAX_PAGE_SIZE)
        rows, total = list_dispensations(
            inventory_item_id=q.validated_data.get('inventoryItemId'),
            prescription_id=q.validated_data.get('prescriptionId'),
            page=page,
            page_size=page_size,
        )
        return Response({
            'ok': True,
            'data': [format_dispensation(d) for d in rows],
            'pagination': {'total': total, 'page': page, 'pageSize': page_size},
        })
    # POST
    s = DispensationCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    record = ledger.fulfill(
        s.validated_data['prescriptionId'],
        s.validated_data['inventoryItemId'],
        s.validated_data['quantity'],
        PharmacistIdentity.from_user(request.user),
    )
    return Response({'ok': True, 'data': format_dispensation(record)}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPharmacist])
def dispensation_detail(request, pk: str):
    return Response({'ok': True, 'data': format_dispensation(get_dispensation(pk))})
