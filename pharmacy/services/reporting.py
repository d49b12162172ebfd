from datetime import timedelta
from decimal import Decimal
from typing import Optional

from django.db.models import Count, DecimalField, ExpressionWrapper, F, Q, Sum
from django.utils import timezone

from pharmacy.exceptions import InvalidInput
from pharmacy.models import Dispensation, InventoryItem

ITEM_ORDERINGS = ('name', '-name', 'current_stock', '-current_stock', 'updated_at', '-updated_at')


def list_items(order_by: str = 'name', *, q: Optional[str] = None) -> list[InventoryItem]:
    if order_by not in ITEM_ORDERINGS:
        raise InvalidInput(f'Unsupported ordering: {order_by}', details={'orderBy': list(ITEM_ORDERINGS)})
    qs = InventoryItem.objects.all()
    if q:
        qs = qs.filter(Q(name__icontains=q) | Q(supplier__icontains=q))
    return list(qs.order_by(order_by, 'id'))


def list_low_stock() -> list[InventoryItem]:
    return list(InventoryItem.objects.filter(current_stock__lte=F('reorder_point')).order_by('name', 'id'))


def inventory_summary(now=None) -> dict:
    now = now or timezone.now()
    stock_value = ExpressionWrapper(F('current_stock') * F('price_per_unit'),
                                    output_field=DecimalField(max_digits=20, decimal_places=2))
    totals = InventoryItem.objects.aggregate(
        items=Count('id'),
        low_stock=Count('id', filter=Q(current_stock__lte=F('reorder_point'))),
        out_of_stock=Count('id', filter=Q(current_stock=0)),
        stock_value=Sum(stock_value),
    )
    recent = Dispensation.objects.filter(date_dispensed__gte=now - timedelta(hours=24)).aggregate(
        count=Count('id'), units=Sum('quantity'),
    )
    return {
        'items': totals['items'],
        'lowStock': totals['low_stock'],
        'outOfStock': totals['out_of_stock'],
        'stockValue': str((totals['stock_value'] or Decimal('0')).quantize(Decimal('0.01'))),
        'dispensedLast24h': recent['count'],
        'unitsDispensedLast24h': recent['units'] or 0,
        'generatedAt': now.isoformat(),
    }
