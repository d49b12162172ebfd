"""
Dispensation record log: append-only history of fulfilled prescriptions.

``append`` is only called by :func:`pharmacy.services.ledger.fulfill`
inside its transaction.  Reads are plain queries outside any write
transaction.
"""
from typing import Optional

from django.conf import settings
from django.utils import timezone

from pharmacy.exceptions import NotFound
from pharmacy.models import Dispensation, InventoryItem, Prescription
from pharmacy.services.validation import parse_id


def append(*, prescription: Prescription, inventory_item: InventoryItem, quantity: int, dispensed_by: str) -> Dispensation:
    return Dispensation.objects.create(
        prescription=prescription,
        inventory_item=inventory_item,
        quantity=quantity,
        dispensed_by=dispensed_by,
        date_dispensed=timezone.now(),
    )


def get_dispensation(dispensation_id) -> Dispensation:
    pk = parse_id(dispensation_id, 'dispensationId')
    row = Dispensation.objects.select_related('prescription', 'inventory_item').filter(pk=pk).first()
    if row is None:
        raise NotFound(f'Dispensation not found: {pk}', code='dispensation_not_found')
    return row


def list_dispensations(*, inventory_item_id=None, prescription_id=None, page: int = 1,
                       page_size: Optional[int] = 20):
    """Return ``(rows, total)`` newest first, optionally filtered."""
    qs = Dispensation.objects.all()
    if inventory_item_id:
        qs = qs.filter(inventory_item_id=parse_id(inventory_item_id, 'inventoryItemId'))
    if prescription_id:
        qs = qs.filter(prescription_id=parse_id(prescription_id, 'prescriptionId'))

    total = qs.count()
    qs = qs.select_related('prescription', 'inventory_item').order_by('-date_dispensed', '-id')
    if page_size:
        max_size = getattr(settings, 'PHARMACY_MAX_PAGE_SIZE', 100)
        page = max(1, int(page or 1))
        page_size = min(max_size, max(1, int(page_size)))
        start = (page - 1) * page_size
        qs = qs[start:start + page_size]
    return list(qs), total


def format_dispensation(d: Dispensation) -> dict:
    return {
        'id': str(d.id),
        'prescriptionId': str(d.prescription_id),
        'inventoryItemId': str(d.inventory_item_id),
        'quantity': d.quantity,
        'dispensedBy': d.dispensed_by,
        'dateDispensed': d.date_dispensed.isoformat(),
        'prescription': {
            'medicationName': d.prescription.medication_name,
            'patientId': d.prescription.patient_id,
        },
        'inventoryItem': {
            'name': d.inventory_item.name,
            'unit': d.inventory_item.unit,
        },
    }
