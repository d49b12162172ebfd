from decimal import Decimal
import uuid

import pytest
from django.db import transaction

from pharmacy.exceptions import DuplicateName, InvalidInput, ItemNotFound, ReferentialConflict, InsufficientStock
from pharmacy.models import AuditEvent, InventoryItem
from pharmacy.services import inventory, ledger

pytestmark = pytest.mark.django_db


def test_create_item_defaults_and_audit(admin_user):
    item = inventory.create_item(
        {'name': '  Ibuprofen 400mg ', 'unit': 'tablet', 'price_per_unit': Decimal('0.129')},
        user=admin_user,
    )
    assert item.name == 'Ibuprofen 400mg'
    assert item.current_stock == 0
    assert item.reorder_point == 10
    assert item.price_per_unit == Decimal('0.13')
    ev = AuditEvent.objects.get(action='inventory_create')
    assert ev.object_id == str(item.pk)
    assert ev.user == admin_user


def test_create_item_duplicate_name(amoxicillin):
    with pytest.raises(DuplicateName):
        inventory.create_item({'name': 'Amoxicillin 500mg', 'unit': 'capsule', 'price_per_unit': 1})
    assert InventoryItem.objects.count() == 1


@pytest.mark.parametrize('fields, bad', [
    ({'unit': 'tablet', 'price_per_unit': 1}, 'name'),
    ({'name': 'X', 'unit': '   ', 'price_per_unit': 1}, 'unit'),
    ({'name': 'X', 'unit': 'tablet', 'price_per_unit': 0}, 'price_per_unit'),
    ({'name': 'X', 'unit': 'tablet', 'price_per_unit': 'NaN'}, 'price_per_unit'),
    ({'name': 'X', 'unit': 'tablet', 'price_per_unit': 1, 'current_stock': -1}, 'current_stock'),
    ({'name': 'X', 'unit': 'tablet', 'price_per_unit': 1, 'reorder_point': 2.5}, 'reorder_point'),
    ({'name': 'X', 'unit': 'tablet', 'price_per_unit': 1, 'current_stock': True}, 'current_stock'),
    ({'name': 'X', 'unit': 'tablet', 'price_per_unit': 1, 'current_stock': 10 ** 19}, 'current_stock'),
    ({'name': 'X', 'unit': 'tablet', 'price_per_unit': 1, 'reorder_point': 2 ** 31}, 'reorder_point'),
    ({'name': 'X', 'unit': 'tablet', 'price_per_unit': 1, 'colour': 'red'}, 'colour'),
])
def test_create_item_rejects_invalid_fields(fields, bad):
    with pytest.raises(InvalidInput) as exc:
        inventory.create_item(fields)
    assert bad in exc.value.details
    assert not InventoryItem.objects.exists()


def test_update_item_changes_fields_and_records_diff(amoxicillin, admin_user):
    item = inventory.update_item(str(amoxicillin.pk), {'current_stock': 80, 'supplier': 'Other'}, user=admin_user)
    assert item.current_stock == 80
    amoxicillin.refresh_from_db()
    assert amoxicillin.supplier == 'Other'
    ev = AuditEvent.objects.get(action='inventory_update')
    assert ev.detail['changes']['current_stock'] == [50, 80]


def test_update_item_rejects_empty_and_unknown(amoxicillin):
    with pytest.raises(InvalidInput):
        inventory.update_item(amoxicillin.pk, {})
    with pytest.raises(ItemNotFound):
        inventory.update_item(uuid.uuid4(), {'unit': 'tablet'})
    with pytest.raises(InvalidInput):
        inventory.update_item('not-a-uuid', {'unit': 'tablet'})


def test_update_item_duplicate_name(amoxicillin):
    other = inventory.create_item({'name': 'Paracetamol 500mg', 'unit': 'tablet', 'price_per_unit': '0.08'})
    with pytest.raises(DuplicateName):
        inventory.update_item(other.pk, {'name': 'Amoxicillin 500mg'})
    # renaming to its own name is not a conflict
    assert inventory.update_item(other.pk, {'name': 'Paracetamol 500mg'}).name == 'Paracetamol 500mg'


def test_delete_item_without_history(amoxicillin):
    inventory.delete_item(amoxicillin.pk)
    assert not InventoryItem.objects.exists()
    assert AuditEvent.objects.filter(action='inventory_delete', object_id=str(amoxicillin.pk)).exists()
    with pytest.raises(ItemNotFound):
        inventory.delete_item(amoxicillin.pk)


def test_delete_item_with_dispensations_is_refused(amoxicillin, prescription, identity):
    ledger.fulfill(prescription.pk, amoxicillin.pk, 5, identity)
    with pytest.raises(ReferentialConflict):
        inventory.delete_item(amoxicillin.pk)
    assert InventoryItem.objects.filter(pk=amoxicillin.pk).exists()


@pytest.mark.django_db(transaction=True)
def test_decrement_stock_requires_transaction(amoxicillin):
    with pytest.raises(RuntimeError):
        inventory.decrement_stock(amoxicillin.pk, 1)
    amoxicillin.refresh_from_db()
    assert amoxicillin.current_stock == 50


def test_decrement_stock_never_goes_negative(amoxicillin):
    with transaction.atomic():
        item = inventory.decrement_stock(amoxicillin.pk, 50)
    assert item.current_stock == 0
    with pytest.raises(InsufficientStock) as exc:
        with transaction.atomic():
            inventory.decrement_stock(amoxicillin.pk, 1)
    assert exc.value.available == 0
    amoxicillin.refresh_from_db()
    assert amoxicillin.current_stock == 0


def test_format_item_is_camel_case(amoxicillin):
    data = inventory.format_item(amoxicillin)
    assert data['currentStock'] == 50
    assert data['reorderPoint'] == 20
    assert data['pricePerUnit'] == '0.45'
    assert data['lowStock'] is False


def test_update_item_rejects_counts_beyond_column_range(amoxicillin):
    with pytest.raises(InvalidInput) as exc:
        inventory.update_item(amoxicillin.pk, {'reorder_point': 10 ** 19})
    assert 'reorder_point' in exc.value.details
    assert inventory.update_item(amoxicillin.pk, {'current_stock': inventory.MAX_COUNT}).current_stock == inventory.MAX_COUNT
