"""
Inventory store: durable InventoryItem records keyed by id, unique by name.

Administrative create/update/delete live here together with
``decrement_stock``, the only write path for ``current_stock`` besides an
explicit administrative edit.  ``decrement_stock`` refuses to run outside
an atomic block; the ledger engine is its caller.
"""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

from django.db import IntegrityError, transaction
from django.db.models import F, ProtectedError
from django.utils import timezone

from pharmacy.exceptions import DuplicateName, InsufficientStock, InvalidInput, ItemNotFound, ReferentialConflict
from pharmacy.models import InventoryItem
from pharmacy.services.audit import log_action
from pharmacy.services.validation import is_whole_number, parse_id

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('name', 'unit', 'description', 'current_stock', 'reorder_point', 'price_per_unit', 'supplier')
REQUIRED_FIELDS = ('name', 'unit', 'price_per_unit')
CENT = Decimal('0.01')
MAX_PRICE = Decimal('100000000')
# upper bound of the integer stock columns
MAX_COUNT = 2147483647


def _clean_text(value, field, errors, *, required):
    if value is None:
        if required:
            errors[field] = ['This field may not be blank.']
        return ''
    if not isinstance(value, str):
        errors[field] = ['Must be a string.']
        return None
    value = value.strip()
    if required and not value:
        errors[field] = ['This field may not be blank.']
    return value


def _clean_count(value, field, errors):
    if not is_whole_number(value):
        errors[field] = ['Must be a whole number.']
        return None
    if value < 0:
        errors[field] = ['Must be zero or greater.']
    elif value > MAX_COUNT:
        errors[field] = [f'Must be at most {MAX_COUNT}.']
    return value


def _clean_price(value, errors):
    if isinstance(value, bool) or value is None:
        errors['price_per_unit'] = ['Must be a number.']
        return None
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        errors['price_per_unit'] = ['Must be a number.']
        return None
    if not price.is_finite():
        errors['price_per_unit'] = ['Must be a number.']
        return None
    if price >= MAX_PRICE:
        errors['price_per_unit'] = ['Price is too large.']
        return None
    price = price.quantize(CENT)
    if price <= 0:
        errors['price_per_unit'] = ['Price must be a positive number.']
    return price


def clean_item_fields(fields: dict, *, partial: bool) -> dict:
    """Validate item fields and return them normalised.

    With ``partial=False`` the required fields must be present; missing
    optional fields are left to the model defaults.
    """
    errors: dict[str, list[str]] = {}
    unknown = sorted(set(fields) - set(EDITABLE_FIELDS))
    for field in unknown:
        errors[field] = ['Unknown field.']
    if not partial:
        for field in REQUIRED_FIELDS:
            if field not in fields:
                errors[field] = ['This field is required.']

    cleaned = {}
    for field, value in fields.items():
        if field in unknown:
            continue
        if field in ('name', 'unit'):
            cleaned[field] = _clean_text(value, field, errors, required=True)
        elif field in ('description', 'supplier'):
            cleaned[field] = _clean_text(value, field, errors, required=False)
        elif field in ('current_stock', 'reorder_point'):
            cleaned[field] = _clean_count(value, field, errors)
        elif field == 'price_per_unit':
            cleaned[field] = _clean_price(value, errors)

    if errors:
        raise InvalidInput('Invalid inventory data.', details=errors)
    return cleaned


def _audit_value(value):
    return str(value) if isinstance(value, Decimal) else value


def get_item(item_id) -> InventoryItem:
    pk = parse_id(item_id, 'inventoryItemId')
    item = InventoryItem.objects.filter(pk=pk).first()
    if item is None:
        raise ItemNotFound(pk)
    return item


def create_item(fields: dict, *, user=None) -> InventoryItem:
    cleaned = clean_item_fields(fields, partial=False)
    try:
        with transaction.atomic():
            if InventoryItem.objects.filter(name=cleaned['name']).exists():
                raise DuplicateName()
            item = InventoryItem.objects.create(**cleaned)
            log_action(user=user, action='inventory_create', object_type='inventory_item', object_id=item.pk,
                       detail={'name': item.name, 'currentStock': item.current_stock})
    except IntegrityError as exc:
        # lost a race with a concurrent create of the same name
        raise DuplicateName() from exc
    logger.info('inventory item created id=%s name=%r stock=%s', item.pk, item.name, item.current_stock)
    return item


def update_item(item_id, fields: dict, *, user=None) -> InventoryItem:
    pk = parse_id(item_id, 'inventoryItemId')
    cleaned = clean_item_fields(fields, partial=True)
    if not cleaned:
        raise InvalidInput('At least one field must be provided for update.')
    try:
        with transaction.atomic():
            item = InventoryItem.objects.select_for_update().filter(pk=pk).first()
            if item is None:
                raise ItemNotFound(pk)
            if 'name' in cleaned and InventoryItem.objects.filter(name=cleaned['name']).exclude(pk=pk).exists():
                raise DuplicateName()
            changes = {}
            for field, value in cleaned.items():
                old = getattr(item, field)
                if old != value:
                    changes[field] = [_audit_value(old), _audit_value(value)]
                setattr(item, field, value)
            item.save(update_fields=[*cleaned, 'updated_at'])
            if changes:
                log_action(user=user, action='inventory_update', object_type='inventory_item', object_id=item.pk,
                           detail={'changes': changes})
    except IntegrityError as exc:
        raise DuplicateName() from exc
    logger.info('inventory item updated id=%s fields=%s', item.pk, sorted(cleaned))
    return item


def delete_item(item_id, *, user=None) -> None:
    pk = parse_id(item_id, 'inventoryItemId')
    try:
        with transaction.atomic():
            item = InventoryItem.objects.select_for_update().filter(pk=pk).first()
            if item is None:
                raise ItemNotFound(pk)
            if item.dispensations.exists():
                raise ReferentialConflict()
            name = item.name
            item.delete()
            log_action(user=user, action='inventory_delete', object_type='inventory_item', object_id=pk,
                       detail={'name': name})
    except (ProtectedError, IntegrityError) as exc:
        raise ReferentialConflict() from exc
    logger.info('inventory item deleted id=%s name=%r', pk, name)


def decrement_stock(item_id, amount: int) -> InventoryItem:
    """Remove ``amount`` units from stock; caller owns the transaction.

    The update is conditional on ``current_stock >= amount`` so the row can
    never go negative, whatever the isolation level of the caller.
    """
    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError('decrement_stock must run inside transaction.atomic()')
    if not is_whole_number(amount) or amount < 1:
        raise InvalidInput('Quantity must be a whole number of at least 1.', details={'quantity': [str(amount)]})
    pk = parse_id(item_id, 'inventoryItemId')
    updated = InventoryItem.objects.filter(pk=pk, current_stock__gte=amount).update(
        current_stock=F('current_stock') - amount,
        updated_at=timezone.now(),
    )
    item = InventoryItem.objects.filter(pk=pk).first()
    if item is None:
        raise ItemNotFound(pk)
    if not updated:
        raise InsufficientStock(item.name, item.current_stock, amount)
    return item


def format_item(item: InventoryItem) -> dict:
    return {
        'id': str(item.id),
        'name': item.name,
        'unit': item.unit,
        'description': item.description,
        'currentStock': item.current_stock,
        'reorderPoint': item.reorder_point,
        'pricePerUnit': str(item.price_per_unit),
        'supplier': item.supplier,
        'lowStock': item.is_low_stock,
        'createdAt': item.created_at.isoformat() if item.created_at else None,
        'updatedAt': item.updated_at.isoformat() if item.updated_at else None,
    }
