"""
Ledger engine: atomically fulfill a prescription against inventory.

``fulfill`` is the single place where stock leaves the pharmacy.  Within
one ``transaction.atomic()`` block it locks the stock row, checks that the
requested quantity is available, decrements it and appends the
Dispensation.  Either both writes commit or neither does.

Per-item serialization comes from the database, never from process-local
locks, because several workers may serve requests at once:

* PostgreSQL/MySQL: ``SELECT ... FOR UPDATE`` on the item row, so a second
  fulfill against the same item waits until the first commits and then
  reads the post-decrement stock.
* SQLite: no row locks; the connection opens every transaction with
  ``BEGIN IMMEDIATE`` (see settings), which takes the database write lock
  up front.

The decrement itself is a conditional update, so stock cannot go negative
even if the lock were missing.  Rejections are deterministic and raised
as is; database availability errors become
:class:`TransientInfrastructureFailure`.  Nothing here retries: a retried
fulfillment that had in fact committed would dispense twice.
"""
from __future__ import annotations

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import InterfaceError, OperationalError, transaction

from pharmacy.exceptions import InsufficientStock, InvalidInput, ItemNotFound, NotFound, TransientInfrastructureFailure
from pharmacy.models import Dispensation, InventoryItem, Prescription, User
from pharmacy.services import dispensations, inventory
from pharmacy.services.audit import log_action
from pharmacy.services.identity import PharmacistIdentity
from pharmacy.services.validation import is_whole_number, parse_id

logger = logging.getLogger(__name__)

INVENTORY_GROUP = 'pharmacy.inventory'


def _validate(prescription_id, inventory_item_id, quantity, dispensed_by):
    errors = {}
    if not is_whole_number(quantity):
        errors['quantity'] = ['Quantity must be a whole number.']
    elif quantity < 1:
        errors['quantity'] = ['Dispensed quantity must be at least 1.']
    rx_pk = item_pk = None
    try:
        rx_pk = parse_id(prescription_id, 'prescriptionId')
    except InvalidInput:
        errors['prescriptionId'] = ['Invalid Prescription ID format.']
    try:
        item_pk = parse_id(inventory_item_id, 'inventoryItemId')
    except InvalidInput:
        errors['inventoryItemId'] = ['Invalid Inventory Item ID format.']
    if errors:
        raise InvalidInput('Invalid request data.', details=errors)
    if not isinstance(dispensed_by, PharmacistIdentity) or dispensed_by.role != User.ROLE_PHARMACIST:
        raise InvalidInput('A verified pharmacist identity is required.', details={'dispensedBy': ['Not a pharmacist.']})
    return rx_pk, item_pk


def fulfill(prescription_id, inventory_item_id, quantity, dispensed_by: PharmacistIdentity) -> Dispensation:
    """Dispense ``quantity`` units of an item against a prescription.

    Returns the new Dispensation with ``prescription`` and
    ``inventory_item`` loaded.  Raises ``InvalidInput``, ``ItemNotFound``,
    ``NotFound`` (unknown prescription), ``InsufficientStock`` or
    ``TransientInfrastructureFailure``; in every failure case no stock
    change and no dispensation is left behind.
    """
    rx_pk, item_pk = _validate(prescription_id, inventory_item_id, quantity, dispensed_by)
    try:
        with transaction.atomic():
            item = InventoryItem.objects.select_for_update().filter(pk=item_pk).first()
            if item is None:
                raise ItemNotFound(item_pk)
            prescription = Prescription.objects.filter(pk=rx_pk).first()
            if prescription is None:
                raise NotFound(f'Prescription not found: {rx_pk}', code='prescription_not_found')
            if item.current_stock < quantity:
                raise InsufficientStock(item.name, item.current_stock, quantity)

            item = inventory.decrement_stock(item.pk, quantity)
            record = dispensations.append(
                prescription=prescription,
                inventory_item=item,
                quantity=quantity,
                dispensed_by=dispensed_by.user_id,
            )
            log_action(
                actor=dispensed_by.user_id,
                action='dispense',
                object_type='dispensation',
                object_id=record.pk,
                detail={'inventoryItemId': str(item.pk), 'prescriptionId': str(rx_pk),
                        'quantity': quantity, 'stockAfter': item.current_stock},
            )
            transaction.on_commit(lambda: broadcast_stock(item))
    except InsufficientStock as exc:
        logger.warning('fulfill rejected: item=%s rx=%s requested=%s available=%s',
                       item_pk, rx_pk, exc.requested, exc.available)
        raise
    except NotFound as exc:
        logger.warning('fulfill rejected: %s', exc.detail)
        raise
    except (OperationalError, InterfaceError) as exc:
        logger.error('fulfill failed, transaction rolled back: item=%s rx=%s', item_pk, rx_pk, exc_info=True)
        raise TransientInfrastructureFailure() from exc

    logger.info('dispensed %s x %s (%s) for rx=%s by=%s, stock now %s',
                quantity, item.name, item.pk, rx_pk, dispensed_by.user_id, item.current_stock)
    return record


def broadcast_stock(item: InventoryItem) -> None:
    """Push the committed stock level to dashboard websocket clients."""
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    payload = {
        'type': 'inventory.stock',
        'itemId': str(item.pk),
        'name': item.name,
        'currentStock': item.current_stock,
        'reorderPoint': item.reorder_point,
        'lowStock': item.is_low_stock,
    }
    try:
        async_to_sync(channel_layer.group_send)(INVENTORY_GROUP, payload)
    except Exception:
        logger.exception('stock broadcast failed for item=%s', item.pk)
