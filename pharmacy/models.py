"""
Database models for the clinic pharmacy.

These models capture the stock ledger of the pharmacy: inventory items,
the prescriptions they are dispensed against and the append-only log of
dispensations.  Field names are snake_case here and are exposed as
camelCase by the formatting helpers in :mod:`pharmacy.services`.
"""
from __future__ import annotations

import uuid

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


class User(AbstractUser):
    """Clinic staff or patient account.

    Identity is owned by an external provider; ``external_id`` stores the
    provider's subject id when the account was synced from it.  The role
    is a pre-validated claim and is only read, never derived, by the
    pharmacy services.
    """
    ROLE_PHARMACIST = 'pharmacist'
    ROLE_ADMIN = 'admin'
    ROLE_DOCTOR = 'doctor'
    ROLE_PATIENT = 'patient'
    ROLE_CHOICES = [
        (ROLE_PHARMACIST, 'Pharmacist'),
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_DOCTOR, 'Doctor'),
        (ROLE_PATIENT, 'Patient'),
    ]
    role = models.CharField(max_length=16, choices=ROLE_CHOICES, default=ROLE_PATIENT)
    external_id = models.CharField(max_length=64, unique=True, null=True, blank=True)

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Prescription(models.Model):
    """A prescription issued by a doctor.

    Owned by the clinical side of the application; the pharmacy only
    references it by id and reads ``medication_name``/``patient_id`` for
    display.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient_id = models.CharField(max_length=64, db_index=True)
    medication_name = models.CharField(max_length=255)
    dosage = models.CharField(max_length=255)
    instructions = models.TextField(blank=True)
    prescribed_by = models.CharField(max_length=64, blank=True)
    date_prescribed = models.DateTimeField(default=timezone.now)

    def __str__(self) -> str:
        return f"{self.medication_name} for {self.patient_id}"


def _default_reorder_point() -> int:
    return getattr(settings, 'PHARMACY_DEFAULT_REORDER_POINT', 10)


class InventoryItem(models.Model):
    """A stocked medication or supply.

    ``current_stock`` is the single authoritative stock counter.  Outside
    of administrative edits it is only written by
    :func:`pharmacy.services.inventory.decrement_stock`, inside the ledger
    transaction.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, unique=True)
    unit = models.CharField(max_length=50)
    description = models.TextField(blank=True)
    current_stock = models.IntegerField(default=0)
    reorder_point = models.IntegerField(default=_default_reorder_point)
    price_per_unit = models.DecimalField(max_digits=10, decimal_places=2)
    supplier = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(current_stock__gte=0),
                name='inventory_item_stock_non_negative',
                violation_error_message='Stock cannot be negative',
            ),
            models.CheckConstraint(
                condition=models.Q(reorder_point__gte=0),
                name='inventory_item_reorder_point_non_negative',
                violation_error_message='Reorder point cannot be negative',
            ),
            models.CheckConstraint(
                condition=models.Q(price_per_unit__gt=0),
                name='inventory_item_price_positive',
                violation_error_message='Price must be a positive number',
            ),
        ]

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.reorder_point

    def __str__(self) -> str:
        return f"{self.name} ({self.current_stock} {self.unit})"


class ImmutableRecordError(Exception):
    """Raised on any attempt to change or remove a dispensation."""


class DispensationQuerySet(models.QuerySet):
    def update(self, **kwargs):
        raise ImmutableRecordError('dispensation records cannot be updated')

    def delete(self):
        raise ImmutableRecordError('dispensation records cannot be deleted')


class Dispensation(models.Model):
    """An immutable record of stock issued against a prescription."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    prescription = models.ForeignKey(Prescription, on_delete=models.PROTECT, related_name='dispensations')
    inventory_item = models.ForeignKey(InventoryItem, on_delete=models.PROTECT, related_name='dispensations')
    quantity = models.IntegerField()
    dispensed_by = models.CharField(max_length=64)
    date_dispensed = models.DateTimeField(default=timezone.now, db_index=True)

    objects = DispensationQuerySet.as_manager()

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name='dispensation_quantity_positive',
                violation_error_message='Dispensed quantity must be at least 1',
            ),
        ]
        indexes = [
            models.Index(fields=['inventory_item', 'date_dispensed'], name='pharmacy_di_invento_5c1f0e_idx'),
            models.Index(fields=['prescription', 'date_dispensed'], name='pharmacy_di_prescri_8a7d3b_idx'),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRecordError('dispensation records cannot be updated')
        kwargs['force_insert'] = True
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError('dispensation records cannot be deleted')

    def __str__(self) -> str:
        return f"{self.quantity} x {self.inventory_item_id} for rx {self.prescription_id}"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    actor = models.CharField(max_length=64, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.CharField(max_length=64, blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='pharmacy_au_action_3e9b41_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='pharmacy_au_object__f2c6d0_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.object_type}:{self.object_id}@{self.created_at:%F %T}"
