"""
Django admin registrations for the pharmacy models.

Dispensations are an append-only ledger, so their admin is read-only:
rows can be inspected from ``/admin/`` but never changed there.
Stock corrections go through the inventory item admin, which records the
same audit trail as the API.
"""

from django.contrib import admin

from .models import AuditEvent, Dispensation, InventoryItem, Prescription, User
from .services import inventory


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'role', 'external_id', 'is_staff', 'is_superuser')
    list_filter = ('role',)
    search_fields = ('username', 'first_name', 'last_name', 'external_id')


@admin.register(Prescription)
class PrescriptionAdmin(admin.ModelAdmin):
    list_display = ('id', 'medication_name', 'patient_id', 'dosage', 'date_prescribed')
    search_fields = ('id', 'medication_name', 'patient_id')


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ('name', 'unit', 'current_stock', 'reorder_point', 'price_per_unit', 'supplier', 'updated_at')
    search_fields = ('name', 'supplier')
    readonly_fields = ('created_at', 'updated_at')

    def save_model(self, request, obj, form, change):
        fields = {f: form.cleaned_data[f] for f in inventory.EDITABLE_FIELDS if f in form.cleaned_data}
        if change:
            fields = {f: v for f, v in fields.items() if f in form.changed_data}
            if fields:
                inventory.update_item(obj.pk, fields, user=request.user)
        else:
            created = inventory.create_item(fields, user=request.user)
            obj.pk = created.pk

    def delete_model(self, request, obj):
        inventory.delete_item(obj.pk, user=request.user)


@admin.register(Dispensation)
class DispensationAdmin(admin.ModelAdmin):
    list_display = ('id', 'inventory_item', 'prescription', 'quantity', 'dispensed_by', 'date_dispensed')
    list_filter = ('inventory_item',)
    search_fields = ('id', 'dispensed_by', 'prescription__id')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'object_type', 'object_id', 'actor', 'user', 'created_at')
    list_filter = ('action', 'object_type')
    search_fields = ('object_id', 'actor')
