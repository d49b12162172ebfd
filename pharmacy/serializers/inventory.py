import bleach
from rest_framework import serializers

from pharmacy.services.inventory import MAX_COUNT
from pharmacy.services.reporting import ITEM_ORDERINGS

# camelCase request keys -> InventoryItem field names
FIELD_MAP = {
    'name': 'name',
    'unit': 'unit',
    'description': 'description',
    'currentStock': 'current_stock',
    'reorderPoint': 'reorder_point',
    'pricePerUnit': 'price_per_unit',
    'supplier': 'supplier',
}


def _clean(v):
    return bleach.clean((v or '').strip(), strip=True)


class InventoryCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    unit = serializers.CharField(max_length=50)
    pricePerUnit = serializers.DecimalField(max_digits=10, decimal_places=2)
    description = serializers.CharField(required=False, allow_blank=True)
    currentStock = serializers.IntegerField(min_value=0, max_value=MAX_COUNT, required=False)
    reorderPoint = serializers.IntegerField(min_value=0, max_value=MAX_COUNT, required=False)
    supplier = serializers.CharField(required=False, allow_blank=True, max_length=255)

    def validate_name(self, v):
        v = _clean(v)
        if not v:
            raise serializers.ValidationError('Medication name is required.')
        return v

    def validate_unit(self, v):
        v = _clean(v)
        if not v:
            raise serializers.ValidationError('Unit (e.g., "tablet", "mL") is required.')
        return v

    def validate_pricePerUnit(self, v):
        if v <= 0:
            raise serializers.ValidationError('Price must be a positive number.')
        return v

    def validate_description(self, v):
        return _clean(v)

    def validate_supplier(self, v):
        return _clean(v)

    def to_fields(self) -> dict:
        return {FIELD_MAP[k]: v for k, v in self.validated_data.items()}


class InventoryUpdateSerializer(InventoryCreateSerializer):
    name = serializers.CharField(max_length=255, required=False)
    unit = serializers.CharField(max_length=50, required=False)
    pricePerUnit = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('At least one field must be provided for update.')
        return attrs


class InventoryListQuerySerializer(serializers.Serializer):
    orderBy = serializers.ChoiceField(choices=ITEM_ORDERINGS, required=False)
    q = serializers.CharField(max_length=64, required=False)
