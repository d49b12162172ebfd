from rest_framework import serializers


class DispensationCreateSerializer(serializers.Serializer):
    prescriptionId = serializers.UUIDField(error_messages={'invalid': 'Invalid Prescription ID format.'})
    inventoryItemId = serializers.UUIDField(error_messages={'invalid': 'Invalid Inventory Item ID format.'})
    quantity = serializers.IntegerField(
        min_value=1,
        error_messages={
            'invalid': 'Quantity must be a whole number.',
            'min_value': 'Dispensed quantity must be at least 1.',
        },
    )


class DispensationListQuerySerializer(serializers.Serializer):
    inventoryItemId = serializers.UUIDField(required=False)
    prescriptionId = serializers.UUIDField(required=False)
    page = serializers.IntegerField(min_value=1, required=False)
    pageSize = serializers.IntegerField(min_value=1, required=False)
