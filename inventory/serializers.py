"""
Inventory — Serializers

@file inventory/serializers.py
"""

from rest_framework import serializers

from .models import Allocation, Lot

QUANTITY = {'max_digits': 15, 'decimal_places': 2}


class LotReadSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.display_name', read_only=True)
    company_name = serializers.CharField(source='company.name', read_only=True)
    warehouse_name = serializers.CharField(source='warehouse.name', read_only=True, default=None)
    trade_number = serializers.CharField(source='trade_line.trade.trade_number', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Lot
        fields = [
            'id', 'trade_line', 'trade_number', 'parent_lot',
            'product', 'product_name', 'company', 'company_name',
            'purchase_date', 'warehouse', 'warehouse_name',
            'original_quantity', 'remaining_quantity',
            'unit_price', 'total_weight', 'shipper_location', 'sender',
            'status', 'status_display',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class AllocationReadSerializer(serializers.ModelSerializer):
    sale_trade_number = serializers.CharField(source='sale_line.trade.trade_number', read_only=True)
    product_name = serializers.CharField(source='lot.product.display_name', read_only=True)

    class Meta:
        model = Allocation
        fields = [
            'id', 'sale_line', 'sale_trade_number', 'lot', 'product_name',
            'matched_quantity', 'created_at',
        ]
        read_only_fields = fields


class LotTransferSerializer(serializers.Serializer):
    quantity = serializers.DecimalField(**QUANTITY)
    warehouse_id = serializers.UUIDField()

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError('Quantity must be positive.')
        return value


class MatchingItemSerializer(serializers.Serializer):
    lot_id = serializers.UUIDField()
    quantity = serializers.DecimalField(**QUANTITY)


class MatchingSerializer(serializers.Serializer):
    sale_line_id = serializers.UUIDField()
    matchings = MatchingItemSerializer(many=True, allow_empty=False)


class AutoMatchingSerializer(serializers.Serializer):
    sale_line_id = serializers.UUIDField()
