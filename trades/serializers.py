"""
Trades — Serializers

Read serializers for documents and lines, and the write serializer that
turns a request body into TradeMasterInput / TradeLineInput records for
TradeService.

@file trades/serializers.py
"""

from django.conf import settings
from rest_framework import serializers

from catalog.models import Product

from .dtos import TradeLineInput, TradeMasterInput
from .models import TradeLine, TradeMaster

MONEY = {'max_digits': 15, 'decimal_places': 2}


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------

class TradeLineReadSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.display_name', read_only=True)
    matching_status_display = serializers.CharField(
        source='get_matching_status_display', read_only=True,
    )
    matched_quantity = serializers.SerializerMethodField()

    class Meta:
        model = TradeLine
        fields = [
            'id', 'seq_no', 'product', 'product_name',
            'quantity', 'total_weight', 'unit_price',
            'supply_amount', 'tax_amount', 'total_amount',
            'auction_price', 'purchase_price',
            'shipper_location', 'sender', 'notes',
            'parent_line', 'matching_status', 'matching_status_display',
            'matched_quantity',
        ]
        read_only_fields = fields

    def get_matched_quantity(self, obj):
        return sum((a.matched_quantity for a in obj.allocations.all()), 0)


class TradeMasterListSerializer(serializers.ModelSerializer):
    company_name = serializers.CharField(source='company.name', read_only=True)
    trade_type_display = serializers.CharField(source='get_trade_type_display', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = TradeMaster
        fields = [
            'id', 'trade_number', 'trade_type', 'trade_type_display',
            'company', 'company_name', 'trade_date',
            'status', 'status_display',
            'total_amount', 'tax_amount', 'total_price',
            'payment_method', 'warehouse',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class TradeMasterDetailSerializer(TradeMasterListSerializer):
    lines = TradeLineReadSerializer(many=True, read_only=True)

    class Meta(TradeMasterListSerializer.Meta):
        fields = TradeMasterListSerializer.Meta.fields + ['notes', 'lines']
        read_only_fields = fields


# ---------------------------------------------------------------------------
# Write
# ---------------------------------------------------------------------------

class TradeLineWriteSerializer(serializers.Serializer):
    id = serializers.UUIDField(required=False, allow_null=True)
    product_id = serializers.UUIDField()
    quantity = serializers.DecimalField(**MONEY)
    total_weight = serializers.DecimalField(required=False, default=0, **MONEY)
    unit_price = serializers.DecimalField(required=False, default=0, **MONEY)
    supply_amount = serializers.DecimalField(required=False, default=0, **MONEY)
    tax_amount = serializers.DecimalField(required=False, default=0, **MONEY)
    total_amount = serializers.DecimalField(required=False, allow_null=True, **MONEY)
    auction_price = serializers.DecimalField(required=False, allow_null=True, **MONEY)
    purchase_price = serializers.DecimalField(required=False, allow_null=True, **MONEY)
    shipper_location = serializers.CharField(required=False, allow_blank=True, default='')
    sender = serializers.CharField(required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='', max_length=500)
    parent_line_id = serializers.UUIDField(required=False, allow_null=True)
    lot_id = serializers.UUIDField(required=False, allow_null=True)

    def validate(self, attrs):
        quantity = attrs.get('quantity')
        if attrs.get('parent_line_id') and quantity is not None and quantity >= 0:
            raise serializers.ValidationError({
                'quantity': 'A return line must have a negative quantity.',
            })
        return attrs


class TradeWriteSerializer(serializers.Serializer):
    trade_type = serializers.ChoiceField(choices=TradeMaster.TradeType.choices)
    company_id = serializers.UUIDField()
    trade_date = serializers.DateField()
    status = serializers.ChoiceField(
        choices=TradeMaster.StatusChoices.choices, default=TradeMaster.StatusChoices.DRAFT,
    )
    total_amount = serializers.DecimalField(required=False, default=0, **MONEY)
    tax_amount = serializers.DecimalField(required=False, default=0, **MONEY)
    total_price = serializers.DecimalField(required=False, default=0, **MONEY)
    payment_method = serializers.CharField(required=False, allow_blank=True, default='', max_length=30)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    warehouse_id = serializers.UUIDField(required=False, allow_null=True)
    lines = TradeLineWriteSerializer(many=True)

    def validate_lines(self, value):
        if self.partial:
            # Nested fields inherit partial from the root; lines are always sent whole.
            full = TradeLineWriteSerializer(data=self.initial_data.get('lines'), many=True)
            full.is_valid(raise_exception=True)
            value = full.validated_data
        if len(value) > settings.TRADE_MAX_LINES:
            raise serializers.ValidationError(
                f'A document holds at most {settings.TRADE_MAX_LINES} lines.',
            )
        product_ids = {line['product_id'] for line in value}
        known = set(Product.objects.filter(pk__in=product_ids).values_list('pk', flat=True))
        missing = product_ids - known
        if missing:
            raise serializers.ValidationError(
                f'Unknown product(s): {", ".join(sorted(str(pk) for pk in missing))}.',
            )
        return value

    def to_inputs(self, base=None):
        """
        Build engine inputs from validated data. For partial updates, base
        supplies the current document so omitted fields keep their value.
        """
        data = dict(base or {})
        data.update(self.validated_data)
        master = TradeMasterInput.from_dict(data)
        lines = [TradeLineInput.from_dict(line) for line in data.get('lines', [])]
        return master, lines


def trade_as_payload(trade) -> dict:
    """Current state of a document in TradeWriteSerializer shape."""
    return {
        'trade_type': trade.trade_type,
        'company_id': trade.company_id,
        'trade_date': trade.trade_date,
        'status': trade.status,
        'total_amount': trade.total_amount,
        'tax_amount': trade.tax_amount,
        'total_price': trade.total_price,
        'payment_method': trade.payment_method,
        'notes': trade.notes,
        'warehouse_id': trade.warehouse_id,
        'lines': [
            {
                'id': line.pk,
                'product_id': line.product_id,
                'quantity': line.quantity,
                'total_weight': line.total_weight,
                'unit_price': line.unit_price,
                'supply_amount': line.supply_amount,
                'tax_amount': line.tax_amount,
                'total_amount': line.total_amount,
                'auction_price': line.auction_price,
                'purchase_price': line.purchase_price,
                'shipper_location': line.shipper_location,
                'sender': line.sender,
                'notes': line.notes,
                'parent_line_id': line.parent_line_id,
            }
            for line in trade.lines.order_by('seq_no')
        ],
    }


class CheckDuplicateSerializer(serializers.Serializer):
    company_id = serializers.UUIDField()
    trade_date = serializers.DateField()
    trade_type = serializers.ChoiceField(choices=TradeMaster.TradeType.choices)
    exclude_trade_id = serializers.UUIDField(required=False, allow_null=True)


class UpdateResultSerializer(serializers.Serializer):
    needs_rematching = serializers.BooleanField()
    unmatched_items = serializers.ListField(child=serializers.DictField())
