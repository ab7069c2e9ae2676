"""
Trades — Views

Trade document endpoints. Writes go through TradeService so every
create, update and delete runs as one transaction with its lot and
allocation side effects.

@file trades/views.py
"""

from django.db.models import Prefetch
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.models import Allocation

from .models import TradeLine, TradeMaster
from .permissions import CanModifyTrades
from .serializers import (
    CheckDuplicateSerializer,
    TradeMasterDetailSerializer,
    TradeMasterListSerializer,
    TradeWriteSerializer,
    UpdateResultSerializer,
    trade_as_payload,
)
from .services import TradeService


class TradeViewSet(viewsets.ModelViewSet):
    """
    CRUD for trade documents (PURCHASE, SALE, PRODUCTION).

    PUT replaces the document and its lines; PATCH keeps omitted fields
    and, when "lines" is omitted, the current lines.
    """

    permission_classes = [IsAuthenticated, CanModifyTrades]
    filterset_fields = ['trade_type', 'status', 'company', 'trade_date', 'warehouse']
    search_fields = ['trade_number', 'company__name', 'notes']
    ordering_fields = ['trade_date', 'trade_number', 'total_price', 'created_at']
    ordering = ['-trade_date', '-trade_number']

    def get_queryset(self):
        qs = TradeMaster.objects.select_related('company')
        if self.action == 'retrieve':
            lines = TradeLine.objects.select_related('product').prefetch_related(
                Prefetch('allocations', queryset=Allocation.objects.only('sale_line', 'matched_quantity')),
            )
            qs = qs.prefetch_related(Prefetch('lines', queryset=lines))
        return qs

    def get_serializer_class(self):
        if self.action == 'list':
            return TradeMasterListSerializer
        if self.action == 'retrieve':
            return TradeMasterDetailSerializer
        return TradeWriteSerializer

    def create(self, request, *args, **kwargs):
        ser = TradeWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        master, lines = ser.to_inputs()
        result = TradeService.create_trade(master, lines, actor=request.user)
        return Response({'success': True, 'data': result}, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        trade = self.get_object()
        ser = TradeWriteSerializer(data=request.data, partial=partial)
        ser.is_valid(raise_exception=True)
        base = trade_as_payload(trade) if partial else None
        master, lines = ser.to_inputs(base=base)
        result = TradeService.update_trade(trade.pk, master, lines, actor=request.user)
        return Response({'success': True, 'data': UpdateResultSerializer(result).data})

    def destroy(self, request, *args, **kwargs):
        trade = self.get_object()
        TradeService.delete_trade(trade.pk, actor=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'], url_path='check-duplicate')
    def check_duplicate(self, request):
        ser = CheckDuplicateSerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        existing = TradeService.check_duplicate(
            ser.validated_data['company_id'],
            ser.validated_data['trade_date'],
            ser.validated_data['trade_type'],
            ser.validated_data.get('exclude_trade_id'),
        )
        return Response({
            'success': True,
            'data': {'is_duplicate': existing is not None, 'existing': existing},
        })
