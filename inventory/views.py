"""
Inventory — Views

Lot browsing, warehouse transfers and the matching endpoints.

@file inventory/views.py
"""

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from catalog.models import Warehouse
from core.exceptions import ResourceNotFoundError

from .models import Allocation, Lot
from .permissions import CanManageInventory
from .serializers import (
    AllocationReadSerializer,
    AutoMatchingSerializer,
    LotReadSerializer,
    LotTransferSerializer,
    MatchingSerializer,
)
from .services import LotTransferService, MatchingService


class LotViewSet(viewsets.ReadOnlyModelViewSet):
    """Lots are created and adjusted by trade documents; this API only reads and moves them."""

    permission_classes = [IsAuthenticated, CanManageInventory]
    serializer_class = LotReadSerializer
    filterset_fields = ['product', 'company', 'warehouse', 'status', 'trade_line']
    search_fields = ['product__name', 'company__name', 'sender', 'shipper_location']
    ordering_fields = ['purchase_date', 'remaining_quantity', 'created_at']
    ordering = ['purchase_date', 'created_at']

    def get_queryset(self):
        return Lot.objects.select_related('product', 'company', 'warehouse', 'trade_line__trade')

    @action(detail=True, methods=['post'], url_path='transfer')
    def transfer(self, request, pk=None):
        ser = LotTransferSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        warehouse_id = ser.validated_data['warehouse_id']
        if not Warehouse.objects.filter(pk=warehouse_id).exists():
            raise ResourceNotFoundError(detail='Warehouse not found.')
        lot = LotTransferService.transfer(
            pk, ser.validated_data['quantity'], warehouse_id, actor=request.user,
        )
        return Response(
            {'success': True, 'data': LotReadSerializer(lot).data},
            status=status.HTTP_201_CREATED if str(lot.pk) != str(pk) else status.HTTP_200_OK,
        )


class MatchingViewSet(viewsets.ViewSet):
    """POST /matching/ allocates chosen lots; POST /matching/auto/ allocates oldest-first."""

    permission_classes = [IsAuthenticated, CanManageInventory]

    def create(self, request):
        ser = MatchingSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = MatchingService.match_sale_line(
            ser.validated_data['sale_line_id'],
            [(item['lot_id'], item['quantity']) for item in ser.validated_data['matchings']],
            actor=request.user,
        )
        return Response({'success': True, 'data': result}, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'], url_path='auto')
    def auto(self, request):
        ser = AutoMatchingSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = MatchingService.auto_match(ser.validated_data['sale_line_id'], actor=request.user)
        return Response({'success': True, 'data': result}, status=status.HTTP_201_CREATED)


class AllocationViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    permission_classes = [IsAuthenticated, CanManageInventory]
    serializer_class = AllocationReadSerializer
    filterset_fields = ['sale_line', 'lot']

    def get_queryset(self):
        return Allocation.objects.select_related('sale_line__trade', 'lot__product')

    def destroy(self, request, *args, **kwargs):
        allocation = self.get_object()
        MatchingService.unmatch(allocation.pk, actor=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)
