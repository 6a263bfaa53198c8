"""
Order views for Order Fulfillment & Logistics Assignment.
"""

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from users.actor import Actor
from users.permissions import IsPlatformAdmin
from ..exceptions import BusinessException
from ..filters import OrderFilter
from ..services import AssignmentService, OrderService, OrderStore
from ..serializers.order_serializers import (
    AllocateSerializer, AssignLogisticsSerializer, BulkStatusSerializer,
    OrderCreateSerializer, OrderDetailSerializer, OrderListSerializer, StatusUpdateSerializer
)
from ..serializers.shipment_serializers import ShipmentDetailSerializer
from .base import error_response, success_response


class OrderViewSet(mixins.CreateModelMixin, viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for Order management.

    Lists and lookups are scoped to the caller. Every status change is routed
    through the order service; orders are never updated or deleted directly.
    """

    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = OrderFilter
    search_fields = ['tracking_code', 'customer_name', 'customer_email', 'customer_phone']
    ordering_fields = ['order_date', 'total_amount', 'status', 'updated_at']
    ordering = ['-order_date']

    def get_serializer_class(self):
        """Return appropriate serializer based on action."""
        if self.action == 'create':
            return OrderCreateSerializer
        elif self.action == 'list':
            return OrderListSerializer
        elif self.action == 'update_status':
            return StatusUpdateSerializer
        elif self.action == 'allocate':
            return AllocateSerializer
        elif self.action == 'assign':
            return AssignLogisticsSerializer
        elif self.action == 'bulk_status':
            return BulkStatusSerializer
        else:
            return OrderDetailSerializer

    def get_queryset(self):
        """Orders visible to the requesting user."""
        actor = Actor.from_user(self.request.user)
        return OrderStore.scope_queryset(actor).select_related('merchant', 'assigned_logistics')

    def retrieve(self, request, pk=None):
        """Get an order by id or tracking code."""
        try:
            order = OrderStore.get_for_actor(request.user, pk)
        except BusinessException as e:
            return error_response(e)
        return success_response(OrderDetailSerializer(order).data)

    def create(self, request, *args, **kwargs):
        """Create an order for the caller's business."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = serializer.save()
        except BusinessException as e:
            return error_response(e)
        return success_response(OrderDetailSerializer(order).data, status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], url_path='status')
    def update_status(self, request, pk=None):
        """Move an order to a new status."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = OrderService.update_status(request.user, pk, serializer.validated_data['status'])
        except BusinessException as e:
            return error_response(e)
        return success_response(
            OrderDetailSerializer(order).data,
            message=f"Order status updated to {order.status}"
        )

    @action(detail=True, methods=['post'])
    def allocate(self, request, pk=None):
        """Request warehouse allocation for a NEW order."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = OrderService.request_allocation(
                request.user, pk, serializer.validated_data.get('warehouse_id')
            )
        except BusinessException as e:
            return error_response(e)
        return success_response(OrderDetailSerializer(order).data)

    @action(detail=True, methods=['post'])
    def assign(self, request, pk=None):
        """Assign a logistics user to an order."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        picks = serializer.validated_data.get('warehouse_picks')
        if picks is not None:
            picks = [
                {
                    'product_id': entry['product_id'],
                    'picks': [dict(pick) for pick in entry['picks']],
                }
                for entry in picks
            ]

        try:
            shipment = AssignmentService.assign_logistics(
                request.user, pk, serializer.validated_data['logistics_user_id'], picks
            )
        except BusinessException as e:
            return error_response(e)
        return success_response(ShipmentDetailSerializer(shipment).data)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """Cancel an order."""
        try:
            order = OrderService.cancel_order(request.user, pk)
        except BusinessException as e:
            return error_response(e)
        return success_response(OrderDetailSerializer(order).data)

    @action(detail=True, methods=['post'])
    def hold(self, request, pk=None):
        """Put an order on hold."""
        try:
            order = OrderService.hold_order(request.user, pk)
        except BusinessException as e:
            return error_response(e)
        return success_response(OrderDetailSerializer(order).data)

    @action(detail=True, methods=['post'])
    def release(self, request, pk=None):
        """Release a held order to its previous status."""
        try:
            order = OrderService.release_order(request.user, pk)
        except BusinessException as e:
            return error_response(e)
        return success_response(OrderDetailSerializer(order).data)

    @action(detail=False, methods=['post'], url_path='bulk-status', permission_classes=[IsPlatformAdmin])
    def bulk_status(self, request):
        """Apply one status change to many orders."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = OrderStore.bulk_set_status(
                request.user,
                serializer.validated_data['order_ids'],
                serializer.validated_data['status'],
            )
        except BusinessException as e:
            return error_response(e)

        return success_response({
            'status': result.status,
            'count': result.updated_count,
        })

    @action(detail=False, methods=['get'])
    def stats(self, request):
        """Order counts per status within the caller's scope."""
        return success_response(OrderStore.status_counts(request.user))
