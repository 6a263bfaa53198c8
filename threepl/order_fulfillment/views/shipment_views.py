"""
Shipment views for Order Fulfillment & Logistics Assignment.
"""

from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from users.actor import Actor
from ..exceptions import BusinessException
from ..services import AssignmentService, ShipmentTracker
from ..serializers.order_serializers import OrderDetailSerializer, StatusUpdateSerializer
from ..serializers.shipment_serializers import (
    FailedAttemptSerializer, ShipmentDetailSerializer, ShipmentListSerializer, TrackingUpdateSerializer
)
from .base import error_response, success_response


class ShipmentViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for Shipment tracking.

    Shipments are created by logistics assignment, never through this API.
    """

    permission_classes = [IsAuthenticated]

    def get_serializer_class(self):
        """Return appropriate serializer based on action."""
        if self.action == 'list':
            return ShipmentListSerializer
        elif self.action == 'update_status':
            return StatusUpdateSerializer
        elif self.action == 'tracking':
            return TrackingUpdateSerializer
        elif self.action == 'failed_attempt':
            return FailedAttemptSerializer
        else:
            return ShipmentDetailSerializer

    def get_queryset(self):
        return ShipmentTracker.list_for_actor(Actor.from_user(self.request.user))

    def retrieve(self, request, pk=None):
        try:
            shipment = ShipmentTracker.get_for_actor(request.user, pk)
        except BusinessException as e:
            return error_response(e)
        return success_response(ShipmentDetailSerializer(shipment).data)

    @action(detail=True, methods=['post'], url_path='status')
    def update_status(self, request, pk=None):
        """Change the status of the shipment's order."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = ShipmentTracker.update_status_via_shipment(
                request.user, pk, serializer.validated_data['status']
            )
        except BusinessException as e:
            return error_response(e)
        return success_response(OrderDetailSerializer(order).data)

    @action(detail=True, methods=['post'])
    def tracking(self, request, pk=None):
        """Update carrier and tracking number."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            shipment = ShipmentTracker.update_tracking(
                request.user, pk,
                tracking_number=serializer.validated_data.get('tracking_number'),
                carrier_name=serializer.validated_data.get('carrier_name'),
            )
        except BusinessException as e:
            return error_response(e)
        return success_response(ShipmentDetailSerializer(shipment).data)

    @action(detail=True, methods=['post'], url_path='failed-attempt')
    def failed_attempt(self, request, pk=None):
        """Record a failed delivery attempt."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            shipment = ShipmentTracker.record_failed_attempt(
                request.user, pk, serializer.validated_data.get('reason', '')
            )
        except BusinessException as e:
            return error_response(e)
        return success_response(ShipmentDetailSerializer(shipment).data)

    @action(detail=True, methods=['post'], url_path='remove-logistics')
    def remove_logistics(self, request, pk=None):
        """Clear the logistics assignment of the shipment's order."""
        try:
            order = AssignmentService.remove_logistics(request.user, pk)
        except BusinessException as e:
            return error_response(e)
        return success_response(OrderDetailSerializer(order).data)
