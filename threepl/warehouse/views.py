from rest_framework import viewsets, status, filters
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend
from .models import Warehouse, StockAllocation
from .serializers import (
    WarehouseSerializer,
    StockAllocationSerializer,
    StockLevelSerializer,
    LogisticsRegionSerializer,
    RegionAssignSerializer,
)
from warehouse.services.stock_ledger import StockLedger
from order_fulfillment.exceptions import BusinessException
from order_fulfillment.services import AssignmentService
from order_fulfillment.views.base import error_response, success_response
from users.permissions import IsPlatformAdmin


class WarehouseViewSet(viewsets.ModelViewSet):
    queryset = Warehouse.objects.all()
    serializer_class = WarehouseSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    search_fields = ["code", "name", "region"]
    filterset_fields = ["region", "is_active"]
    ordering_fields = ["code", "name", "capacity", "created_at"]
    ordering = ["code"]

    def get_permissions(self):
        if self.action in ["create", "update", "partial_update", "destroy", "stats", "logistics"]:
            return [IsPlatformAdmin()]
        return [IsAuthenticated()]

    @action(detail=True, methods=["get"])
    def stats(self, request, pk=None):
        """Stock totals and utilisation for a warehouse"""
        warehouse = self.get_object()
        try:
            totals = StockLedger().warehouse_totals(warehouse.pk)
        except BusinessException as e:
            return error_response(e)
        return success_response(totals)

    @action(detail=True, methods=["get"])
    def stock(self, request, pk=None):
        """Allocation rows of a warehouse visible to the caller, or one product's level with ?product="""
        warehouse = self.get_object()
        product_id = request.query_params.get("product")
        ledger = StockLedger()

        if product_id:
            try:
                level = ledger.get_available(product_id, warehouse.pk)
                ledger.check_visible(request.user, product_id, warehouse.pk)
            except BusinessException as e:
                return error_response(e)
            serializer = StockLevelSerializer(
                {
                    "product": int(product_id),
                    "warehouse": warehouse.pk,
                    "allocated": level.allocated,
                    "safety_stock": level.safety_stock,
                    "available": level.available,
                }
            )
            return success_response(serializer.data)

        allocations = ledger.scope_allocations(
            request.user, StockAllocation.objects.filter(warehouse=warehouse)
        ).select_related("product", "warehouse")
        return success_response(StockAllocationSerializer(allocations, many=True).data)

    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request):
        """Allocations at or below safety stock, within the caller's scope"""
        ledger = StockLedger()
        try:
            allocations = ledger.scope_allocations(
                request.user, ledger.low_stock(request.query_params.get("warehouse"))
            )
        except BusinessException as e:
            return error_response(e)
        return success_response(StockAllocationSerializer(allocations, many=True).data)

    @action(detail=True, methods=["get"])
    def logistics(self, request, pk=None):
        """Logistics users covering this warehouse"""
        warehouse = self.get_object()
        users = AssignmentService.eligible_logistics(warehouse.pk)
        return success_response([{"id": user.pk, "username": user.username} for user in users])


class LogisticsRegionViewSet(viewsets.GenericViewSet):
    serializer_class = LogisticsRegionSerializer
    permission_classes = [IsAuthenticated]

    def get_serializer_class(self):
        if self.action == "create":
            return RegionAssignSerializer
        return LogisticsRegionSerializer

    def list(self, request):
        try:
            regions = AssignmentService.list_regions(request.user)
        except BusinessException as e:
            return error_response(e)
        return success_response(LogisticsRegionSerializer(regions, many=True).data)

    def create(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            region = AssignmentService.assign_warehouse_region(
                request.user,
                serializer.validated_data["user_id"],
                serializer.validated_data["warehouse_id"],
            )
        except BusinessException as e:
            return error_response(e)
        return success_response(LogisticsRegionSerializer(region).data, status.HTTP_201_CREATED)

    def destroy(self, request, pk=None):
        try:
            AssignmentService.remove_warehouse_region(request.user, pk)
        except BusinessException as e:
            return error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)
