from rest_framework import serializers
from .models import Warehouse, StockAllocation, LogisticsRegion
from products.serializers import ProductListSerializer


class WarehouseSerializer(serializers.ModelSerializer):
    class Meta:
        model = Warehouse
        fields = [
            "id",
            "code",
            "name",
            "region",
            "address",
            "capacity",
            "current_stock",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "current_stock", "created_at", "updated_at"]


class StockAllocationSerializer(serializers.ModelSerializer):
    product_detail = ProductListSerializer(source="product", read_only=True)
    warehouse_code = serializers.CharField(source="warehouse.code", read_only=True)
    available_quantity = serializers.IntegerField(read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = StockAllocation
        fields = [
            "id",
            "product",
            "product_detail",
            "warehouse",
            "warehouse_code",
            "allocated_quantity",
            "safety_stock",
            "available_quantity",
            "is_low_stock",
            "updated_at",
        ]
        read_only_fields = fields


class StockLevelSerializer(serializers.Serializer):
    product = serializers.IntegerField()
    warehouse = serializers.UUIDField()
    allocated = serializers.IntegerField()
    safety_stock = serializers.IntegerField()
    available = serializers.IntegerField()


class LogisticsRegionSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source="user.username", read_only=True)
    warehouse_code = serializers.CharField(source="warehouse.code", read_only=True)
    warehouse_name = serializers.CharField(source="warehouse.name", read_only=True)

    class Meta:
        model = LogisticsRegion
        fields = ["id", "user", "username", "warehouse", "warehouse_code", "warehouse_name", "created_at"]
        read_only_fields = fields


class RegionAssignSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
    warehouse_id = serializers.UUIDField()
