from django.contrib import admin
from .models import Warehouse, StockAllocation, LogisticsRegion


@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "region", "capacity", "current_stock", "is_active", "created_at"]
    list_filter = ["region", "is_active", "created_at"]
    search_fields = ["code", "name", "address"]
    readonly_fields = ["current_stock", "created_at", "updated_at"]


@admin.register(StockAllocation)
class StockAllocationAdmin(admin.ModelAdmin):
    list_display = ["product", "warehouse", "allocated_quantity", "safety_stock", "updated_at"]
    list_filter = ["warehouse", "updated_at"]
    search_fields = ["product__name", "product__sku", "warehouse__code"]
    readonly_fields = ["created_at", "updated_at"]


@admin.register(LogisticsRegion)
class LogisticsRegionAdmin(admin.ModelAdmin):
    list_display = ["user", "warehouse", "created_at"]
    list_filter = ["warehouse"]
    search_fields = ["user__username", "warehouse__code"]
    readonly_fields = ["created_at"]
