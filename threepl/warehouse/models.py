import uuid

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q


class Warehouse(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    code = models.CharField(max_length=50, unique=True, db_index=True)
    name = models.CharField(max_length=200)
    region = models.CharField(max_length=100, db_index=True)
    address = models.TextField(blank=True)
    capacity = models.PositiveIntegerField(default=0)
    # Best-effort cache; the authoritative figure is the sum of StockAllocation rows.
    current_stock = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "warehouses"
        verbose_name = "Warehouse"
        verbose_name_plural = "Warehouses"
        ordering = ["code"]
        indexes = [
            models.Index(fields=["region", "is_active"], name="warehouse_region_active_idx"),
        ]

    def __str__(self):
        return f"{self.code} - {self.name}"


class StockAllocation(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey("products.Product", on_delete=models.CASCADE, related_name="stock_allocations")
    warehouse = models.ForeignKey(Warehouse, on_delete=models.CASCADE, related_name="stock_allocations")
    allocated_quantity = models.IntegerField(default=0, validators=[MinValueValidator(0)])
    safety_stock = models.IntegerField(default=0, validators=[MinValueValidator(0)])
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "stock_allocations"
        verbose_name = "Stock Allocation"
        verbose_name_plural = "Stock Allocations"
        constraints = [
            models.UniqueConstraint(fields=["product", "warehouse"], name="uniq_allocation_product_warehouse"),
            models.CheckConstraint(condition=Q(allocated_quantity__gte=0), name="allocation_quantity_non_negative"),
            models.CheckConstraint(condition=Q(safety_stock__gte=0), name="allocation_safety_stock_non_negative"),
        ]
        indexes = [
            models.Index(fields=["warehouse", "product"], name="alloc_warehouse_product_idx"),
        ]

    def __str__(self):
        return f"{self.product.sku} at {self.warehouse.code} - {self.allocated_quantity}"

    @property
    def available_quantity(self):
        return self.allocated_quantity - self.safety_stock

    @property
    def is_low_stock(self):
        return self.allocated_quantity <= self.safety_stock


class LogisticsRegion(models.Model):
    """Which warehouses a logistics user may be assigned orders from."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="logistics_regions")
    warehouse = models.ForeignKey(Warehouse, on_delete=models.CASCADE, related_name="logistics_regions")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "logistics_regions"
        verbose_name = "Logistics Region"
        verbose_name_plural = "Logistics Regions"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["user", "warehouse"], name="uniq_logistics_region"),
        ]

    def __str__(self):
        return f"{self.user} -> {self.warehouse.code}"
