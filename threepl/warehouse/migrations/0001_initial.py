import django.core.validators
import django.db.models.deletion
import uuid
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("products", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Warehouse",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("code", models.CharField(db_index=True, max_length=50, unique=True)),
                ("name", models.CharField(max_length=200)),
                ("region", models.CharField(db_index=True, max_length=100)),
                ("address", models.TextField(blank=True)),
                ("capacity", models.PositiveIntegerField(default=0)),
                ("current_stock", models.IntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Warehouse",
                "verbose_name_plural": "Warehouses",
                "db_table": "warehouses",
                "ordering": ["code"],
                "indexes": [models.Index(fields=["region", "is_active"], name="warehouse_region_active_idx")],
            },
        ),
        migrations.CreateModel(
            name="StockAllocation",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "allocated_quantity",
                    models.IntegerField(default=0, validators=[django.core.validators.MinValueValidator(0)]),
                ),
                (
                    "safety_stock",
                    models.IntegerField(default=0, validators=[django.core.validators.MinValueValidator(0)]),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="stock_allocations",
                        to="products.product",
                    ),
                ),
                (
                    "warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="stock_allocations",
                        to="warehouse.warehouse",
                    ),
                ),
            ],
            options={
                "verbose_name": "Stock Allocation",
                "verbose_name_plural": "Stock Allocations",
                "db_table": "stock_allocations",
                "indexes": [models.Index(fields=["warehouse", "product"], name="alloc_warehouse_product_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("product", "warehouse"), name="uniq_allocation_product_warehouse"),
                    models.CheckConstraint(
                        condition=models.Q(("allocated_quantity__gte", 0)), name="allocation_quantity_non_negative"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("safety_stock__gte", 0)), name="allocation_safety_stock_non_negative"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="LogisticsRegion",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="logistics_regions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="logistics_regions",
                        to="warehouse.warehouse",
                    ),
                ),
            ],
            options={
                "verbose_name": "Logistics Region",
                "verbose_name_plural": "Logistics Regions",
                "db_table": "logistics_regions",
                "ordering": ["-created_at"],
                "constraints": [models.UniqueConstraint(fields=("user", "warehouse"), name="uniq_logistics_region")],
            },
        ),
    ]
