from decimal import Decimal

from django.db import models


class Product(models.Model):
    business = models.ForeignKey("users.Business", on_delete=models.CASCADE, related_name="products")
    name = models.CharField(max_length=200)
    sku = models.CharField(max_length=100, db_index=True)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "products"
        verbose_name = "Product"
        verbose_name_plural = "Products"
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(fields=["business", "sku"], name="uniq_product_sku_per_business"),
        ]
        indexes = [
            models.Index(fields=["business", "is_active"], name="product_business_active_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"
