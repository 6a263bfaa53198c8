from django.contrib.auth.models import AbstractUser
from django.db import models


class Role(models.TextChoices):
    ADMIN = "ADMIN", "Platform Admin"
    MERCHANT = "MERCHANT", "Merchant"
    MERCHANT_STAFF = "MERCHANT_STAFF", "Merchant Staff"
    LOGISTICS = "LOGISTICS", "Logistics"


MERCHANT_ROLES = (Role.MERCHANT, Role.MERCHANT_STAFF)


class Business(models.Model):
    """A merchant tenant. Orders and products are isolated per business."""

    name = models.CharField(max_length=200)
    owner = models.ForeignKey(
        "users.User", on_delete=models.SET_NULL, null=True, blank=True, related_name="owned_businesses"
    )
    contact_email = models.EmailField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "businesses"
        verbose_name = "Business"
        verbose_name_plural = "Businesses"
        ordering = ["name"]

    def __str__(self):
        return self.name


class User(AbstractUser):
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.MERCHANT)
    business = models.ForeignKey(
        Business, on_delete=models.PROTECT, null=True, blank=True, related_name="members"
    )
    phone = models.CharField(max_length=20, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "users"
        verbose_name = "User"
        verbose_name_plural = "Users"

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"

    @property
    def is_platform_admin(self):
        return self.role == Role.ADMIN
