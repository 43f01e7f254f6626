"""
AccessKey Django ORM model.

This is the infrastructure layer model for access keys.
Domain entities are in access_keys.domain.access_key.
"""
import uuid

from django.db import models


class AccessKey(models.Model):
    """
    An access key issued to a paying customer.
    """

    STATUS_CHOICES = [
        ("ACTIVE", "Active"),
        ("INACTIVE", "Inactive"),
        ("EXPIRED", "Expired"),
        ("CANCELLED", "Cancelled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    access_key = models.CharField(max_length=64, unique=True, editable=False)
    email = models.EmailField(db_index=True)
    external_customer_ref = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        db_index=True,
        help_text="Billing provider customer id",
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="ACTIVE")
    sub_from = models.DateTimeField()
    sub_to = models.DateTimeField(help_text="Exclusive end of the subscription window")
    login_count = models.PositiveIntegerField(default=0)
    session_ids = models.JSONField(default=list, blank=True)
    version = models.PositiveIntegerField(
        default=0, help_text="Bumped on every write; guards concurrent updates"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "access_keys"
        ordering = ["-updated_at"]
        indexes = [
            models.Index(fields=["email", "updated_at"]),
            models.Index(fields=["status"]),
        ]

    def __str__(self):
        return f"{self.access_key[:8]}... ({self.email})"
