"""
Django admin configuration for access_keys app.
"""
from django.contrib import admin
from django.utils import timezone
from django.utils.html import format_html

from access_keys.infrastructure.models import AccessKey


@admin.register(AccessKey)
class AccessKeyAdmin(admin.ModelAdmin):
    """Admin interface for AccessKey model."""

    list_display = [
        "masked_key",
        "email",
        "external_customer_ref",
        "status_display",
        "sub_to",
        "login_count",
        "session_count",
        "updated_at",
    ]
    list_filter = ["status", "sub_to", "created_at"]
    search_fields = ["access_key", "email", "external_customer_ref"]
    readonly_fields = ["id", "access_key", "version", "created_at", "updated_at"]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "access_key", "email", "external_customer_ref", "status"),
            },
        ),
        (
            "Subscription",
            {
                "fields": ("sub_from", "sub_to"),
            },
        ),
        (
            "Admission",
            {
                "fields": ("login_count", "session_ids"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("version", "created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )

    def masked_key(self, obj):
        """Display the first characters of the key only."""
        return f"{obj.access_key[:8]}..."

    masked_key.short_description = "Access Key"

    def status_display(self, obj):
        """Display status with color coding; elapsed windows show as lapsed."""
        colors = {
            "ACTIVE": "green",
            "INACTIVE": "orange",
            "EXPIRED": "gray",
            "CANCELLED": "red",
        }
        label = obj.status
        if obj.status == "ACTIVE" and obj.sub_to <= timezone.now():
            label = "ACTIVE (lapsed)"
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            colors.get(obj.status, "black"),
            label,
        )

    status_display.short_description = "Status"

    def session_count(self, obj):
        return len(obj.session_ids or [])

    session_count.short_description = "Sessions"
