"""
Serializers for the billing webhook.
"""

from rest_framework import serializers


class WebhookResponseSerializer(serializers.Serializer):
    """Serializer for webhook acknowledgements."""

    received = serializers.BooleanField()
    outcome = serializers.CharField()
    event_type = serializers.CharField()
    reason = serializers.CharField(allow_null=True, required=False)
