"""
Serializers for Session API endpoints.
"""

from rest_framework import serializers

from api.v1.auth.serializers import AccessKeyDTOSerializer, AccessKeyRequestSerializer


class UnbindSessionRequestSerializer(AccessKeyRequestSerializer):
    """Serializer for unbind session request."""

    session_id = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)


class ValidateSessionRequestSerializer(AccessKeyRequestSerializer):
    """Serializer for validate session request."""

    # Presence is checked by the handler so that a missing id reports SESSION_ID_REQUIRED
    session_id = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)


class BindSessionResponseSerializer(serializers.Serializer):
    """Serializer for bind session response."""

    session_id = serializers.CharField()
    sessions_remaining = serializers.IntegerField()
    user = AccessKeyDTOSerializer()


class ValidateSessionResponseSerializer(serializers.Serializer):
    """Serializer for validate session response."""

    valid = serializers.BooleanField()
    is_bound = serializers.BooleanField()
    session_id = serializers.CharField(allow_null=True)
    user = AccessKeyDTOSerializer()
