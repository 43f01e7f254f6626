"""
Serializers for Auth API endpoints.
"""

from rest_framework import serializers


class AccessKeyRequestSerializer(serializers.Serializer):
    """Serializer for requests identifying an access key."""

    access_key = serializers.CharField(required=True, max_length=64, trim_whitespace=True)


class AccessKeyDTOSerializer(serializers.Serializer):
    """Serializer for AccessKeyDTO."""

    access_key = serializers.CharField()
    email = serializers.EmailField()
    status = serializers.CharField()
    sub_from = serializers.DateTimeField()
    sub_to = serializers.DateTimeField()
    login_count = serializers.IntegerField()
    session_ids = serializers.ListField(child=serializers.CharField())


class AppConfigSerializer(serializers.Serializer):
    """Serializer for client app configuration."""

    version = serializers.CharField()


class ErrorDetailSerializer(serializers.Serializer):
    code = serializers.CharField()
    message = serializers.CharField()


class ErrorResponseSerializer(serializers.Serializer):
    """Serializer for error responses."""

    error = ErrorDetailSerializer()
