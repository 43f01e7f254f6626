"""
Auth API views.

These endpoints are used by client apps to:
- Count logins against an access key
- Give a login back on logout
- Look up the record behind an access key
- Read the client app configuration
"""

from asgiref.sync import async_to_sync
from django.conf import settings
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from access_keys.application.commands.login import LoginCommand, LogoutCommand
from access_keys.application.config import get_access_key_config
from access_keys.application.handlers.login_handlers import (
    FetchUserHandler,
    LoginHandler,
    LogoutHandler,
)
from access_keys.application.queries.fetch_user import FetchUserQuery
from access_keys.infrastructure.repositories.factory import build_access_key_repository
from api.v1.auth.serializers import (
    AccessKeyDTOSerializer,
    AccessKeyRequestSerializer,
    AppConfigSerializer,
    ErrorResponseSerializer,
)
from core.instrumentation import Status, StatusCode, get_tracer

tracer = get_tracer(__name__)


def validation_error(span, serializer) -> Response:
    """Record a failed validation on the span and build the 400 response."""
    span.set_attribute("error", "validation_failed")
    span.set_status(Status(StatusCode.ERROR, "Validation failed"))
    return Response(
        {"error": {"code": "VALIDATION_ERROR", "message": serializer.errors}},
        status=status.HTTP_400_BAD_REQUEST,
    )


class LoginView(APIView):
    """View for counting a login against an access key."""

    @extend_schema(
        operation_id="login",
        summary="Login",
        description=(
            "Count a login against an access key. Fails once the key has used "
            "its maximum number of logins or its subscription has expired."
        ),
        tags=["Auth API"],
        request=AccessKeyRequestSerializer,
        responses={
            200: AccessKeyDTOSerializer,
            400: ErrorResponseSerializer,
            403: ErrorResponseSerializer,
            404: ErrorResponseSerializer,
            503: ErrorResponseSerializer,
        },
    )
    def post(self, request: Request) -> Response:
        """Log in with an access key."""
        return async_to_sync(self._handle_login)(request)

    async def _handle_login(self, request: Request) -> Response:
        """Async handler for login."""
        with tracer.start_as_current_span("login") as span:
            span.set_attribute("operation", "login")

            serializer = AccessKeyRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return validation_error(span, serializer)

            access_key = serializer.validated_data["access_key"]
            span.set_attribute("access_key.prefix", access_key[:8])

            config = get_access_key_config()
            handler = LoginHandler(build_access_key_repository(config), config)
            result = await handler.handle(LoginCommand(access_key=access_key))

            span.set_attribute("login_count", result.login_count)
            span.set_status(Status(StatusCode.OK))
            return Response(AccessKeyDTOSerializer(result).data, status=status.HTTP_200_OK)


class LogoutView(APIView):
    """View for giving a login back."""

    @extend_schema(
        operation_id="logout",
        summary="Logout",
        description="Give one login back to an access key. The count never drops below zero.",
        tags=["Auth API"],
        request=AccessKeyRequestSerializer,
        responses={
            200: AccessKeyDTOSerializer,
            400: ErrorResponseSerializer,
            404: ErrorResponseSerializer,
            503: ErrorResponseSerializer,
        },
    )
    def post(self, request: Request) -> Response:
        """Log out with an access key."""
        return async_to_sync(self._handle_logout)(request)

    async def _handle_logout(self, request: Request) -> Response:
        """Async handler for logout."""
        with tracer.start_as_current_span("logout") as span:
            span.set_attribute("operation", "logout")

            serializer = AccessKeyRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return validation_error(span, serializer)

            access_key = serializer.validated_data["access_key"]
            span.set_attribute("access_key.prefix", access_key[:8])

            config = get_access_key_config()
            handler = LogoutHandler(build_access_key_repository(config), config)
            result = await handler.handle(LogoutCommand(access_key=access_key))

            span.set_attribute("login_count", result.login_count)
            span.set_status(Status(StatusCode.OK))
            return Response(AccessKeyDTOSerializer(result).data, status=status.HTTP_200_OK)


class UserView(APIView):
    """View for looking up the record behind an access key."""

    @extend_schema(
        operation_id="fetch_user",
        summary="Fetch User",
        description="Return the record for an access key without touching its counters.",
        tags=["Auth API"],
        parameters=[
            OpenApiParameter(
                name="access_key",
                type=str,
                location=OpenApiParameter.PATH,
                required=True,
                description="Access key",
            ),
        ],
        responses={
            200: AccessKeyDTOSerializer,
            403: ErrorResponseSerializer,
            404: ErrorResponseSerializer,
            503: ErrorResponseSerializer,
        },
    )
    def get(self, request: Request, access_key: str) -> Response:
        """Fetch the record for an access key."""
        return async_to_sync(self._handle_fetch_user)(request, access_key)

    async def _handle_fetch_user(self, request: Request, access_key: str) -> Response:
        """Async handler for fetch user."""
        with tracer.start_as_current_span("fetch_user") as span:
            span.set_attribute("operation", "fetch_user")
            span.set_attribute("access_key.prefix", access_key[:8])

            config = get_access_key_config()
            handler = FetchUserHandler(build_access_key_repository(config), config)
            result = await handler.handle(FetchUserQuery(access_key=access_key))

            span.set_attribute("status", result.status)
            span.set_status(Status(StatusCode.OK))
            return Response(AccessKeyDTOSerializer(result).data, status=status.HTTP_200_OK)


class AppConfigView(APIView):
    """View for client app configuration."""

    @extend_schema(
        operation_id="app_config",
        summary="App Config",
        description="Return the client app configuration.",
        tags=["Auth API"],
        responses={200: AppConfigSerializer},
    )
    def get(self, request: Request) -> Response:
        """Return the current app version."""
        return Response(AppConfigSerializer({"version": settings.APP_VERSION}).data)
