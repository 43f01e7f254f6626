"""
Session API views.

These endpoints are used by client apps to:
- Bind a new session to an access key
- Release a session
- Check that a key is still live for a session
"""

from asgiref.sync import async_to_sync
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from access_keys.application.commands.session import BindSessionCommand, UnbindSessionCommand
from access_keys.application.config import get_access_key_config
from access_keys.application.handlers.session_handlers import (
    BindSessionHandler,
    UnbindSessionHandler,
    ValidateSessionHandler,
)
from access_keys.application.queries.validate_session import ValidateSessionQuery
from access_keys.infrastructure.repositories.factory import build_access_key_repository
from api.v1.auth.serializers import (
    AccessKeyDTOSerializer,
    AccessKeyRequestSerializer,
    ErrorResponseSerializer,
)
from api.v1.auth.views import validation_error
from api.v1.sessions.serializers import (
    BindSessionResponseSerializer,
    UnbindSessionRequestSerializer,
    ValidateSessionRequestSerializer,
    ValidateSessionResponseSerializer,
)
from core.instrumentation import Status, StatusCode, get_tracer

tracer = get_tracer(__name__)


class BindSessionView(APIView):
    """View for binding a session to an access key."""

    @extend_schema(
        operation_id="bind_session",
        summary="Bind Session",
        description=(
            "Bind a new session to an active access key and return its id. "
            "Fails once the key holds its maximum number of concurrent sessions."
        ),
        tags=["Session API"],
        request=AccessKeyRequestSerializer,
        responses={
            201: BindSessionResponseSerializer,
            400: ErrorResponseSerializer,
            403: ErrorResponseSerializer,
            404: ErrorResponseSerializer,
            503: ErrorResponseSerializer,
        },
    )
    def post(self, request: Request) -> Response:
        """Bind a session."""
        return async_to_sync(self._handle_bind)(request)

    async def _handle_bind(self, request: Request) -> Response:
        """Async handler for bind session."""
        with tracer.start_as_current_span("bind_session") as span:
            span.set_attribute("operation", "bind_session")

            serializer = AccessKeyRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return validation_error(span, serializer)

            access_key = serializer.validated_data["access_key"]
            span.set_attribute("access_key.prefix", access_key[:8])

            config = get_access_key_config()
            handler = BindSessionHandler(build_access_key_repository(config), config)
            result = await handler.handle(BindSessionCommand(access_key=access_key))

            span.set_attribute("session.id", result.session_id)
            span.set_attribute("sessions_remaining", result.sessions_remaining)
            span.set_status(Status(StatusCode.OK))
            return Response(
                BindSessionResponseSerializer(result).data, status=status.HTTP_201_CREATED
            )


class UnbindSessionView(APIView):
    """View for releasing a session."""

    @extend_schema(
        operation_id="unbind_session",
        summary="Unbind Session",
        description=(
            "Release a session slot. Unknown session ids are ignored; "
            "without a session id nothing is changed."
        ),
        tags=["Session API"],
        request=UnbindSessionRequestSerializer,
        responses={
            200: AccessKeyDTOSerializer,
            400: ErrorResponseSerializer,
            403: ErrorResponseSerializer,
            404: ErrorResponseSerializer,
            503: ErrorResponseSerializer,
        },
    )
    def post(self, request: Request) -> Response:
        """Unbind a session."""
        return async_to_sync(self._handle_unbind)(request)

    async def _handle_unbind(self, request: Request) -> Response:
        """Async handler for unbind session."""
        with tracer.start_as_current_span("unbind_session") as span:
            span.set_attribute("operation", "unbind_session")

            serializer = UnbindSessionRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return validation_error(span, serializer)

            access_key = serializer.validated_data["access_key"]
            session_id = serializer.validated_data.get("session_id") or None
            span.set_attribute("access_key.prefix", access_key[:8])
            if session_id:
                span.set_attribute("session.id", session_id)

            config = get_access_key_config()
            handler = UnbindSessionHandler(build_access_key_repository(config), config)
            result = await handler.handle(
                UnbindSessionCommand(access_key=access_key, session_id=session_id)
            )

            span.set_status(Status(StatusCode.OK))
            return Response(AccessKeyDTOSerializer(result).data, status=status.HTTP_200_OK)


class ValidateSessionView(APIView):
    """View for checking a session."""

    @extend_schema(
        operation_id="validate_session",
        summary="Validate Session",
        description=(
            "Check that an access key is still live for a session. "
            "A session on an expired or cancelled key is released."
        ),
        tags=["Session API"],
        request=ValidateSessionRequestSerializer,
        responses={
            200: ValidateSessionResponseSerializer,
            400: ErrorResponseSerializer,
            403: ErrorResponseSerializer,
            404: ErrorResponseSerializer,
            503: ErrorResponseSerializer,
        },
    )
    def post(self, request: Request) -> Response:
        """Validate a session."""
        return async_to_sync(self._handle_validate)(request)

    async def _handle_validate(self, request: Request) -> Response:
        """Async handler for validate session."""
        with tracer.start_as_current_span("validate_session") as span:
            span.set_attribute("operation", "validate_session")

            serializer = ValidateSessionRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return validation_error(span, serializer)

            access_key = serializer.validated_data["access_key"]
            session_id = serializer.validated_data.get("session_id") or None
            span.set_attribute("access_key.prefix", access_key[:8])

            config = get_access_key_config()
            handler = ValidateSessionHandler(build_access_key_repository(config), config)
            result = await handler.handle(
                ValidateSessionQuery(access_key=access_key, session_id=session_id)
            )

            span.set_attribute("session.bound", result.is_bound)
            span.set_status(Status(StatusCode.OK))
            return Response(
                ValidateSessionResponseSerializer(result).data, status=status.HTTP_200_OK
            )
