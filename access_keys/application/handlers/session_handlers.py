"""
Session-binding handlers.

Handlers for bind, unbind and validate under session-binding admission.
"""
import logging

from access_keys.application.commands.session import BindSessionCommand, UnbindSessionCommand
from access_keys.application.dto.access_key_dto import (
    AccessKeyDTO,
    BindSessionResponseDTO,
    ValidateSessionResponseDTO,
)
from access_keys.application.handlers.login_handlers import require_mode
from access_keys.application.queries.validate_session import ValidateSessionQuery
from access_keys.domain.access_key import utcnow
from access_keys.domain.config import AccessKeyConfig
from access_keys.domain.services import Clock, SessionAdmission
from access_keys.ports.access_key_repository import AccessKeyRepository
from core.domain.value_objects import AdmissionMode
from core.metrics import track_admission

logger = logging.getLogger(__name__)


class _SessionHandlerBase:
    def __init__(
        self,
        access_key_repository: AccessKeyRepository,
        config: AccessKeyConfig,
        clock: Clock = utcnow,
    ):
        """Initialize handler with repository and config."""
        self.config = config
        self.admission = SessionAdmission(access_key_repository, config, clock)


class BindSessionHandler(_SessionHandlerBase):
    """Handler for BindSessionCommand."""

    async def handle(self, command: BindSessionCommand) -> BindSessionResponseDTO:
        """
        Handle bind session command.

        Args:
            command: BindSessionCommand

        Returns:
            BindSessionResponseDTO with the new session id

        Raises:
            AccessKeyNotFoundError: If access key not found
            KeyInvalidError: If the key is not active
            SessionQuotaExceededError: If every session slot is taken
        """
        require_mode(self.config, AdmissionMode.SESSION_BINDING)
        with track_admission("bind"):
            record, session_id = await self.admission.bind(command.access_key)

        logger.info(
            "Bound session %s to %s... (%s/%s)",
            session_id,
            command.access_key[:8],
            len(record.session_ids),
            self.config.max_sessions,
        )
        return BindSessionResponseDTO(
            session_id=session_id,
            sessions_remaining=max(0, self.config.max_sessions - len(record.session_ids)),
            user=AccessKeyDTO.from_entity(record),
        )


class UnbindSessionHandler(_SessionHandlerBase):
    """Handler for UnbindSessionCommand."""

    async def handle(self, command: UnbindSessionCommand) -> AccessKeyDTO:
        """
        Handle unbind session command.

        Raises:
            AccessKeyNotFoundError: If access key not found
            KeyInvalidError: If the key is not active
        """
        require_mode(self.config, AdmissionMode.SESSION_BINDING)
        with track_admission("unbind"):
            record = await self.admission.unbind(command.access_key, command.session_id)
        if command.session_id:
            logger.info("Unbound session %s from %s...", command.session_id, command.access_key[:8])
        return AccessKeyDTO.from_entity(record)


class ValidateSessionHandler(_SessionHandlerBase):
    """Handler for ValidateSessionQuery."""

    async def handle(self, query: ValidateSessionQuery) -> ValidateSessionResponseDTO:
        """
        Handle validate session query.

        Raises:
            SessionIdRequiredError: If no session id was given
            AccessKeyNotFoundError: If access key not found
            SubscriptionExpiredError: If the subscription has elapsed
            KeyInvalidError: If the key is not active
        """
        require_mode(self.config, AdmissionMode.SESSION_BINDING)
        with track_admission("validate_session"):
            record = await self.admission.validate_session(query.access_key, query.session_id)
        return ValidateSessionResponseDTO(
            valid=True,
            is_bound=record.has_session(query.session_id),
            session_id=query.session_id,
            user=AccessKeyDTO.from_entity(record),
        )
