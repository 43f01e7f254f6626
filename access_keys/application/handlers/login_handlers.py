"""
Login-count handlers.

Handlers for login, logout and fetch user under login-count admission.
"""
import logging

from access_keys.application.commands.login import LoginCommand, LogoutCommand
from access_keys.application.dto.access_key_dto import AccessKeyDTO
from access_keys.application.queries.fetch_user import FetchUserQuery
from access_keys.domain.access_key import utcnow
from access_keys.domain.config import AccessKeyConfig
from access_keys.domain.services import Clock, LoginAdmission, SessionAdmission
from access_keys.ports.access_key_repository import AccessKeyRepository
from core.domain.exceptions import AdmissionModeDisabledError
from core.domain.value_objects import AdmissionMode
from core.metrics import track_admission

logger = logging.getLogger(__name__)


def require_mode(config: AccessKeyConfig, mode: AdmissionMode) -> None:
    """
    Reject operations that belong to the admission mode not in use.

    Raises:
        AdmissionModeDisabledError: If config selects the other mode
    """
    if config.admission_mode != mode:
        raise AdmissionModeDisabledError(
            f"Operation requires {mode.value} admission, service runs {config.admission_mode.value}"
        )


class _LoginHandlerBase:
    def __init__(
        self,
        access_key_repository: AccessKeyRepository,
        config: AccessKeyConfig,
        clock: Clock = utcnow,
    ):
        """Initialize handler with repository and config."""
        self.config = config
        self.admission = LoginAdmission(access_key_repository, config, clock)


class LoginHandler(_LoginHandlerBase):
    """Handler for LoginCommand."""

    async def handle(self, command: LoginCommand) -> AccessKeyDTO:
        """
        Handle login command.

        Args:
            command: LoginCommand

        Returns:
            AccessKeyDTO with the incremented login count

        Raises:
            AccessKeyNotFoundError: If access key not found
            SubscriptionExpiredError: If the subscription has elapsed
            LoginLimitReachedError: If no logins are left
        """
        require_mode(self.config, AdmissionMode.LOGIN_COUNT)
        with track_admission("login"):
            record = await self.admission.login(command.access_key)
        logger.info(
            "Login accepted for %s... (%s/%s)",
            command.access_key[:8],
            record.login_count,
            self.config.max_logins,
        )
        return AccessKeyDTO.from_entity(record)


class LogoutHandler(_LoginHandlerBase):
    """Handler for LogoutCommand."""

    async def handle(self, command: LogoutCommand) -> AccessKeyDTO:
        """
        Handle logout command.

        Args:
            command: LogoutCommand

        Returns:
            AccessKeyDTO with the decremented login count

        Raises:
            AccessKeyNotFoundError: If access key not found
        """
        require_mode(self.config, AdmissionMode.LOGIN_COUNT)
        with track_admission("logout"):
            record = await self.admission.logout(command.access_key)
        logger.info("Logout for %s... (%s left)", command.access_key[:8], record.login_count)
        return AccessKeyDTO.from_entity(record)


class FetchUserHandler(_LoginHandlerBase):
    """Handler for FetchUserQuery."""

    def __init__(
        self,
        access_key_repository: AccessKeyRepository,
        config: AccessKeyConfig,
        clock: Clock = utcnow,
    ):
        """Initialize handler with the admission policy the config selects."""
        super().__init__(access_key_repository, config, clock)
        if config.admission_mode == AdmissionMode.SESSION_BINDING:
            self.admission = SessionAdmission(access_key_repository, config, clock)

    async def handle(self, query: FetchUserQuery) -> AccessKeyDTO:
        """
        Handle fetch user query.

        Available in both admission modes: it never touches counters.
        An expired key is persisted with the status its mode uses.

        Raises:
            AccessKeyNotFoundError: If access key not found
            SubscriptionExpiredError: If the subscription has elapsed
        """
        with track_admission("fetch_user"):
            record = await self.admission.fetch(query.access_key)
        return AccessKeyDTO.from_entity(record)
