"""
Unit tests for access key command and query handlers.
"""

import pytest

from access_keys.application.commands.login import LoginCommand, LogoutCommand
from access_keys.application.commands.session import BindSessionCommand, UnbindSessionCommand
from access_keys.application.handlers.login_handlers import (
    FetchUserHandler,
    LoginHandler,
    LogoutHandler,
)
from access_keys.application.handlers.session_handlers import (
    BindSessionHandler,
    UnbindSessionHandler,
    ValidateSessionHandler,
)
from access_keys.application.queries.fetch_user import FetchUserQuery
from access_keys.application.queries.validate_session import ValidateSessionQuery
from core.domain.exceptions import (
    AccessKeyNotFoundError,
    AdmissionModeDisabledError,
    SubscriptionExpiredError,
)
from core.domain.value_objects import AccessKeyStatus


@pytest.mark.asyncio
class TestLoginHandlers:
    """Tests for login-count handlers."""

    async def test_login_returns_dto(self, repository, login_config, clock, make_access_key):
        record = make_access_key(email="dev@example.com")
        handler = LoginHandler(repository, login_config, clock)

        dto = await handler.handle(LoginCommand(access_key=record.access_key))

        assert dto.access_key == record.access_key
        assert dto.email == "dev@example.com"
        assert dto.status == "ACTIVE"
        assert dto.login_count == 1
        assert dto.session_ids == []
        assert dto.sub_to == record.sub_to

    async def test_logout_returns_dto(self, repository, login_config, clock, make_access_key):
        record = make_access_key(login_count=3)
        handler = LogoutHandler(repository, login_config, clock)

        dto = await handler.handle(LogoutCommand(access_key=record.access_key))

        assert dto.login_count == 2

    async def test_login_disabled_in_session_mode(self, repository, config, clock, make_access_key):
        record = make_access_key()

        with pytest.raises(AdmissionModeDisabledError):
            await LoginHandler(repository, config, clock).handle(LoginCommand(record.access_key))
        with pytest.raises(AdmissionModeDisabledError):
            await LogoutHandler(repository, config, clock).handle(LogoutCommand(record.access_key))
        assert repository.writes == 0


@pytest.mark.asyncio
class TestFetchUserHandler:
    """Tests for FetchUserHandler."""

    async def test_fetch_in_both_modes(self, repository, config, login_config, clock, make_access_key):
        record = make_access_key(login_count=2)

        for mode_config in (config, login_config):
            dto = await FetchUserHandler(repository, mode_config, clock).handle(
                FetchUserQuery(access_key=record.access_key)
            )
            assert dto.login_count == 2

        assert repository.writes == 0

    async def test_fetch_unknown(self, repository, config, clock):
        with pytest.raises(AccessKeyNotFoundError):
            await FetchUserHandler(repository, config, clock).handle(FetchUserQuery("missing"))

    @pytest.mark.parametrize(
        "use_login_mode, expected",
        [(False, AccessKeyStatus.EXPIRED), (True, AccessKeyStatus.INACTIVE)],
    )
    async def test_fetch_expired_persists_mode_status(
        self, repository, config, login_config, clock, make_access_key, use_login_mode, expected
    ):
        record = make_access_key(days_left=-2)
        handler = FetchUserHandler(repository, login_config if use_login_mode else config, clock)

        with pytest.raises(SubscriptionExpiredError):
            await handler.handle(FetchUserQuery(record.access_key))

        assert repository.records[record.access_key].status == expected


@pytest.mark.asyncio
class TestSessionHandlers:
    """Tests for session-binding handlers."""

    async def test_bind_reports_remaining_slots(self, repository, config, clock, make_access_key):
        record = make_access_key(session_ids=["s1"])
        handler = BindSessionHandler(repository, config, clock)

        result = await handler.handle(BindSessionCommand(access_key=record.access_key))

        assert result.sessions_remaining == 1
        assert result.session_id in result.user.session_ids
        assert len(result.user.session_ids) == 2

    async def test_unbind_returns_user(self, repository, config, clock, make_access_key):
        record = make_access_key(session_ids=["s1", "s2"])
        handler = UnbindSessionHandler(repository, config, clock)

        dto = await handler.handle(UnbindSessionCommand(record.access_key, "s1"))

        assert dto.session_ids == ["s2"]

    async def test_validate_reports_binding(self, repository, config, clock, make_access_key):
        record = make_access_key(session_ids=["s1"])
        handler = ValidateSessionHandler(repository, config, clock)

        bound = await handler.handle(ValidateSessionQuery(record.access_key, "s1"))
        unbound = await handler.handle(ValidateSessionQuery(record.access_key, "s9"))

        assert bound.valid is True
        assert bound.is_bound is True
        assert bound.session_id == "s1"
        assert unbound.valid is True
        assert unbound.is_bound is False

    async def test_session_handlers_disabled_in_login_mode(
        self, repository, login_config, clock, make_access_key
    ):
        record = make_access_key()

        with pytest.raises(AdmissionModeDisabledError):
            await BindSessionHandler(repository, login_config, clock).handle(
                BindSessionCommand(record.access_key)
            )
        with pytest.raises(AdmissionModeDisabledError):
            await UnbindSessionHandler(repository, login_config, clock).handle(
                UnbindSessionCommand(record.access_key, "s1")
            )
        with pytest.raises(AdmissionModeDisabledError):
            await ValidateSessionHandler(repository, login_config, clock).handle(
                ValidateSessionQuery(record.access_key, "s1")
            )
