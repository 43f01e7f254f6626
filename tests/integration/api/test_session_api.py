"""
Integration tests for Session API endpoints.
"""

import pytest
from django.urls import reverse

from access_keys.infrastructure.models import AccessKey


@pytest.mark.django_db
@pytest.mark.integration
class TestSessionAPI:
    """Integration tests for bind, unbind and validate."""

    def bind(self, api_client, key):
        return api_client.post(reverse("bind-session"), {"access_key": key}, format="json")

    def test_bind_until_quota(self, api_client, db_access_key):
        key = db_access_key().access_key

        responses = [self.bind(api_client, key) for _ in range(4)]

        assert [r.status_code for r in responses] == [201, 201, 201, 403]
        assert responses[0].data["sessions_remaining"] == 2
        assert responses[2].data["sessions_remaining"] == 0
        assert responses[3].data["error"]["code"] == "SESSION_QUOTA_EXCEEDED"
        session_ids = [r.data["session_id"] for r in responses[:3]]
        assert sorted(AccessKey.objects.get(access_key=key).session_ids) == sorted(session_ids)

    def test_unbind_frees_slot(self, api_client, db_access_key):
        key = db_access_key(session_ids=["s1", "s2", "s3"]).access_key

        response = api_client.post(
            reverse("unbind-session"), {"access_key": key, "session_id": "s2"}, format="json"
        )

        assert response.status_code == 200
        assert response.data["session_ids"] == ["s1", "s3"]
        assert self.bind(api_client, key).status_code == 201

    def test_unbind_without_session_id(self, api_client, db_access_key):
        key = db_access_key(session_ids=["s1"]).access_key

        response = api_client.post(reverse("unbind-session"), {"access_key": key}, format="json")

        assert response.status_code == 200
        assert response.data["session_ids"] == ["s1"]

    def test_bind_expired_key(self, api_client, db_access_key):
        record = db_access_key(days_left=-1)

        response = self.bind(api_client, record.access_key)

        assert response.status_code == 403
        assert response.data["error"]["code"] == "KEY_INVALID"
        record.refresh_from_db()
        assert record.status == "EXPIRED"

    def test_validate_bound_session(self, api_client, db_access_key):
        key = db_access_key(session_ids=["s1"]).access_key

        response = api_client.post(
            reverse("validate-session"), {"access_key": key, "session_id": "s1"}, format="json"
        )

        assert response.status_code == 200
        assert response.data["valid"] is True
        assert response.data["is_bound"] is True
        assert response.data["user"]["access_key"] == key

    def test_validate_requires_session_id(self, api_client, db_access_key):
        key = db_access_key().access_key

        response = api_client.post(reverse("validate-session"), {"access_key": key}, format="json")

        assert response.status_code == 400
        assert response.data["error"]["code"] == "SESSION_ID_REQUIRED"

    def test_validate_expired_releases_session(self, api_client, db_access_key):
        record = db_access_key(days_left=-1, session_ids=["s1", "s2"])

        response = api_client.post(
            reverse("validate-session"),
            {"access_key": record.access_key, "session_id": "s1"},
            format="json",
        )

        assert response.status_code == 403
        assert response.data["error"]["code"] == "SUBSCRIPTION_EXPIRED"
        record.refresh_from_db()
        assert record.status == "EXPIRED"
        assert record.session_ids == ["s2"]

    def test_session_endpoints_disabled_in_login_mode(self, api_client, db_access_key, settings):
        settings.ACCESS_KEYS = {"ADMISSION_MODE": "login_count"}
        key = db_access_key().access_key

        response = self.bind(api_client, key)

        assert response.status_code == 404
        assert response.data["error"]["code"] == "ADMISSION_MODE_DISABLED"

    def test_store_unavailable(self, api_client, monkeypatch):
        from access_keys.infrastructure.repositories.django_access_key_repository import (
            DjangoAccessKeyRepository,
        )
        from core.domain.exceptions import StoreUnavailableError

        async def unavailable(self, access_key):
            raise StoreUnavailableError()

        monkeypatch.setattr(DjangoAccessKeyRepository, "get_by_access_key", unavailable)

        response = self.bind(api_client, "any-key")

        assert response.status_code == 503
        assert response["Retry-After"] == "1"
        assert response.data["error"]["code"] == "STORE_UNAVAILABLE"
