"""
Unit tests for core middleware helpers.
"""

import pytest

from core.middleware.metrics import normalize_endpoint


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/v1/auth/login", "/v1/auth/login"),
        ("/v1/users/2f0c3b8e-5f7b-4c4f-9a41-0d1f3c6b2a11", "/v1/users/{access_key}"),
        ("/v1/users/any-key-format", "/v1/users/{access_key}"),
        ("/admin/access_keys/accesskey/42/change/", "/admin/access_keys/accesskey/{id}/change/"),
        (
            "/admin/access_keys/accesskey/2f0c3b8e-5f7b-4c4f-9a41-0d1f3c6b2a11/",
            "/admin/access_keys/accesskey/{id}/",
        ),
        ("/health/?verbose=1", "/health/"),
    ],
)
def test_normalize_endpoint(path, expected):
    assert normalize_endpoint(path) == expected
