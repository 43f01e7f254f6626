"""
Integration tests for the issue_access_key management command.
"""

from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from access_keys.infrastructure.models import AccessKey


@pytest.mark.django_db(transaction=True)
@pytest.mark.integration
class TestIssueAccessKeyCommand:
    """Integration tests for issue_access_key."""

    def test_issues_key(self):
        out = StringIO()

        call_command("issue_access_key", "--email", "buyer@example.com", "--months", "3", stdout=out)

        record = AccessKey.objects.get(email="buyer@example.com")
        assert "Issued access key" in out.getvalue()
        assert record.access_key in out.getvalue()
        assert record.status == "ACTIVE"
        assert (record.sub_to - record.sub_from).days >= 89

    def test_renews_existing_key(self):
        call_command("issue_access_key", "--email", "buyer@example.com", stdout=StringIO())
        out = StringIO()

        call_command("issue_access_key", "--email", "BUYER@example.com", stdout=out)

        assert AccessKey.objects.count() == 1
        assert "Renewed access key" in out.getvalue()

    def test_notify_sends_email(self, mailoutbox):
        call_command(
            "issue_access_key", "--email", "buyer@example.com", "--notify", stdout=StringIO()
        )

        assert len(mailoutbox) == 1
        assert mailoutbox[0].to == ["buyer@example.com"]

    def test_invalid_email(self):
        with pytest.raises(CommandError, match="INCOMPLETE_BILLING_EVENT"):
            call_command("issue_access_key", "--email", "not-an-email", stdout=StringIO())

    def test_invalid_months(self):
        with pytest.raises(CommandError):
            call_command(
                "issue_access_key", "--email", "buyer@example.com", "--months", "0", stdout=StringIO()
            )
