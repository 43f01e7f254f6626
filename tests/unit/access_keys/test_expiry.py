"""
Unit tests for ExpiryEvaluator and month arithmetic.
"""

from datetime import datetime, timedelta, timezone

import pytest

from access_keys.domain.expiry import ExpiryEvaluator, add_months
from core.domain.value_objects import AccessKeyStatus


class TestExpiryEvaluator:
    """Tests for ExpiryEvaluator."""

    def test_active_within_window(self, make_access_key, clock):
        record = make_access_key(days_left=5)

        decision = ExpiryEvaluator.evaluate(record, clock.now)

        assert decision.effective_status == AccessKeyStatus.ACTIVE
        assert decision.is_admissible is True
        assert decision.needs_writeback is False

    def test_window_end_is_exclusive(self, make_access_key):
        record = make_access_key(days_left=5)

        decision = ExpiryEvaluator.evaluate(record, record.sub_to)

        assert decision.is_expired is True
        assert decision.needs_writeback is True

    def test_just_before_window_end(self, make_access_key):
        record = make_access_key(days_left=5)
        decision = ExpiryEvaluator.evaluate(record, record.sub_to - timedelta(microseconds=1))
        assert decision.is_admissible is True

    def test_already_expired_needs_no_writeback(self, make_access_key, clock):
        record = make_access_key(days_left=-1, status=AccessKeyStatus.EXPIRED)

        decision = ExpiryEvaluator.evaluate(record, clock.now)

        assert decision.is_expired is True
        assert decision.needs_writeback is False

    def test_inactive_past_window_is_expired(self, make_access_key, clock):
        record = make_access_key(days_left=-1, status=AccessKeyStatus.INACTIVE)
        decision = ExpiryEvaluator.evaluate(record, clock.now)
        assert decision.is_expired is True
        assert decision.needs_writeback is True

    def test_cancelled_wins_over_expiry(self, make_access_key, clock):
        record = make_access_key(days_left=-1, status=AccessKeyStatus.CANCELLED)

        decision = ExpiryEvaluator.evaluate(record, clock.now)

        assert decision.effective_status == AccessKeyStatus.CANCELLED
        assert decision.is_expired is False
        assert decision.needs_writeback is False

    def test_inactive_within_window_not_admissible(self, make_access_key, clock):
        record = make_access_key(status=AccessKeyStatus.INACTIVE)
        decision = ExpiryEvaluator.evaluate(record, clock.now)
        assert decision.effective_status == AccessKeyStatus.INACTIVE
        assert decision.is_admissible is False


class TestAddMonths:
    """Tests for add_months."""

    @pytest.mark.parametrize(
        "start, months, expected",
        [
            (datetime(2024, 1, 15), 1, datetime(2024, 2, 15)),
            (datetime(2024, 1, 31), 1, datetime(2024, 2, 29)),
            (datetime(2023, 1, 31), 1, datetime(2023, 2, 28)),
            (datetime(2024, 3, 31), 1, datetime(2024, 4, 30)),
            (datetime(2024, 12, 15), 1, datetime(2025, 1, 15)),
            (datetime(2024, 5, 10), 12, datetime(2025, 5, 10)),
            (datetime(2024, 11, 30), 3, datetime(2025, 2, 28)),
        ],
    )
    def test_add_months(self, start, months, expected):
        assert add_months(start, months) == expected

    def test_keeps_time_and_timezone(self):
        start = datetime(2024, 1, 31, 23, 59, 30, tzinfo=timezone.utc)
        result = add_months(start, 1)
        assert result == datetime(2024, 2, 29, 23, 59, 30, tzinfo=timezone.utc)
        assert result.tzinfo is timezone.utc
