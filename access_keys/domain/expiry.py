"""
Expiry evaluation for access keys.

Expiration is detected lazily: every admission operation evaluates the
record against the current time before touching counters, and persists
the downgraded status itself. Nothing here performs I/O.
"""
import calendar
from dataclasses import dataclass
from datetime import datetime

from access_keys.domain.access_key import AccessKey
from core.domain.value_objects import AccessKeyStatus


@dataclass(frozen=True)
class ExpiryDecision:
    """Outcome of evaluating a key at a point in time."""

    effective_status: AccessKeyStatus
    needs_writeback: bool = False

    @property
    def is_admissible(self) -> bool:
        return self.effective_status == AccessKeyStatus.ACTIVE

    @property
    def is_expired(self) -> bool:
        return self.effective_status == AccessKeyStatus.EXPIRED


class ExpiryEvaluator:
    """Domain service deciding the effective status of a key."""

    @staticmethod
    def evaluate(record: AccessKey, now: datetime) -> ExpiryDecision:
        """
        Evaluate a key at the given time.

        Args:
            record: AccessKey entity
            now: Current time

        Returns:
            ExpiryDecision; needs_writeback is set when the stored status
            lags behind an elapsed window
        """
        if record.status == AccessKeyStatus.CANCELLED:
            return ExpiryDecision(AccessKeyStatus.CANCELLED)
        if now >= record.sub_to:
            return ExpiryDecision(
                AccessKeyStatus.EXPIRED,
                needs_writeback=record.status != AccessKeyStatus.EXPIRED,
            )
        return ExpiryDecision(record.status)


def add_months(moment: datetime, months: int) -> datetime:
    """
    Add calendar months, clamping to the last day of a shorter month.

    Jan 31 + 1 month is Feb 28 (or 29 in a leap year).
    """
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)
