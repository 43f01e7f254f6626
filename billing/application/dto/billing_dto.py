"""
Billing DTOs for webhook responses.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class BillingEventOutcome(Enum):
    """What the service did with a billing event."""

    PROCESSED = "processed"
    IGNORED = "ignored"


@dataclass
class BillingEventResult:
    """DTO for the result of handling one billing event."""

    outcome: BillingEventOutcome
    event_type: str
    access_key: Optional[str] = None
    is_renewal: Optional[bool] = None
    reason: Optional[str] = None

    @property
    def processed(self) -> bool:
        return self.outcome == BillingEventOutcome.PROCESSED
