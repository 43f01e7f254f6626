"""
Domain exceptions.

Domain exceptions represent business rule violations
and domain-specific error conditions.
"""


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    def __init__(self, message: str, code: str = None):
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class AccessKeyException(DomainException):
    """Base exception for access key errors."""

    pass


class AccessKeyNotFoundError(AccessKeyException):
    """Raised when no record matches an access key or customer."""

    def __init__(self, message: str = "User not found"):
        super().__init__(message, code="NOT_FOUND")


class SubscriptionExpiredError(AccessKeyException):
    """Raised when the subscription window of a key has elapsed."""

    def __init__(self, message: str = "Subscription expired"):
        super().__init__(message, code="SUBSCRIPTION_EXPIRED")


class KeyInvalidError(AccessKeyException):
    """Raised when a key is not ACTIVE for a reason other than expiry."""

    def __init__(self, message: str = "Access key is not active"):
        super().__init__(message, code="KEY_INVALID")


class AdmissionException(DomainException):
    """Base exception for admission quota errors."""

    pass


class LoginLimitReachedError(AdmissionException):
    """Raised when a key has used all of its logins."""

    def __init__(self, message: str = "Maximum login limit reached"):
        super().__init__(message, code="LOGIN_LIMIT_REACHED")


class SessionQuotaExceededError(AdmissionException):
    """Raised when a key already holds the maximum number of sessions."""

    def __init__(self, message: str = "Maximum concurrent sessions reached"):
        super().__init__(message, code="SESSION_QUOTA_EXCEEDED")


class SessionIdRequiredError(AdmissionException):
    """Raised when a session id is required but missing."""

    def __init__(self, message: str = "session_id is required"):
        super().__init__(message, code="SESSION_ID_REQUIRED")


class AdmissionModeDisabledError(AdmissionException):
    """Raised when an operation belongs to an admission mode that is switched off."""

    def __init__(self, message: str = "Operation not available in this admission mode"):
        super().__init__(message, code="ADMISSION_MODE_DISABLED")


class StoreUnavailableError(DomainException):
    """
    Raised when the key store fails or times out.

    Distinct from AccessKeyNotFoundError: callers should retry.
    """

    def __init__(self, message: str = "Key store unavailable, retry later"):
        super().__init__(message, code="STORE_UNAVAILABLE")


class BillingException(DomainException):
    """Base exception for billing event errors."""

    pass


class IncompleteBillingEventError(BillingException):
    """Raised when a billing event lacks the data needed to issue a key."""

    def __init__(self, message: str = "Billing event is missing required data"):
        super().__init__(message, code="INCOMPLETE_BILLING_EVENT")
