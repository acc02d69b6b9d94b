"""Domain-specific exceptions"""

from typing import Dict


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class RemoteAPIError(DomainException):
    """Remote API returned an error or is unreachable"""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthenticationError(RemoteAPIError):
    """Token rejected by the remote API (401/403)"""

    pass


class ValidationError(DomainException):
    """Client-side validation failed before any network call"""

    def __init__(self, errors: Dict[str, str]):
        super().__init__("; ".join(f"{field}: {error}" for field, error in errors.items()))
        self.errors = errors


class ActionInProgressError(DomainException):
    """The same action is already awaiting a server response"""

    def __init__(self, action: str):
        super().__init__(f"{action} is already in progress")
        self.action = action


class OnboardingError(DomainException):
    """Onboarding wizard cannot perform the requested transition"""

    pass


class CheckoutError(DomainException):
    """Base class for checkout failures surfaced to the user"""

    title = "Payment error"


class PaymentConfigurationError(CheckoutError):
    """Order response lacks the gateway key or order id"""

    title = "Payment error"


class PaymentFailedError(CheckoutError):
    """Gateway reported the payment as failed"""

    title = "Payment failed"


class PaymentVerificationError(CheckoutError):
    """Payment may have been captured but the server could not verify it"""

    title = "Verification failed"
