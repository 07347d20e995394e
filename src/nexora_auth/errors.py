"""Error taxonomy shared by the OTP core and the authentication flow."""

from __future__ import annotations

import enum


class OTPError(Exception):
    """Base class for OTP failures."""


class OTPCooldownError(OTPError):
    """Raised when a new code is requested while a recent one is outstanding."""

    def __init__(self, retry_after_seconds: int) -> None:
        super().__init__("Please wait before requesting a new verification code")
        self.retry_after_seconds = retry_after_seconds


class OTPIssueError(OTPError):
    """Raised when issuance fails for an unexpected internal reason."""


class OTPDeliveryError(OTPError):
    """Raised by a delivery transport; never invalidates a stored code."""


class DiagnosticsDisabledError(OTPError):
    """Raised when diagnostic reads are attempted outside development."""


class VerifyOutcome(enum.Enum):
    """Internal result of a verification attempt.

    Only ``VERIFIED`` is ever distinguishable by callers of
    :meth:`OTPManager.verify`; the rest exist for logging.
    """

    VERIFIED = "verified"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    ATTEMPTS_EXHAUSTED = "attempts_exhausted"
    INVALID_CANDIDATE = "invalid_candidate"


# ── Authentication flow ──────────────────────────────────


class AuthError(Exception):
    """Base class for errors surfaced to users of the auth flow."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(AuthError):
    status_code = 400


class InvalidCredentialsError(AuthError):
    status_code = 401

    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message)


class InvalidCodeError(AuthError):
    status_code = 400

    def __init__(self, message: str = "Invalid or expired OTP code") -> None:
        super().__init__(message)


class UserNotFoundError(AuthError):
    status_code = 404

    def __init__(self, message: str = "User not found") -> None:
        super().__init__(message)


class UserExistsError(AuthError):
    status_code = 409

    def __init__(self, message: str = "User already exists with this email") -> None:
        super().__init__(message)


class RateLimitedError(AuthError):
    status_code = 429

    def __init__(self, message: str, retry_after_seconds: int = 0) -> None:
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds
