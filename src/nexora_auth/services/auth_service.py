"""Authentication flow — signup / login / OTP verification."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from nexora_auth.database.repository import UserRepository
from nexora_auth.errors import (
    InvalidCodeError,
    InvalidCredentialsError,
    InvalidInputError,
    RateLimitedError,
    UserExistsError,
    UserNotFoundError,
)
from nexora_auth.models.user import User
from nexora_auth.security.otp_manager import OTPManager
from nexora_auth.security.passwords import hash_password, verify_password
from nexora_auth.security.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 8

# Rate-limiter key prefixes
SIGNUP_KEY = "signup"
LOGIN_KEY = "login"
OTP_KEY = "otp"


def normalize_email(raw: str | None) -> str:
    return str(raw or "").strip().lower()


@dataclass
class AuthChallenge:
    """Returned once credentials are accepted and an OTP has been issued."""

    email: str
    is_login: bool
    code: str


class AuthService:
    """Drives account signup and login, both gated by an emailed OTP.

    Flow
    ----
    1. ``signup`` creates an unverified customer and issues a code.
    2. ``login`` checks the password and issues a code.
    3. ``verify_otp`` checks the code; on signup the account is marked
       verified.  Every step is throttled per email by the rate limiter.
    """

    def __init__(
        self,
        session: AsyncSession,
        otp_manager: OTPManager,
        rate_limiter: RateLimiter,
    ) -> None:
        self._users = UserRepository(session)
        self._otp = otp_manager
        self._limiter = rate_limiter

    async def signup(self, email: str, password: str) -> AuthChallenge:
        email = normalize_email(email)
        self._admit(SIGNUP_KEY, email, "Too many signup attempts. Please try again later.")

        if not email or not password:
            raise InvalidInputError("Email and password are required")
        if not EMAIL_RE.match(email):
            raise InvalidInputError("Please enter a valid email address")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidInputError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )

        if await self._users.find_by_email(email):
            raise UserExistsError()

        await self._users.create(email, hash_password(password))
        logger.info("User created: %s", email)

        code = await self._otp.issue(email)
        return AuthChallenge(email=email, is_login=False, code=code)

    async def login(self, email: str, password: str) -> AuthChallenge:
        email = normalize_email(email)
        self._admit(LOGIN_KEY, email, "Too many login attempts. Please try again later.")

        if not email or not password:
            raise InvalidInputError("Email and password are required")

        user = await self._users.find_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Rejected login for %s", email)
            raise InvalidCredentialsError()

        # Every sign-in requires a second factor
        code = await self._otp.issue(email)
        logger.info("OTP issued for login verification: %s", email)
        return AuthChallenge(email=email, is_login=True, code=code)

    async def verify_otp(self, email: str, code: str, *, is_login: bool) -> User:
        email = normalize_email(email)
        self._admit(OTP_KEY, email, "Too many verification attempts. Please try again later.")

        if not email or not code:
            raise InvalidInputError("Email and OTP code are required")

        if not self._otp.verify(email, code):
            raise InvalidCodeError()

        if not is_login:
            await self._users.mark_verified(email)

        user = await self._users.find_by_email(email)
        if user is None:
            raise UserNotFoundError()

        logger.info(
            "OTP verified for %s: %s", "login" if is_login else "signup", email
        )
        return user

    def _admit(self, prefix: str, email: str, message: str) -> None:
        key = f"{prefix}:{email}"
        if not self._limiter.is_allowed(key):
            raise RateLimitedError(message, retry_after_seconds=self._limiter.retry_after(key))
