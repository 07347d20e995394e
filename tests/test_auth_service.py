"""Tests for the AuthService — verifies the full signup / login flow."""

from __future__ import annotations

import pytest

from nexora_auth.database.repository import UserRepository
from nexora_auth.errors import (
    InvalidCodeError,
    InvalidCredentialsError,
    InvalidInputError,
    OTPCooldownError,
    RateLimitedError,
    UserExistsError,
)
from nexora_auth.security.otp_manager import OTPManager
from nexora_auth.security.passwords import hash_password
from nexora_auth.security.rate_limiter import RateLimiter
from nexora_auth.services.auth_service import AuthService


@pytest.fixture
def otp_manager(clock) -> OTPManager:
    return OTPManager(clock=clock)


@pytest.fixture
def rate_limiter(clock) -> RateLimiter:
    return RateLimiter(window_ms=900_000, max_requests=5, clock=clock)


@pytest.fixture
def service(db_session, otp_manager, rate_limiter) -> AuthService:
    return AuthService(db_session, otp_manager, rate_limiter)


# ──────────────────────────────────────────────────────────
# Signup
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_signup_then_verify_marks_user_verified(service, db_session):
    challenge = await service.signup("  Carol@Example.com ", "s3cret-pass")

    assert challenge.email == "carol@example.com"
    assert challenge.is_login is False
    user = await UserRepository(db_session).find_by_email("carol@example.com")
    assert user.is_verified is False

    user = await service.verify_otp("carol@example.com", challenge.code, is_login=False)
    assert user.is_verified is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("email", "password", "message"),
    [
        ("", "s3cret-pass", "required"),
        ("not-an-email", "s3cret-pass", "valid email"),
        ("dan@example.com", "short", "at least 8"),
    ],
)
async def test_signup_validation(service, email, password, message):
    with pytest.raises(InvalidInputError, match=message):
        await service.signup(email, password)


@pytest.mark.asyncio
async def test_signup_existing_user(service, db_session):
    await UserRepository(db_session).create("dan@example.com", hash_password("whatever1"))
    with pytest.raises(UserExistsError):
        await service.signup("dan@example.com", "s3cret-pass")


# ──────────────────────────────────────────────────────────
# Login
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_login_issues_challenge(service, db_session, clock):
    await UserRepository(db_session).create("erin@example.com", hash_password("s3cret-pass"))

    challenge = await service.login("erin@example.com", "s3cret-pass")
    assert challenge.is_login is True

    user = await service.verify_otp("erin@example.com", challenge.code, is_login=True)
    assert user.email == "erin@example.com"


@pytest.mark.asyncio
async def test_login_wrong_password_and_unknown_user_look_alike(service, db_session):
    await UserRepository(db_session).create("erin@example.com", hash_password("s3cret-pass"))

    with pytest.raises(InvalidCredentialsError) as wrong_password:
        await service.login("erin@example.com", "bad-password")
    with pytest.raises(InvalidCredentialsError) as unknown_user:
        await service.login("ghost@example.com", "s3cret-pass")

    assert wrong_password.value.message == unknown_user.value.message


@pytest.mark.asyncio
async def test_repeat_login_within_cooldown(service, db_session):
    await UserRepository(db_session).create("erin@example.com", hash_password("s3cret-pass"))
    await service.login("erin@example.com", "s3cret-pass")

    with pytest.raises(OTPCooldownError):
        await service.login("erin@example.com", "s3cret-pass")


@pytest.mark.asyncio
async def test_login_is_rate_limited(service, clock):
    for _ in range(5):
        with pytest.raises(InvalidCredentialsError):
            await service.login("ghost@example.com", "whatever1")

    with pytest.raises(RateLimitedError) as excinfo:
        await service.login("ghost@example.com", "whatever1")
    assert excinfo.value.retry_after_seconds == 900


# ──────────────────────────────────────────────────────────
# Verification
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_wrong_expired_and_missing_codes_share_one_message(service, db_session, clock):
    await UserRepository(db_session).create("erin@example.com", hash_password("s3cret-pass"))
    challenge = await service.login("erin@example.com", "s3cret-pass")

    wrong = "100000" if challenge.code != "100000" else "100001"
    with pytest.raises(InvalidCodeError) as mismatch:
        await service.verify_otp("erin@example.com", wrong, is_login=True)

    clock.advance(301)
    with pytest.raises(InvalidCodeError) as expired:
        await service.verify_otp("erin@example.com", challenge.code, is_login=True)

    with pytest.raises(InvalidCodeError) as missing:
        await service.verify_otp("nobody@example.com", "123456", is_login=True)

    assert mismatch.value.message == expired.value.message == missing.value.message


@pytest.mark.asyncio
async def test_verify_requires_code(service):
    with pytest.raises(InvalidInputError):
        await service.verify_otp("erin@example.com", "", is_login=True)
