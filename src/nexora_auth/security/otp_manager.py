"""In-memory one-time-password manager with expiry, cooldown and attempt cap."""

from __future__ import annotations

import asyncio
import hmac
import logging
import math
import secrets
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from functools import partial
from threading import Lock

from nexora_auth.errors import (
    DiagnosticsDisabledError,
    OTPCooldownError,
    OTPIssueError,
    VerifyOutcome,
)

logger = logging.getLogger(__name__)

OTP_MIN = 100_000
OTP_MAX = 999_999

Deliverer = Callable[[str, str], Awaitable[None]]
Clock = Callable[[], float]


def generate_code() -> str:
    """Return a uniformly random code in ``[100000, 999999]``."""
    return str(secrets.randbelow(OTP_MAX - OTP_MIN + 1) + OTP_MIN)


@dataclass
class OTPRecord:
    """One outstanding verification challenge."""

    code: str
    created_at: float
    expires_at: float
    attempts: int = 0

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


@dataclass
class OTPStatus:
    """Diagnostic snapshot of the challenge held for one identifier."""

    exists: bool
    store_size: int
    code: str | None = None
    attempts: int = 0
    max_attempts: int = 0
    attempts_remaining: int = 0
    seconds_remaining: int = 0
    is_expired: bool = False
    created_at: datetime | None = None
    expires_at: datetime | None = None


class OTPManager:
    """Issues and verifies six-digit codes keyed by recipient identifier.

    The table lives in process memory only.  Every read-modify-write on it
    happens under ``_lock`` so the periodic sweep and request handlers
    running on other threads never interleave.

    Parameters
    ----------
    ttl_seconds:
        Lifetime of a code.
    cooldown_seconds:
        Minimum age of an outstanding code before a new one may replace it.
    max_attempts:
        Verification attempts tolerated per code; the next one fails.
    deliver:
        Optional ``async (recipient, code)`` callable.  Runs as a detached
        task; its failure is logged and leaves the stored code valid.
    clock:
        Returns the current time in seconds.
    diagnostics_enabled:
        Whether :meth:`status` and :meth:`self_test` may be used.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = 300,
        cooldown_seconds: float = 60,
        max_attempts: int = 3,
        deliver: Deliverer | None = None,
        clock: Clock = time.time,
        diagnostics_enabled: bool = False,
    ) -> None:
        self._ttl = ttl_seconds
        self._cooldown = cooldown_seconds
        self._max_attempts = max_attempts
        self._deliver = deliver
        self._clock = clock
        self._diagnostics_enabled = diagnostics_enabled
        self._store: dict[str, OTPRecord] = {}
        self._lock = Lock()
        self._pending: set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._store)

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    # ── Issuance ─────────────────────────────────────────

    async def issue(self, identifier: str) -> str:
        """Create and store a fresh code for *identifier* and return it.

        Raises :class:`OTPCooldownError` if a code younger than the cooldown
        is still outstanding; the existing record is left untouched.  Any
        other failure is wrapped in :class:`OTPIssueError`.
        """
        if not identifier or not identifier.strip():
            raise ValueError("identifier must be a non-empty string")

        try:
            code = self._store_new_record(identifier)
        except OTPCooldownError:
            raise
        except Exception as exc:
            logger.exception("Failed to issue OTP for %s", identifier)
            raise OTPIssueError("Failed to issue verification code") from exc

        if self._deliver is None:
            logger.info("OTP for %s: %s (delivery disabled)", identifier, code)
        else:
            task = asyncio.create_task(self._deliver(identifier, code))
            self._pending.add(task)
            task.add_done_callback(partial(self._on_delivery_done, identifier))
        return code

    def _store_new_record(self, identifier: str) -> str:
        now = self._clock()
        with self._lock:
            existing = self._store.get(identifier)
            if existing is not None and not existing.is_expired(now):
                age = now - existing.created_at
                if age < self._cooldown:
                    retry_after = max(1, math.ceil(self._cooldown - age))
                    logger.info(
                        "OTP cooldown active for %s (%ss left)", identifier, retry_after
                    )
                    raise OTPCooldownError(retry_after)

            code = generate_code()
            self._store[identifier] = OTPRecord(
                code=code, created_at=now, expires_at=now + self._ttl
            )
            replaced = existing is not None

        logger.info(
            "OTP issued for %s%s", identifier, " (replaced previous code)" if replaced else ""
        )
        return code

    def _on_delivery_done(self, identifier: str, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.warning("OTP delivery for %s was cancelled; code remains valid", identifier)
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "OTP delivery failed for %s: %s; code remains valid", identifier, exc
            )
        else:
            logger.info("OTP delivered to %s", identifier)

    async def wait_for_deliveries(self) -> None:
        """Wait until every in-flight delivery task has finished."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ── Verification ─────────────────────────────────────

    def check(self, identifier: str, candidate: str) -> VerifyOutcome:
        """Consume one attempt against *identifier* and report what happened."""
        now = self._clock()
        with self._lock:
            record = self._store.get(identifier)
            if record is None:
                outcome = VerifyOutcome.NOT_FOUND
            elif record.is_expired(now):
                del self._store[identifier]
                outcome = VerifyOutcome.EXPIRED
            else:
                record.attempts += 1
                if record.attempts > self._max_attempts:
                    del self._store[identifier]
                    outcome = VerifyOutcome.ATTEMPTS_EXHAUSTED
                elif not hmac.compare_digest(
                    record.code.strip().encode(), candidate.strip().encode()
                ):
                    outcome = VerifyOutcome.INVALID_CANDIDATE
                else:
                    del self._store[identifier]
                    outcome = VerifyOutcome.VERIFIED

        logger.info("OTP verification for %s: %s", identifier, outcome.value)
        return outcome

    def verify(self, identifier: str, candidate: str) -> bool:
        """Return ``True`` only if *candidate* is the live code for *identifier*.

        Missing, expired, exhausted and mismatched challenges all yield
        ``False``.
        """
        return self.check(identifier, candidate) is VerifyOutcome.VERIFIED

    # ── Maintenance ──────────────────────────────────────

    def discard(self, identifier: str) -> None:
        with self._lock:
            self._store.pop(identifier, None)

    def sweep_expired(self) -> int:
        """Remove records past their expiry and return how many were dropped."""
        now = self._clock()
        with self._lock:
            expired = [key for key, rec in self._store.items() if rec.is_expired(now)]
            for key in expired:
                del self._store[key]
        return len(expired)

    # ── Diagnostics (development only) ───────────────────

    def _require_diagnostics(self) -> None:
        if not self._diagnostics_enabled:
            raise DiagnosticsDisabledError("OTP diagnostics are only available in development")

    def status(self, identifier: str) -> OTPStatus:
        self._require_diagnostics()
        now = self._clock()
        with self._lock:
            record = self._store.get(identifier)
            size = len(self._store)
            if record is None:
                return OTPStatus(exists=False, store_size=size)
            return OTPStatus(
                exists=True,
                store_size=size,
                code=record.code,
                attempts=record.attempts,
                max_attempts=self._max_attempts,
                attempts_remaining=max(0, self._max_attempts - record.attempts),
                seconds_remaining=max(0, int(record.expires_at - now)),
                is_expired=record.is_expired(now),
                created_at=datetime.fromtimestamp(record.created_at, UTC),
                expires_at=datetime.fromtimestamp(record.expires_at, UTC),
            )

    async def self_test(self, identifier: str) -> dict:
        """Discard, issue and immediately verify a code for *identifier*."""
        self._require_diagnostics()
        logger.info("Running OTP self-test for %s", identifier)
        self.discard(identifier)
        code = await self.issue(identifier)
        verified = self.verify(identifier, code)
        return {
            "success": verified,
            "code": code,
            "verification_result": verified,
            "final_status": self.status(identifier),
        }
