"""OTP lifecycle — issue, persist, deliver and verify one-time passcodes.

Each identity has a single OTP slot stored on its Firestore document.
``send`` moves the record to PENDING (replacing any earlier code) and
texts the code; a successful ``verify`` moves it back to IDLE.

Known non-guarantees:

* If SMS delivery fails after the code was stored, the stored code stays
  valid until it expires; nothing is rolled back.
* Verification is a read followed by a separate write, so two concurrent
  verifies of the same live code can both succeed.
* There is no attempt counter, lockout or resend cooldown.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from sms_otp.database.repository import IdentityRepository
from sms_otp.errors import (
    IdentityNotFound,
    InvalidOrExpired,
    MissingCode,
    MissingDestination,
    NotEligible,
)
from sms_otp.models.identity import IdentityRecord
from sms_otp.services.sms_transport import SmsTransport

logger = logging.getLogger(__name__)

OTP_MIN = 100000
OTP_MAX = 999999
DEFAULT_TTL_MINUTES = 5

MESSAGE_TEMPLATE = "Your verification code is: {code}. It will expire in {minutes} minutes."


def generate_otp() -> str:
    """Return a 6-digit code drawn uniformly from 100000..999999."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class OtpResult:
    """Value object returned by a successful lifecycle operation."""

    message: str
    expires_in: str | None = None
    success: bool = True

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.expires_in is not None:
            data["expiresIn"] = self.expires_in
        return data


class OtpLifecycle:
    """Sends and verifies OTPs for identities held in the document store."""

    def __init__(
        self,
        repository: IdentityRepository,
        transport: SmsTransport,
        ttl_minutes: int = DEFAULT_TTL_MINUTES,
        clock: Callable[[], datetime] = _utcnow,
        code_factory: Callable[[], str] = generate_otp,
    ) -> None:
        self._repository = repository
        self._transport = transport
        self._ttl_minutes = ttl_minutes
        self._clock = clock
        self._code_factory = code_factory

    @property
    def expires_in(self) -> str:
        return f"{self._ttl_minutes} minutes"

    async def _load(self, user_id: str) -> IdentityRecord:
        record = await self._repository.find_by_id(user_id)
        if record is None:
            logger.info("Identity %s not found", user_id)
            raise IdentityNotFound()
        return record

    # ── Send ─────────────────────────────────────────────

    async def send(self, user_id: str, phone: str | None = None) -> OtpResult:
        """Issue a new code for *user_id* and text it to *phone*.

        Unlike a request-only rule, a missing *phone* falls back to the
        ``phone`` attribute stored on the identity record; ``MissingDestination``
        is raised only when both are absent.
        """
        record = await self._load(user_id)

        if not record.can_receive_otp:
            logger.info("Identity %s not eligible for SMS OTP", user_id)
            raise NotEligible()

        destination = phone or record.phone
        if not destination:
            raise MissingDestination()

        issued = record.issue(
            self._code_factory(), self._clock(), timedelta(minutes=self._ttl_minutes)
        )
        await self._repository.save_otp_state(issued)

        body = MESSAGE_TEMPLATE.format(code=issued.pending.code, minutes=self._ttl_minutes)
        await self._transport.send(destination, body)

        logger.info(
            "OTP sent to %s for %s via %s", destination, user_id, self._transport.name
        )
        return OtpResult(message="OTP sent via SMS", expires_in=self.expires_in)

    # ── Verify ───────────────────────────────────────────

    async def verify(self, user_id: str, otp: str | None) -> OtpResult:
        """Check *otp* against the stored code and consume it on success."""
        record = await self._load(user_id)

        if not otp:
            raise MissingCode()

        if record.pending is None or not record.pending.is_valid(otp, self._clock()):
            logger.info("OTP verification failed for %s", user_id)
            raise InvalidOrExpired()

        await self._repository.save_otp_state(record.consume())
        logger.info("OTP verified for %s", user_id)
        return OtpResult(message="OTP verified successfully")
