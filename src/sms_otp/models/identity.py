"""Identity record — the per-user document read from and patched into Firestore."""

from __future__ import annotations

import hmac
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

# ── Document field names ─────────────────────────────────
PHONE_FIELD = "phone"
PHONE_VERIFIED_FIELD = "isPhoneVerified"
TWO_FACTOR_FIELD = "is2FAEnabled"
OTP_CODE_FIELD = "currentOtpCode"
OTP_EXPIRES_FIELD = "otpExpiresAt"

OTP_FIELDS = (OTP_CODE_FIELD, OTP_EXPIRES_FIELD)


class OtpState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"


@dataclass(frozen=True)
class PendingOtp:
    """An issued, not yet consumed code."""

    code: str
    expires_at: datetime

    def is_valid(self, candidate: str, now: datetime) -> bool:
        return (
            hmac.compare_digest(self.code.encode(), candidate.encode())
            and now < self.expires_at
        )


@dataclass(frozen=True)
class IdentityRecord:
    """Represents one user's identity document.

    The two stored OTP fields are folded into ``pending``: it is set only
    when both ``currentOtpCode`` and ``otpExpiresAt`` are present, so a
    half-written record reads as idle.
    """

    user_id: str
    is_phone_verified: bool = False
    is_2fa_enabled: bool = False
    phone: str | None = None
    pending: PendingOtp | None = None

    @classmethod
    def from_fields(cls, user_id: str, fields: dict[str, Any]) -> IdentityRecord:
        code = fields.get(OTP_CODE_FIELD)
        expires_at = fields.get(OTP_EXPIRES_FIELD)
        pending = None
        if isinstance(code, str) and isinstance(expires_at, datetime):
            pending = PendingOtp(code=code, expires_at=expires_at)
        phone = fields.get(PHONE_FIELD)
        return cls(
            user_id=user_id,
            is_phone_verified=fields.get(PHONE_VERIFIED_FIELD) is True,
            is_2fa_enabled=fields.get(TWO_FACTOR_FIELD) is True,
            phone=phone if isinstance(phone, str) and phone else None,
            pending=pending,
        )

    @property
    def state(self) -> OtpState:
        return OtpState.PENDING if self.pending else OtpState.IDLE

    @property
    def can_receive_otp(self) -> bool:
        return self.is_phone_verified and self.is_2fa_enabled

    # ── Transitions ──────────────────────────────────────

    def issue(self, code: str, now: datetime, ttl: timedelta) -> IdentityRecord:
        """IDLE|PENDING → PENDING with a fresh code; replaces any previous one."""
        return replace(self, pending=PendingOtp(code=code, expires_at=now + ttl))

    def consume(self) -> IdentityRecord:
        """PENDING → IDLE."""
        if self.pending is None:
            raise ValueError(f"No pending OTP for {self.user_id}")
        return replace(self, pending=None)

    def otp_fields(self) -> dict[str, Any]:
        """The masked-patch payload that persists the current OTP state."""
        if self.pending is None:
            return {OTP_CODE_FIELD: None, OTP_EXPIRES_FIELD: None}
        return {
            OTP_CODE_FIELD: self.pending.code,
            OTP_EXPIRES_FIELD: self.pending.expires_at,
        }

    def __repr__(self) -> str:
        return f"<IdentityRecord user_id={self.user_id!r} state={self.state.value}>"
