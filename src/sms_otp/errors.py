"""Exception hierarchy shared by the signer, store client, transport and lifecycle."""

from __future__ import annotations


class ConfigurationError(Exception):
    """Credentials or keys are missing or malformed. Never retried."""


# ── User-facing outcomes ─────────────────────────────────

class OtpError(Exception):
    """Base class for expected, user-facing OTP failures."""

    message = "OTP request failed"
    status_code = 400

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class IdentityNotFound(OtpError):
    message = "User not found"
    status_code = 404


class NotEligible(OtpError):
    message = "2FA not enabled or phone not verified"
    status_code = 403


class MissingDestination(OtpError):
    message = "Phone required"


class MissingCode(OtpError):
    message = "OTP required"


class InvalidOrExpired(OtpError):
    message = "Invalid or expired OTP"


# ── Remote service failures ──────────────────────────────

class UpstreamError(Exception):
    """A remote service answered with a non-2xx status or could not be reached.

    ``status_code`` is ``None`` when no response was received (timeouts,
    connection errors).  ``body`` is the response text, verbatim.
    """

    service = "upstream"

    def __init__(self, status_code: int | None, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"{self.service} error {status_code}: {body}")


class StoreError(UpstreamError):
    service = "Firestore"


class TransportError(UpstreamError):
    service = "SMS transport"
