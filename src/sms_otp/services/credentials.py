"""Service-account credentials — self-signed RS256 assertions for Firestore.

Instead of an OAuth token exchange, the service signs a short-lived JWT
with the service account's private key and presents it directly as a
bearer token (Google's "self-signed JWT" flow).
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from sms_otp.errors import ConfigurationError

logger = logging.getLogger(__name__)

FIRESTORE_AUDIENCE = "https://firestore.googleapis.com/"
ASSERTION_LIFETIME_SECONDS = 3600
SIGNING_ALGORITHM = "RS256"


@dataclass(frozen=True)
class SignedAssertion:
    """A compact-serialized JWT and the timestamps it was signed with."""

    token: str
    issued_at: int
    expires_at: int


def load_private_key(pem: str) -> RSAPrivateKey:
    """Parse a PKCS#8 PEM RSA key.

    Keys pasted into env vars usually carry literal ``\\n`` sequences;
    those are turned back into real newlines first.
    """
    if not pem:
        raise ConfigurationError("Service account private key is not configured")
    normalized = pem.replace("\\n", "\n").strip().encode()
    try:
        key = serialization.load_pem_private_key(normalized, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise ConfigurationError(f"Invalid service account private key: {exc}") from exc
    if not isinstance(key, RSAPrivateKey):
        raise ConfigurationError("Service account private key must be an RSA key")
    return key


class AssertionSigner:
    """Builds and signs the service-account assertion.

    Parameters
    ----------
    client_email:
        Service-account principal, used as both ``iss`` and ``sub``.
    private_key_pem:
        PKCS#8 PEM private key. Parsed lazily on the first :meth:`issue`.
    audience:
        ``aud`` claim; defaults to the Firestore audience.
    clock:
        Returns the current epoch time in seconds.
    """

    def __init__(
        self,
        client_email: str,
        private_key_pem: str,
        audience: str = FIRESTORE_AUDIENCE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client_email = client_email
        self._private_key_pem = private_key_pem
        self._audience = audience
        self._clock = clock
        self._key: RSAPrivateKey | None = None

    def _signing_key(self) -> RSAPrivateKey:
        if self._key is None:
            self._key = load_private_key(self._private_key_pem)
        return self._key

    def issue(self) -> SignedAssertion:
        """Return a freshly signed assertion valid for one hour."""
        if not self._client_email:
            raise ConfigurationError("Service account client email is not configured")

        now = int(self._clock())
        expiry = now + ASSERTION_LIFETIME_SECONDS
        claims = {
            "iss": self._client_email,
            "sub": self._client_email,
            "aud": self._audience,
            "iat": now,
            "exp": expiry,
        }
        try:
            token = jwt.encode(claims, self._signing_key(), algorithm=SIGNING_ALGORITHM)
        except (jwt.PyJWTError, ValueError, TypeError) as exc:
            raise ConfigurationError(f"Unable to sign service assertion: {exc}") from exc

        logger.debug("Signed assertion for %s (exp=%d)", self._client_email, expiry)
        return SignedAssertion(token=token, issued_at=now, expires_at=expiry)


class ServiceAccountCredentials:
    """Caches the last signed assertion and re-signs near expiry.

    A token is reused until fewer than ``refresh_margin`` seconds of its
    lifetime remain.
    """

    def __init__(
        self,
        signer: AssertionSigner,
        refresh_margin: int = 300,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._signer = signer
        self._refresh_margin = refresh_margin
        self._clock = clock
        self._current: SignedAssertion | None = None

    @property
    def current(self) -> SignedAssertion | None:
        return self._current

    def _is_fresh(self, assertion: SignedAssertion) -> bool:
        return self._clock() < assertion.expires_at - self._refresh_margin

    def token(self) -> str:
        """Return a bearer token, signing a new assertion if needed."""
        current = self._current
        if current is None or not self._is_fresh(current):
            current = self._signer.issue()
            self._current = current
            logger.info("Issued new service assertion (exp=%d)", current.expires_at)
        return current.token

    def invalidate(self) -> None:
        """Drop the cached assertion so the next call re-signs."""
        self._current = None
