"""Shared fixtures: an in-memory document store, a recording SMS transport and an RSA key."""

from __future__ import annotations

import asyncio
import copy
from datetime import UTC, datetime
from typing import Any

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from sms_otp.database import codec
from sms_otp.database.repository import IdentityRepository
from sms_otp.errors import StoreError, TransportError
from sms_otp.services.otp_lifecycle import OtpLifecycle
from sms_otp.services.sms_transport import SmsTransport

FIXED_NOW = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


class InMemoryDocumentStore:
    """Mimics the Firestore REST semantics the client relies on.

    Documents are held in wire form so every read and write goes through
    the codec. ``get`` yields to the event loop after taking its snapshot,
    which lets concurrent callers interleave like real network calls.
    """

    def __init__(self) -> None:
        self.documents: dict[str, dict[str, Any]] = {}
        self.patches: list[tuple[str, dict[str, Any], tuple[str, ...]]] = []

    def put(self, path: str, fields: dict[str, Any]) -> None:
        self.documents[path] = codec.encode(fields)

    def fields(self, path: str) -> dict[str, Any] | None:
        return codec.decode(self.documents.get(path))

    async def get(self, path: str) -> dict[str, Any] | None:
        if path not in self.documents:
            raise StoreError(404, '{"error": {"code": 404, "status": "NOT_FOUND"}}')
        snapshot = copy.deepcopy(self.documents[path])
        await asyncio.sleep(0)
        return codec.decode(snapshot)

    async def patch(
        self, path: str, fields: dict[str, Any], update_mask: tuple[str, ...]
    ) -> dict[str, Any] | None:
        self.patches.append((path, dict(fields), tuple(update_mask)))
        await asyncio.sleep(0)
        body = codec.encode(fields)["fields"]
        doc = self.documents.setdefault(path, {"fields": {}})
        for name in update_mask:
            if name in body:
                doc["fields"][name] = body[name]
            else:
                doc["fields"].pop(name, None)
        return codec.decode(doc)


class RecordingSmsTransport(SmsTransport):
    """Collects messages instead of sending them; optionally fails."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[tuple[str, str]] = []
        self.fail = fail

    @property
    def name(self) -> str:
        return "recording"

    async def send(self, destination: str, body: str) -> None:
        if self.fail:
            raise TransportError(400, '{"code": 21211, "message": "Invalid To number"}')
        self.sent.append((destination, body))


@pytest.fixture
def store() -> InMemoryDocumentStore:
    store = InMemoryDocumentStore()
    store.put(
        "users/u1",
        {
            "phone": "+1555",
            "isPhoneVerified": True,
            "is2FAEnabled": True,
            "displayName": "Alice Johnson",
            "loginCount": 7,
        },
    )
    store.put(
        "users/unverified",
        {"phone": "+1666", "isPhoneVerified": False, "is2FAEnabled": True},
    )
    return store


@pytest.fixture
def sms() -> RecordingSmsTransport:
    return RecordingSmsTransport()


@pytest.fixture
def clock():
    """Mutable clock: set ``clock.now`` to move time."""

    class _Clock:
        now = FIXED_NOW

        def __call__(self) -> datetime:
            return self.now

    return _Clock()


@pytest.fixture
def lifecycle(store, sms, clock) -> OtpLifecycle:
    return OtpLifecycle(
        repository=IdentityRepository(store),
        transport=sms,
        clock=clock,
    )


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_key) -> str:
    """PKCS#8 PEM with newlines escaped, as it arrives from an env var."""
    pem = rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    return pem.replace("\n", "\\n")
