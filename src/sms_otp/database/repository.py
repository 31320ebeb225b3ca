"""Identity repository — data access layer for identity documents."""

from __future__ import annotations

import logging
from typing import Any, Protocol
from urllib.parse import quote

from sms_otp.errors import StoreError
from sms_otp.models.identity import OTP_FIELDS, IdentityRecord

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    async def get(self, path: str) -> dict[str, Any] | None: ...

    async def patch(
        self, path: str, fields: dict[str, Any], update_mask: tuple[str, ...]
    ) -> Any: ...


class IdentityRepository:
    """Encapsulates all document-store access for identity records."""

    def __init__(self, store: DocumentStore, collection: str = "users") -> None:
        self._store = store
        self._collection = collection

    def _path(self, user_id: str) -> str:
        return f"{self._collection}/{quote(user_id, safe='')}"

    async def find_by_id(self, user_id: str) -> IdentityRecord | None:
        """Look up an identity record by user ID.

        A missing document (HTTP 404) or one with no fields yields ``None``;
        any other store failure propagates.
        """
        try:
            fields = await self._store.get(self._path(user_id))
        except StoreError as exc:
            if exc.status_code == 404:
                return None
            raise
        if fields is None:
            return None
        return IdentityRecord.from_fields(user_id, fields)

    async def save_otp_state(self, record: IdentityRecord) -> None:
        """Persist ``currentOtpCode`` / ``otpExpiresAt`` only (masked write)."""
        await self._store.patch(self._path(record.user_id), record.otp_fields(), OTP_FIELDS)
        logger.debug("Saved OTP state %s for %s", record.state.value, record.user_id)
