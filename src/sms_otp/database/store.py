"""Firestore REST client — authenticated document reads and masked patches.

Every request carries a bearer token from
:class:`~sms_otp.services.credentials.ServiceAccountCredentials` and every
body goes through :mod:`sms_otp.database.codec`, so callers only ever see
native Python values.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from sms_otp.database import codec
from sms_otp.errors import StoreError
from sms_otp.services.credentials import ServiceAccountCredentials

logger = logging.getLogger(__name__)

UPDATE_MASK_PARAM = "updateMask.fieldPaths"


class DocumentStoreClient:
    """Async HTTP wrapper around the Firestore documents endpoint."""

    def __init__(
        self,
        credentials: ServiceAccountCredentials,
        project_id: str,
        host: str = "firestore.googleapis.com",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._credentials = credentials
        self._base_url = (
            f"https://{host}/v1/projects/{project_id}/databases/(default)/documents"
        )
        self._timeout = timeout
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    # ── Operations ───────────────────────────────────────

    async def get(self, path: str) -> dict[str, Any] | None:
        """Fetch and decode the document at *path* (e.g. ``users/u1``).

        Returns ``None`` for a document with no fields.
        """
        data = await self._request("GET", path)
        return codec.decode(data)

    async def patch(
        self,
        path: str,
        fields: Mapping[str, Any],
        update_mask: Sequence[str],
    ) -> dict[str, Any] | None:
        """Write *fields* to the document at *path*, touching only *update_mask*.

        Without a mask Firestore replaces the whole document, so an empty
        mask, or a field outside it, is rejected.
        """
        if not update_mask:
            raise ValueError("patch requires a non-empty update mask")
        unmasked = set(fields) - set(update_mask)
        if unmasked:
            raise ValueError(f"Fields outside update mask: {sorted(unmasked)}")

        params = [(UPDATE_MASK_PARAM, name) for name in update_mask]
        data = await self._request("PATCH", path, params=params, body=codec.encode(fields))
        return codec.decode(data)

    # ── Private helpers ──────────────────────────────────

    async def _request(
        self,
        method: str,
        path: str,
        params: list[tuple[str, str]] | None = None,
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self._base_url}/{path.lstrip('/')}"
        headers = {
            "Authorization": f"Bearer {self._credentials.token()}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.request(
                    method, url, params=params, json=body, headers=headers
                )
        except httpx.HTTPError as exc:
            logger.error("Firestore %s %s request error: %s", method, path, exc)
            raise StoreError(None, str(exc)) from exc

        if resp.is_success:
            return resp.json()
        logger.error(
            "Firestore %s %s failed: %s %s", method, path, resp.status_code, resp.text
        )
        raise StoreError(resp.status_code, resp.text)
