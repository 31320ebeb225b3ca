"""OTP HTTP router — validates requests and renders lifecycle outcomes.

Endpoints
---------
POST /      → ``{"userId", "phone"?, "otp"?, "action": "send" | "verify"}``
POST /otp   → same handler
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from sms_otp.config import Settings, settings
from sms_otp.database.repository import IdentityRepository
from sms_otp.database.store import DocumentStoreClient
from sms_otp.errors import InvalidOrExpired, OtpError
from sms_otp.services.credentials import AssertionSigner, ServiceAccountCredentials
from sms_otp.services.otp_lifecycle import OtpLifecycle
from sms_otp.services.sms_transport import build_sms_transport

logger = logging.getLogger(__name__)

router = APIRouter(tags=["otp"])

ACTION_SEND = "send"
ACTION_VERIFY = "verify"


# ── Request model ────────────────────────────────────────

class OtpRequest(BaseModel):
    userId: str | None = None
    phone: str | None = None
    otp: str | None = None
    action: str | None = None


# ── Wiring ───────────────────────────────────────────────

def build_lifecycle(config: Settings) -> OtpLifecycle:
    """Assemble the signer, store client, repository and transport."""
    signer = AssertionSigner(
        client_email=config.firebase_client_email,
        private_key_pem=config.firebase_private_key,
        audience=config.firestore_audience,
    )
    credentials = ServiceAccountCredentials(
        signer, refresh_margin=config.token_refresh_margin_seconds
    )
    store = DocumentStoreClient(
        credentials,
        project_id=config.firebase_project_id,
        host=config.firestore_host,
        timeout=config.http_timeout_seconds,
    )
    return OtpLifecycle(
        repository=IdentityRepository(store, collection=config.identity_collection),
        transport=build_sms_transport(config),
        ttl_minutes=config.otp_ttl_minutes,
    )


@lru_cache()
def get_lifecycle() -> OtpLifecycle:
    """Shared lifecycle instance (created once, reused across requests)."""
    return build_lifecycle(settings)


def _json(status_code: int, content: dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content)


# ── Endpoint ─────────────────────────────────────────────

@router.post("/")
@router.post("/otp")
async def handle_otp(
    body: OtpRequest, lifecycle: OtpLifecycle = Depends(get_lifecycle)
) -> JSONResponse:
    """Send or verify an SMS OTP for ``userId``."""
    if not body.userId:
        return _json(400, {"error": "userId required"})
    # Validated before the identity lookup so a bad action never hits the store.
    if body.action not in (ACTION_SEND, ACTION_VERIFY):
        return _json(400, {"error": "Action must be send or verify"})

    try:
        if body.action == ACTION_SEND:
            result = await lifecycle.send(body.userId, body.phone)
        else:
            result = await lifecycle.verify(body.userId, body.otp)
    except InvalidOrExpired as exc:
        return _json(exc.status_code, {"success": False, "message": exc.message})
    except OtpError as exc:
        return _json(exc.status_code, {"error": exc.message})
    except Exception as exc:
        # StoreError, TransportError, ConfigurationError and anything unexpected
        logger.exception("OTP %s failed for %s", body.action, body.userId)
        content = {"error": "Internal server error"}
        if settings.debug:
            content["details"] = str(exc)
        return _json(500, content)

    return _json(200, result.to_dict())
