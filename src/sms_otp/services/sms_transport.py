"""SMS transports — deliver a text body to a phone number."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import httpx

from sms_otp.config import Settings
from sms_otp.errors import TransportError

logger = logging.getLogger(__name__)


class SmsTransport(ABC):
    """Abstract base class for SMS delivery channels."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable transport name (used in logs)."""

    @abstractmethod
    async def send(self, destination: str, body: str) -> None:
        """Deliver *body* to *destination*.

        Raises
        ------
        TransportError
            When the provider rejects the message or cannot be reached.
        """


class TwilioSmsTransport(SmsTransport):
    """Sends SMS through the Twilio Messages REST API."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        base_url: str = "https://api.twilio.com/2010-04-01",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._url = f"{base_url.rstrip('/')}/Accounts/{account_sid}/Messages.json"
        self._timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "twilio"

    async def send(self, destination: str, body: str) -> None:
        form = {"To": destination, "From": self._from_number, "Body": body}
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    self._url,
                    data=form,
                    auth=(self._account_sid, self._auth_token),
                )
        except httpx.HTTPError as exc:
            logger.error("Twilio request error for %s: %s", destination, exc)
            raise TransportError(None, str(exc)) from exc

        if not resp.is_success:
            logger.error(
                "Failed to send SMS to %s: %s %s", destination, resp.status_code, resp.text
            )
            raise TransportError(resp.status_code, resp.text)
        logger.info("SMS sent to %s", destination)


class LoggingSmsTransport(SmsTransport):
    """Development transport: logs the message instead of sending it."""

    @property
    def name(self) -> str:
        return "log"

    async def send(self, destination: str, body: str) -> None:
        logger.warning("SMS credentials not set — message logged only: %s => %s", destination, body)


def build_sms_transport(settings: Settings) -> SmsTransport:
    """Pick Twilio when its credentials are configured, else the logging transport."""
    if settings.twilio_account_sid and settings.twilio_auth_token and settings.twilio_phone_number:
        return TwilioSmsTransport(
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            from_number=settings.twilio_phone_number,
            base_url=settings.twilio_base_url,
            timeout=settings.http_timeout_seconds,
        )
    logger.warning("TWILIO_* not set — using %s", LoggingSmsTransport.__name__)
    return LoggingSmsTransport()
