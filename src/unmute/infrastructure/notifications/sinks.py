"""
Notification Sinks

Outbound e-mail (Resend) and SMS (Twilio) delivery over httpx.
Includes retries on transport errors.

SECURITY: API keys and auth tokens must never be logged.
Recipient addresses are logged only in masked form.
"""

from abc import ABC, abstractmethod
from typing import Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from unmute.config.logging_config import get_logger
from unmute.domain.enums.workflow import NotificationChannel
from unmute.domain.exceptions import NotificationDeliveryFailure
from unmute.infrastructure.metrics import track_notification
from unmute.infrastructure.notifications.message import CrisisNotification

logger = get_logger(__name__)


RESEND_API_URL = "https://api.resend.com/emails"
TWILIO_API_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


def mask_recipient(recipient: str) -> str:
    """Keep only enough of an address to tell recipients apart."""
    if "@" in recipient:
        local, _, domain = recipient.partition("@")
        return f"{local[:2]}***@{domain}"
    return f"***{recipient[-4:]}"


class NotificationSink(ABC):
    """Delivers a notification to a single recipient on one channel."""

    @property
    @abstractmethod
    def channel(self) -> NotificationChannel:
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials are present."""
        pass

    @abstractmethod
    async def send(self, recipient: str, notification: CrisisNotification) -> None:
        """
        Send to one recipient.

        Raises:
            NotificationDeliveryFailure: The provider rejected the
                request or could not be reached
        """
        pass


class ResendEmailSink(NotificationSink):
    """
    E-mail via the Resend REST API.

    Usage:
        async with httpx.AsyncClient() as client:
            sink = ResendEmailSink(api_key, sender, client)
            await sink.send("counsellor@school.edu", notification)
    """

    def __init__(
        self,
        api_key: str,
        sender: str,
        client: httpx.AsyncClient,
        api_url: str = RESEND_API_URL,
    ) -> None:
        self._api_key = api_key
        self._sender = sender
        self._client = client
        self._api_url = api_url

    @property
    def channel(self) -> NotificationChannel:
        return NotificationChannel.EMAIL

    def is_configured(self) -> bool:
        return bool(self._api_key)

    @track_notification("email")
    async def send(self, recipient: str, notification: CrisisNotification) -> None:
        payload = {
            "from": self._sender,
            "to": [recipient],
            "subject": notification.email_subject(),
            "html": notification.email_html(),
        }
        try:
            response = await self._post(payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise NotificationDeliveryFailure("email", mask_recipient(recipient), str(e)) from e

        logger.info("Crisis e-mail sent", recipient=mask_recipient(recipient))

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _post(self, payload: dict) -> httpx.Response:
        return await self._client.post(
            self._api_url,
            json=payload,
            headers={"Authorization": f"Bearer {self._api_key}"},
        )


class TwilioSmsSink(NotificationSink):
    """SMS via the Twilio Messages REST API."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        client: httpx.AsyncClient,
        api_url: Optional[str] = None,
    ) -> None:
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._client = client
        self._api_url = api_url or TWILIO_API_URL.format(sid=account_sid)

    @property
    def channel(self) -> NotificationChannel:
        return NotificationChannel.SMS

    def is_configured(self) -> bool:
        return bool(self._account_sid and self._auth_token and self._from_number)

    @track_notification("sms")
    async def send(self, recipient: str, notification: CrisisNotification) -> None:
        form = {
            "To": recipient,
            "From": self._from_number,
            "Body": notification.sms_body(),
        }
        try:
            response = await self._post(form)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise NotificationDeliveryFailure("sms", mask_recipient(recipient), str(e)) from e

        logger.info("Crisis SMS sent", recipient=mask_recipient(recipient))

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _post(self, form: dict) -> httpx.Response:
        return await self._client.post(
            self._api_url,
            data=form,
            auth=(self._account_sid, self._auth_token),
        )
