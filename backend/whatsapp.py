# backend/whatsapp.py
import logging
from typing import Any, Dict, Optional

import httpx

from composer import ReminderComposer
from phone import is_dialable

logger = logging.getLogger(__name__)


class WhatsAppSender:
    """
    Sends WhatsApp messages through the UltraMsg HTTP API.

    Every public method returns True/False and never raises: provider,
    transport and configuration problems are logged and reported as a
    failed send.
    """

    def __init__(
        self,
        instance_id: Optional[str],
        token: Optional[str],
        media_url: Optional[str] = None,
        api_base: str = "https://api.ultramsg.com",
        timeout: float = 15.0,
        min_phone_length: int = 11,
        composer: Optional[ReminderComposer] = None,
    ):
        self.instance_id = instance_id
        self.token = token
        self.media_url = media_url
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.min_phone_length = min_phone_length
        self.composer = composer or ReminderComposer()

        if not self.is_configured:
            logger.warning("UltraMsg credentials missing. Set ULTRAMSG_TOKEN and ULTRAMSG_INSTANCE_ID.")

    @classmethod
    def from_settings(cls, settings) -> "WhatsAppSender":
        return cls(
            instance_id=settings.ultramsg_instance_id,
            token=settings.ultramsg_token,
            media_url=settings.reminder_media_url,
            api_base=settings.ultramsg_api_base,
            timeout=settings.send_timeout_seconds,
            min_phone_length=settings.min_phone_length,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.instance_id and self.token)

    def _messages_url(self, kind: str) -> str:
        return f"{self.api_base}/instance{self.instance_id}/messages/{kind}"

    def _check_phone(self, phone: str) -> bool:
        if is_dialable(phone, self.min_phone_length):
            return True
        logger.error(f"Invalid phone number {phone!r}; expected a normalized number starting with '+'")
        return False

    async def _post(self, kind: str, payload: Dict[str, Any]) -> bool:
        if not self.is_configured:
            logger.error("Cannot send WhatsApp message: UltraMsg credentials are not configured")
            return False

        url = self._messages_url(kind)
        data = {"token": self.token, **payload}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, data=data)
        except httpx.TimeoutException:
            logger.error(f"Timeout sending WhatsApp {kind} message to {payload.get('to')}")
            return False
        except httpx.HTTPError as e:
            logger.error(f"Connection error sending WhatsApp {kind} message: {e}")
            return False
        except Exception as e:
            logger.error(f"Unexpected error sending WhatsApp {kind} message: {e}")
            return False

        if not response.is_success:
            logger.error(f"UltraMsg API error {response.status_code}: {response.text}")
            return False

        try:
            result = response.json()
        except ValueError:
            logger.error(f"Malformed UltraMsg response: {response.text}")
            return False

        if isinstance(result, dict) and result.get("error"):
            logger.error(f"UltraMsg rejected {kind} message: {result['error']}")
            return False

        logger.info(f"WhatsApp {kind} message sent to {payload.get('to')}: {result}")
        return True

    async def send_text(self, phone: str, body: str) -> bool:
        """Send a plain chat message."""
        if not self._check_phone(phone):
            return False
        if not body:
            logger.error("Refusing to send an empty WhatsApp message")
            return False

        return await self._post("chat", {"to": phone, "body": body})

    async def send_media_with_caption(self, phone: str, media_url: str, caption: str) -> bool:
        """Send an image by URL with an optional caption."""
        if not self._check_phone(phone):
            return False
        if not media_url:
            logger.error("Cannot send WhatsApp image: media URL is missing")
            return False

        payload = {"to": phone, "image": media_url}
        if caption:
            payload["caption"] = caption
        return await self._post("image", payload)

    async def send_reminder(
        self,
        phone: str,
        client_name: str,
        date: str,
        time: str,
        service: str,
        weekday: str,
        lang: str = "ar",
    ) -> bool:
        """
        Send the appointment reminder as the salon image with a caption.

        There is no plain-text fallback for reminders.
        """
        if not self.media_url:
            logger.error("ULTRAMSG_IMAGE_URL missing; cannot send reminder image")
            return False

        caption = self.composer.compose(client_name, date, time, service, weekday, lang)
        return await self.send_media_with_caption(phone, self.media_url, caption)
