# sms.py
import logging
from typing import Optional

import httpx

from settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


class SmsGateway:
    """
    Best-effort text messages through the Twilio REST API.

    `send` reports delivery with a boolean and logs failures; callers
    treat a False result as informational only.
    """

    def __init__(self, config: Settings = default_settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.account_sid = config.TWILIO_ACCOUNT_SID
        self.auth_token = config.TWILIO_AUTH_TOKEN
        self.from_number = config.TWILIO_FROM_NUMBER
        self.timeout = config.SMS_HTTP_TIMEOUT
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    async def send(self, to: str, body: str) -> bool:
        if not self.configured:
            logger.warning(f"SMS skipped for {to}: Twilio credentials are not configured.")
            return False

        url = TWILIO_MESSAGES_URL.format(sid=self.account_sid)
        data = {"From": self.from_number, "To": to, "Body": body}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, data=data, auth=(self.account_sid, self.auth_token))
                response.raise_for_status()
        except (httpx.RequestError, httpx.HTTPStatusError) as e:
            logger.error(f"SMS to {to} failed ({type(e).__name__}): {e}")
            return False

        logger.info(f"📱 SMS sent to {to}")
        return True

    async def send_design_liked(self, to: str, liker_name: str, design_title: str) -> bool:
        return await self.send(to, f'{liker_name} liked your design "{design_title}" on StyleGallery.')
