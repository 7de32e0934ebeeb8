"""Unit tests for the Twilio SMS gateway."""

from urllib.parse import parse_qs

import httpx

from settings import Settings
from sms import SmsGateway


def _config(**overrides):
    values = {
        "TWILIO_ACCOUNT_SID": "AC123",
        "TWILIO_AUTH_TOKEN": "token",
        "TWILIO_FROM_NUMBER": "+15550000000",
    }
    values.update(overrides)
    return Settings(**values)


class TestSmsGateway:

    async def test_unconfigured_gateway_skips(self):
        calls = []
        transport = httpx.MockTransport(lambda request: calls.append(request) or httpx.Response(201))
        gateway = SmsGateway(_config(TWILIO_AUTH_TOKEN=""), transport=transport)

        assert gateway.configured is False
        assert await gateway.send("+15551234567", "hi") is False
        assert calls == []

    async def test_posts_message_to_twilio(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["form"] = parse_qs(request.content.decode())
            seen["auth"] = request.headers.get("authorization", "")
            return httpx.Response(201, json={"sid": "SM1"})

        gateway = SmsGateway(_config(), transport=httpx.MockTransport(handler))
        sent = await gateway.send_design_liked("+15551234567", "ada", "Midnight Gown")

        assert sent is True
        assert seen["url"] == "https://api.twilio.com/2010-04-01/Accounts/AC123/Messages.json"
        assert seen["form"]["To"] == ["+15551234567"]
        assert seen["form"]["From"] == ["+15550000000"]
        assert seen["form"]["Body"][0].startswith('ada liked your design "Midnight Gown"')
        assert seen["auth"].startswith("Basic ")

    async def test_http_error_returns_false(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(400, json={"message": "bad number"}))
        gateway = SmsGateway(_config(), transport=transport)
        assert await gateway.send("not-a-number", "hi") is False

    async def test_network_error_returns_false(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        gateway = SmsGateway(_config(), transport=httpx.MockTransport(handler))
        assert await gateway.send("+15551234567", "hi") is False
