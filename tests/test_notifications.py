import json

import httpx
import pytest

from app.core.config import get_settings
from app.services.notifications import new_account_message, send_telegram


@pytest.fixture
def telegram_configured(monkeypatch):
    monkeypatch.setattr(get_settings(), "telegram_bot_token", "123:abc")
    monkeypatch.setattr(get_settings(), "telegram_chat_id", "42")


async def test_not_configured_is_skipped():
    assert await send_telegram("hi") is False


async def test_message_is_posted(telegram_configured):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((str(request.url), json.loads(request.content)))
        return httpx.Response(200, json={"ok": True})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        assert await send_telegram("<b>hi</b>", client=client) is True
    url, payload = seen[0]
    assert url == "https://api.telegram.org/bot123:abc/sendMessage"
    assert payload == {"chat_id": "42", "text": "<b>hi</b>", "parse_mode": "HTML"}


async def test_failures_are_swallowed(telegram_configured):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        assert await send_telegram("hi", client=client) is False


async def test_new_account_message_escapes_fields(account):
    account.name = "<script>"
    text = new_account_message(account)
    assert "&lt;script&gt;" in text
    assert "20 token" in text
