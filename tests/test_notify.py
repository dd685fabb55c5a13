"""Tests for outcome notifications."""

import json

import httpx
import pytest
from unittest.mock import AsyncMock, patch


class TestAnnounce:
    """Tests for notify.announce."""

    @pytest.mark.asyncio
    async def test_logs_without_telegram(self, caplog):
        from missionbot import notify

        with patch("missionbot.notify.telegram.send_message", new=AsyncMock()) as send:
            with caplog.at_level("INFO"):
                await notify.announce("Claimed mission t-1 successfully.")

        send.assert_not_awaited()
        assert "Claimed mission t-1" in caplog.text

    @pytest.mark.asyncio
    async def test_needs_both_variables(self, monkeypatch):
        from missionbot import notify

        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "bot")
        with patch("missionbot.notify.telegram.send_message", new=AsyncMock()) as send:
            await notify.announce("hello")

        send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sends_when_configured(self, monkeypatch):
        from missionbot import notify

        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "bot")
        monkeypatch.setenv("TELEGRAM_CHAT_ID", "chat")
        with patch("missionbot.notify.telegram.send_message", new=AsyncMock()) as send:
            await notify.announce("hello")

        send.assert_awaited_once_with("hello", "bot", "chat")

    @pytest.mark.asyncio
    async def test_telegram_failure_is_logged(self, monkeypatch, caplog):
        from missionbot import notify

        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "bot")
        monkeypatch.setenv("TELEGRAM_CHAT_ID", "chat")
        with patch(
            "missionbot.notify.telegram.send_message",
            new=AsyncMock(side_effect=httpx.ConnectError("down")),
        ):
            await notify.announce("hello")

        assert "Telegram notification failed" in caplog.text


class TestTelegram:
    """Tests for the Telegram client."""

    @pytest.mark.asyncio
    async def test_posts_to_chat(self):
        from missionbot.integrations import telegram

        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            result = await telegram.send_message("hi", "bot123", "42", client=client)

        assert result == {"ok": True}
        assert seen[0].url.path == "/botbot123/sendMessage"
        body = json.loads(seen[0].content)
        assert body["chat_id"] == "42"
        assert body["text"] == "hi"

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        from missionbot.integrations import telegram

        transport = httpx.MockTransport(lambda request: httpx.Response(400))
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(httpx.HTTPStatusError):
                await telegram.send_message("hi", "bot", "42", client=client)
