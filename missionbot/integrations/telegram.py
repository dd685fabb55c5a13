"""Telegram Bot API client used for outcome notifications."""

from typing import Any, Optional

import httpx

API_URL = "https://api.telegram.org/bot{bot_token}/sendMessage"


async def send_message(
    text: str,
    bot_token: str,
    chat_id: str,
    client: Optional[httpx.AsyncClient] = None,
) -> dict[str, Any]:
    """Post a plain-text message to one chat.

    A short-lived client is opened when none is passed in.
    """
    if client is None:
        async with httpx.AsyncClient(timeout=10) as own_client:
            return await send_message(text, bot_token, chat_id, client=own_client)

    response = await client.post(
        API_URL.format(bot_token=bot_token),
        json={"chat_id": chat_id, "text": text, "disable_web_page_preview": True},
    )
    response.raise_for_status()
    return response.json()
