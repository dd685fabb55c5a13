"""Outcome notifications: always to the log, to Telegram when configured."""

import logging
import os

import httpx

from .integrations import telegram

logger = logging.getLogger(__name__)


def telegram_target() -> tuple[str, str]:
    """Bot token and chat id, read at call time. Empty strings when unset."""
    return os.environ.get("TELEGRAM_BOT_TOKEN", ""), os.environ.get("TELEGRAM_CHAT_ID", "")


async def announce(text: str) -> None:
    logger.info(text)
    bot_token, chat_id = telegram_target()
    if not (bot_token and chat_id):
        return
    try:
        await telegram.send_message(text, bot_token, chat_id)
    except httpx.HTTPError as e:
        logger.warning(f"Telegram notification failed: {e}")
