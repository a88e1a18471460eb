"""TelegramChannel: MessageChannel backed by python-telegram-bot.

Chat identities are Telegram chat ids.  Customers always arrive with a
numeric id; the admin chat comes from configuration as a string and may
also be a public ``@channelusername``, which the Bot API accepts as-is.
"""

from __future__ import annotations

import logging
from typing import Union

from telegram import Bot

from barbershop.channels.base import MessageChannel

log = logging.getLogger("barbershop.telegram_channel")


def normalize_chat_id(chat_id: Union[int, str]) -> Union[int, str]:
    """Turn numeric strings (``"-1001234"``) into ints, leave usernames alone."""
    if isinstance(chat_id, str):
        candidate = chat_id.strip()
        if candidate.lstrip("-").isdigit():
            return int(candidate)
        return candidate
    return chat_id


class TelegramChannel(MessageChannel):
    """Send plain-text messages through a ``telegram.Bot``.

    Usage::

        application = Application.builder().token(token).build()
        channel = TelegramChannel(application.bot)
        await channel.send_message(123456789, "Hello!")
    """

    def __init__(self, bot: Bot):
        self._bot = bot

    @property
    def bot(self) -> Bot:
        return self._bot

    async def send_message(self, chat_id: Union[int, str], text: str) -> None:
        """Send ``text`` via the Bot API.

        ``telegram.error.TelegramError`` propagates to the caller.
        """
        await self._bot.send_message(chat_id=normalize_chat_id(chat_id), text=text)
        log.debug("Sent %d chars", len(text))
