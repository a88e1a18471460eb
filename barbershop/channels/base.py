"""MessageChannel ABC, the only way the controller talks to the outside.

The controller knows nothing about Telegram.  It hands plain text and a
chat identity to a MessageChannel, and the channel is responsible for
delivering it over its transport (Telegram Bot API, a test recorder,
etc.).
"""

from abc import ABC, abstractmethod
from typing import Union


class MessageChannel(ABC):
    """Abstract outbound text channel."""

    @abstractmethod
    async def send_message(self, chat_id: Union[int, str], text: str) -> None:
        """Deliver ``text`` to ``chat_id``.

        Delivery errors are raised to the caller; channels do not retry.
        """
