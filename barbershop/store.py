"""Conversation storage.

The controller never touches a module-level dict: it is handed a
``ConversationStore`` owned by the running service.  Only an in-memory
implementation ships; anything persistent or shared between processes
implements the same ABC.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional, Union

from barbershop.models.conversation import UserConversation

log = logging.getLogger("barbershop.store")

ChatId = Union[int, str]


class ConversationStore(ABC):
    """Abstract per-chat conversation store.

    Implementations hand out copies: mutating a returned record has no
    effect until it is passed back to :meth:`save`.
    """

    @abstractmethod
    async def get(self, chat_id: ChatId) -> Optional[UserConversation]:
        """Return the record for ``chat_id`` or None if the chat is new."""

    @abstractmethod
    async def save(self, chat_id: ChatId, conversation: UserConversation) -> None:
        """Create or replace the record for ``chat_id``."""

    @abstractmethod
    async def delete(self, chat_id: ChatId) -> bool:
        """Remove the record for ``chat_id``.

        Returns:
            True if a record existed.
        """

    @abstractmethod
    async def all(self) -> dict[ChatId, UserConversation]:
        """Return a snapshot of every stored record keyed by chat id."""


class InMemoryConversationStore(ConversationStore):
    """Dict-backed store; contents live as long as the instance."""

    def __init__(self) -> None:
        self._records: dict[ChatId, UserConversation] = {}

    async def get(self, chat_id: ChatId) -> Optional[UserConversation]:
        record = self._records.get(chat_id)
        return record.model_copy() if record is not None else None

    async def save(self, chat_id: ChatId, conversation: UserConversation) -> None:
        self._records[chat_id] = conversation.model_copy()

    async def delete(self, chat_id: ChatId) -> bool:
        existed = self._records.pop(chat_id, None) is not None
        if existed:
            log.debug("Conversation record deleted (total: %d)", len(self._records))
        return existed

    async def all(self) -> dict[ChatId, UserConversation]:
        return {k: v.model_copy() for k, v in self._records.items()}

    def __len__(self) -> int:
        return len(self._records)
