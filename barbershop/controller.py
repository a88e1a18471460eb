"""Per-chat booking conversation: the state machine behind the bot.

Every inbound message for a chat identity is fed to
:meth:`ConversationController.handle_message`; the cancel command goes
to :meth:`ConversationController.handle_cancel`.  The controller:

  1. Loads the chat's UserConversation from the store (None = new chat)
  2. Advances it one step: name → time → booked
  3. Saves (or deletes) the record
  4. Sends at most two messages: one to the customer, and on booking or
     cancellation one to the admin chat

Handling is serialised per chat identity with an asyncio.Lock, so two
updates from the same chat never interleave even if the transport
delivers them concurrently.  Different chats run independently, and a
chat's lock is dropped once no handler holds or awaits it.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from typing import Optional

from barbershop import messages
from barbershop.business_hours import is_well_formed, is_within_business_hours
from barbershop.channels.base import MessageChannel
from barbershop.config import settings
from barbershop.models.conversation import ConversationState, UserConversation
from barbershop.store import ChatId, ConversationStore

log = logging.getLogger("barbershop.controller")


class AdminChatNotConfigured(RuntimeError):
    """An admin notification is due but ADMIN_CHAT_ID is empty."""


def redact_pii(value: object) -> str:
    """Mask PII for logging: show first 3 and last 2 chars only."""
    value = str(value) if value is not None else ""
    if not value or len(value) <= 5:
        return "***"
    return value[:3] + "***" + value[-2:]


class ConversationController:
    """Drive the booking flow for every chat the bot talks to.

    Typical lifecycle::

        store = InMemoryConversationStore()
        controller = ConversationController(store, TelegramChannel(bot))

        # From the transport's message handler
        await controller.handle_message(chat_id, text)

        # From the /cancelar command handler
        await controller.handle_cancel(chat_id)
    """

    def __init__(
        self,
        store: ConversationStore,
        channel: MessageChannel,
        admin_chat_id: Optional[ChatId] = None,
        opening_hour: Optional[int] = None,
        closing_hour: Optional[int] = None,
        shop_name: str = "",
        cancel_command: str = "",
    ) -> None:
        self._store = store
        self._channel = channel
        self._admin_chat_id = (
            admin_chat_id if admin_chat_id is not None else settings.admin_chat_id
        )
        self._opening_hour = opening_hour if opening_hour is not None else settings.opening_hour
        self._closing_hour = closing_hour if closing_hour is not None else settings.closing_hour
        self._shop_name = shop_name or settings.shop_name
        self._cancel_command = cancel_command or settings.cancel_command

        # Held only by handlers running or waiting for the chat
        self._locks: weakref.WeakValueDictionary[ChatId, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    # ── Public API ────────────────────────────────────────────

    @property
    def store(self) -> ConversationStore:
        return self._store

    @property
    def cancel_command(self) -> str:
        return self._cancel_command

    async def handle_message(
        self, chat_id: ChatId, text: Optional[str],
    ) -> Optional[UserConversation]:
        """Process one inbound message and return the chat's updated record.

        ``text`` is None for messages without text (stickers, photos...).
        """
        async with self._lock_for(chat_id):
            conversation = await self._store.get(chat_id)

            if conversation is None:
                return await self._start_conversation(chat_id)

            if conversation.state == ConversationState.AWAITING_NAME:
                return await self._handle_name(chat_id, conversation, text)
            if conversation.state == ConversationState.AWAITING_TIME:
                return await self._handle_time(chat_id, conversation, text)
            return await self._handle_booked(chat_id, conversation)

    async def handle_cancel(self, chat_id: ChatId) -> bool:
        """Cancel the chat's appointment.

        Returns:
            True if an appointment existed and was cancelled.
        """
        async with self._lock_for(chat_id):
            conversation = await self._store.get(chat_id)

            if conversation is None or not conversation.has_appointment:
                await self._channel.send_message(chat_id, messages.nothing_to_cancel())
                return False

            await self._channel.send_message(
                chat_id,
                messages.booking_cancelled(conversation.full_name, conversation.time),
            )
            await self._notify_admin(messages.admin_cancellation(conversation.summary()))

            await self._store.delete(chat_id)
            log.info(
                "Appointment cancelled: chat=%s time=%s",
                redact_pii(chat_id),
                conversation.time,
            )
            return True

    # ── Internal: state handlers ──────────────────────────────

    async def _start_conversation(self, chat_id: ChatId) -> UserConversation:
        conversation = UserConversation(state=ConversationState.AWAITING_NAME)
        await self._store.save(chat_id, conversation)
        log.info("New conversation: chat=%s", redact_pii(chat_id))
        await self._channel.send_message(chat_id, messages.welcome(self._shop_name))
        return conversation

    async def _handle_name(
        self, chat_id: ChatId, conversation: UserConversation, text: Optional[str],
    ) -> UserConversation:
        full_name = (text or "").strip()
        if not full_name:
            await self._channel.send_message(chat_id, messages.ask_name())
            return conversation

        conversation.full_name = full_name
        conversation.state = ConversationState.AWAITING_TIME
        await self._store.save(chat_id, conversation)
        self._log_transition(chat_id, ConversationState.AWAITING_NAME, conversation.state)

        await self._channel.send_message(
            chat_id, messages.ask_time(self._opening_hour, self._closing_hour),
        )
        return conversation

    async def _handle_time(
        self, chat_id: ChatId, conversation: UserConversation, text: Optional[str],
    ) -> UserConversation:
        requested = (text or "").strip()

        if not is_well_formed(requested):
            await self._channel.send_message(chat_id, messages.invalid_time_format())
            return conversation

        if not is_within_business_hours(requested, self._opening_hour, self._closing_hour):
            log.debug("Out-of-hours request %s from chat=%s", requested, redact_pii(chat_id))
            await self._channel.send_message(
                chat_id,
                messages.outside_business_hours(self._opening_hour, self._closing_hour),
            )
            return conversation

        # Only the booking itself survives confirmation
        booked = UserConversation(
            state=ConversationState.HAS_APPOINTMENT,
            full_name=conversation.full_name,
            time=requested,
            has_appointment=True,
        )
        await self._store.save(chat_id, booked)
        self._log_transition(chat_id, ConversationState.AWAITING_TIME, booked.state)

        await self._channel.send_message(
            chat_id,
            messages.booking_confirmed(
                self._shop_name, booked.full_name, booked.time, self._cancel_command,
            ),
        )
        await self._notify_admin(messages.admin_new_booking(booked.summary()))
        return booked

    async def _handle_booked(
        self, chat_id: ChatId, conversation: UserConversation,
    ) -> UserConversation:
        await self._channel.send_message(
            chat_id,
            messages.existing_booking(
                conversation.full_name, conversation.time, self._cancel_command,
            ),
        )
        return conversation

    # ── Internal: helpers ─────────────────────────────────────

    async def _notify_admin(self, text: str) -> None:
        if not self._admin_chat_id:
            raise AdminChatNotConfigured(
                "ADMIN_CHAT_ID is not set; cannot deliver admin notification."
            )
        await self._channel.send_message(self._admin_chat_id, text)

    def _lock_for(self, chat_id: ChatId) -> asyncio.Lock:
        lock = self._locks.get(chat_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[chat_id] = lock
        return lock

    @staticmethod
    def _log_transition(
        chat_id: ChatId, old: ConversationState, new: ConversationState,
    ) -> None:
        log.info("FSM advance: %s → %s (chat=%s)", old.value, new.value, redact_pii(chat_id))
