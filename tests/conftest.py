"""Shared fixtures for the barbershop bot test suite."""

from __future__ import annotations

import asyncio
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from barbershop.channels.base import MessageChannel
from barbershop.controller import ConversationController
from barbershop.store import InMemoryConversationStore

ADMIN_CHAT_ID = "-100999"


class RecordingChannel(MessageChannel):
    """MessageChannel that records every send instead of delivering it."""

    def __init__(self) -> None:
        self.sent: list[tuple[object, str]] = []

    async def send_message(self, chat_id, text):
        # Yield like a real network call would
        await asyncio.sleep(0)
        self.sent.append((chat_id, text))

    def to(self, chat_id) -> list[str]:
        return [text for cid, text in self.sent if cid == chat_id]

    def clear(self) -> None:
        self.sent.clear()


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def store():
    return InMemoryConversationStore()


@pytest.fixture
def controller(store, channel):
    return ConversationController(
        store,
        channel,
        admin_chat_id=ADMIN_CHAT_ID,
        opening_hour=8,
        closing_hour=18,
        shop_name="Barbearia do Lucas",
        cancel_command="cancelar",
    )
