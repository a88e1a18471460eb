"""Outbound message transports."""

from .base import MessageChannel
from .telegram_channel import TelegramChannel

__all__ = ["MessageChannel", "TelegramChannel"]
