"""Telegram integration for Marvin."""

from .bot import TelegramBot, build_inbound_message, is_group_chat, truncate_message

__all__ = ["TelegramBot", "build_inbound_message", "is_group_chat", "truncate_message"]
