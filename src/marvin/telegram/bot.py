"""Telegram bot integration for Marvin."""

import logging
import os
import time

from telegram import Chat, Message, Update
from telegram.constants import ChatAction, ChatType, ParseMode
from telegram.error import NetworkError, TelegramError
from telegram.ext import Application, ContextTypes, MessageHandler, filters

from ..config import ReconnectPolicy
from ..logging import get_logger
from ..processor import InboundMessage, MessageProcessor

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 4096

GROUP_CHAT_TYPES = (ChatType.GROUP, ChatType.SUPERGROUP)


def truncate_message(text: str, max_length: int = MAX_MESSAGE_LENGTH) -> str:
    """Truncate message to fit Telegram limits."""
    if len(text) <= max_length:
        return text
    return text[: max_length - 20] + "\n... [truncado]"


def is_group_chat(chat_type: str | None) -> bool:
    """Whether a chat type is a group or supergroup."""
    return chat_type in GROUP_CHAT_TYPES


def build_inbound_message(update: Update) -> InboundMessage | None:
    """Convert a Telegram update into an InboundMessage.

    Returns:
        None for updates that carry no text.
    """
    message = update.effective_message
    if message is None or not message.text:
        return None

    user = update.effective_user
    chat = update.effective_chat

    if user is not None:
        sender_id = str(user.id)
        sender_name = user.full_name or None
    else:
        sender_id = str(chat.id) if chat is not None else ""
        sender_name = None

    return InboundMessage(
        text=message.text,
        sender_id=sender_id,
        sender_name=sender_name,
        is_group=is_group_chat(chat.type if chat is not None else None),
        chat_id=str(chat.id) if chat is not None else None,
    )


class TelegramBot:
    """Telegram bot for Marvin."""

    def __init__(
        self,
        processor: MessageProcessor,
        token: str | None = None,
        group_only: bool = False,
        reconnect: ReconnectPolicy | None = None,
    ) -> None:
        """Initialize the bot.

        Args:
            processor: Produces the reply for each message.
            token: Bot token; read from TELEGRAM_TOKEN when omitted.
            group_only: Ignore messages that do not come from a group chat.
            reconnect: Retry policy when the connection to Telegram is lost.

        Raises:
            ValueError: If no token is available.
        """
        self.token = token or os.getenv("TELEGRAM_TOKEN")
        if not self.token:
            raise ValueError("TELEGRAM_TOKEN not set")

        self.processor = processor
        self.group_only = group_only
        self.reconnect = reconnect or ReconnectPolicy()
        self.json_logger = get_logger()
        self._app: Application | None = None

    async def _send_typing(self, chat: Chat) -> None:
        """Show the typing indicator. Failures are not worth reporting."""
        try:
            await chat.send_action(ChatAction.TYPING)
        except TelegramError as e:
            logger.debug(f"Typing indicator failed: {e}")

    async def _handle_message(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Handle incoming text messages."""
        inbound = build_inbound_message(update)
        if inbound is None:
            return

        if self.group_only and not inbound.is_group:
            logger.debug(f"Ignoring message outside a group: chat {inbound.chat_id}")
            return

        message = update.effective_message
        assert message is not None

        self.json_logger.log_message(
            chat_id=inbound.chat_id,
            sender_id=inbound.sender_id,
            message_length=len(inbound.text),
        )

        await self._send_typing(message.chat)

        start = time.monotonic()
        result = await self.processor.process(inbound)
        duration_ms = (time.monotonic() - start) * 1000

        self.json_logger.log_route(
            result.route.value,
            chat_id=inbound.chat_id,
            sender_id=inbound.sender_id,
            duration_ms=round(duration_ms, 1),
            facts_stored=result.facts_stored,
        )

        await self.deliver_reply(message, result.reply)

    async def deliver_reply(self, message: Message, text: str) -> bool:
        """Send a reply quoting the original message.

        If the quoted reply fails, the text is sent once more as a plain
        message without the quote or formatting.

        Returns:
            True if either attempt succeeded.
        """
        chat_id = str(message.chat_id)
        text = truncate_message(text)

        try:
            await message.reply_text(text, parse_mode=ParseMode.MARKDOWN, do_quote=True)
            return True
        except TelegramError as e:
            logger.warning(f"Quoted reply failed in chat {chat_id}: {e}")
            self.json_logger.log_delivery_error(chat_id=chat_id, error=str(e), final=False)

        try:
            await message.chat.send_message(text)
            return True
        except TelegramError as e:
            logger.error(f"Failed to deliver reply in chat {chat_id}: {e}")
            self.json_logger.log_delivery_error(chat_id=chat_id, error=str(e), final=True)
            return False

    async def _handle_error(
        self, update: object, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Log errors raised inside handlers or while polling."""
        logger.error(f"Telegram error: {context.error}")
        self.json_logger.log("telegram_error", error=str(context.error))

    def build_app(self) -> Application:
        """Build the Telegram application."""
        self._app = Application.builder().token(self.token).build()

        # Commands go through the same handler so /aprender reaches the processor
        self._app.add_handler(MessageHandler(filters.TEXT, self._handle_message))
        self._app.add_error_handler(self._handle_error)

        return self._app

    def run(self) -> None:
        """Run the bot (blocking), reconnecting after network failures.

        Raises:
            NetworkError: When the connection keeps failing after
                ``reconnect.max_attempts`` attempts.
        """
        attempts = 0
        while True:
            app = self.build_app()
            logger.info("Starting Telegram bot...")
            try:
                app.run_polling(allowed_updates=Update.ALL_TYPES, close_loop=False)
                return
            except NetworkError as e:
                attempts += 1
                self.json_logger.log("telegram_disconnected", error=str(e), attempt=attempts)
                if attempts >= self.reconnect.max_attempts:
                    logger.error(f"Giving up after {attempts} connection attempts: {e}")
                    raise

                logger.warning(
                    f"Connection lost ({e}), reconnecting in "
                    f"{self.reconnect.backoff_seconds}s "
                    f"(attempt {attempts}/{self.reconnect.max_attempts})"
                )
                time.sleep(self.reconnect.backoff_seconds)
