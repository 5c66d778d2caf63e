"""Telegram front-end provider."""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable
from typing import Any

from loguru import logger
from telegram import Update
from telegram.error import BadRequest
from telegram.ext import Application, ContextTypes, MessageHandler, filters
from telegramify_markdown import markdownify as md

from samantha.capsule import Capsule, ContentType
from samantha.channel import Pipe
from samantha.errors import ConfigurationError, SamanthaError
from samantha.frontend.base import (
    FrontendDescriptor,
    FrontendProvider,
    FrontendProviderConfig,
    ProviderMessage,
    SystemLogStatus,
    system_log,
)
from samantha.frontend.pending import PendingMessage, PendingMessages

# Long polling timeout, in seconds.
POLLER_TIMEOUT = 10


class TelegramProvider(FrontendProvider):
    """Telegram adapter using long polling mode."""

    label = "telegram"

    def __init__(self, app: Application, config: FrontendProviderConfig, user_input: Pipe[ProviderMessage]) -> None:
        self._app = app
        self._config = config
        self._user_input = user_input
        self._pending = PendingMessages()
        self._stopped = asyncio.Event()
        self._started = False

    @property
    def pending(self) -> PendingMessages:
        return self._pending

    async def start(self) -> None:
        if self._stopped.is_set():
            return
        self._started = True
        logger.info("telegram.provider.start authorized_users={}", len(self._config.authorized_users))
        app = self._app
        app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, self._on_text, block=False))
        app.add_handler(MessageHandler(filters.PHOTO, self._on_photo, block=False))
        app.add_handler(MessageHandler(filters.AUDIO | filters.VOICE, self._on_audio, block=False))
        try:
            await app.start()
            updater = app.updater
            if updater is not None:
                await updater.start_polling(
                    timeout=POLLER_TIMEOUT, drop_pending_updates=True, allowed_updates=["message"]
                )
                logger.info("telegram.provider.polling")
            await self._stopped.wait()
        finally:
            if app.updater is not None and app.updater.running:
                await app.updater.stop()
            if app.running:
                await app.stop()
            await self._shutdown()

    async def stop(self) -> None:
        self._stopped.set()
        if not self._started:
            await self._shutdown()

    async def _shutdown(self) -> None:
        await self._app.shutdown()
        self._pending.clear()
        logger.info("telegram.provider.stopped")

    async def message(self, capsule: Capsule) -> None:
        pending = self._pending.pop(capsule.original_message)
        if capsule.failed:
            await self._send(pending.chat_id, system_log(str(capsule.error), SystemLogStatus.ERROR))
            return
        for response in capsule.responses:
            if response.strip():
                await self._send(pending.chat_id, response)

    async def process_user_message(
        self, chat_id: int, user: str, content: str, content_type: ContentType = ContentType.TEXT
    ) -> uuid.UUID:
        """Record the message as pending, then hand it to the front-end manager."""

        message_id = uuid.uuid4()
        self._pending.add(PendingMessage(uuid=message_id, chat_id=chat_id, user=user))
        try:
            await self._user_input.send(
                ProviderMessage(
                    original_message=message_id,
                    provider_label=self.label,
                    content=content,
                    user=user,
                    content_type=content_type,
                )
            )
        except BaseException:
            self._pending.discard(message_id)
            raise
        return message_id

    def is_authorized(self, user_id: int, username: str | None) -> bool:
        return any(user.id == user_id and user.name == username for user in self._config.authorized_users)

    async def _send(self, chat_id: int, text: str) -> None:
        bot = self._app.bot
        try:
            await bot.send_message(chat_id=chat_id, text=md(text), parse_mode="MarkdownV2")
        except BadRequest as exc:
            logger.warning("telegram.provider.markdown_rejected chat_id={} error={}", chat_id, exc)
            await bot.send_message(chat_id=chat_id, text=text, parse_mode=None)

    async def _on_text(self, update: Update, _context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._receive(update, ContentType.TEXT)

    async def _on_photo(self, update: Update, _context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._receive(update, ContentType.IMAGE)

    async def _on_audio(self, update: Update, _context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._receive(update, ContentType.AUDIO)

    async def _receive(self, update: Any, content_type: ContentType) -> None:
        message = update.message
        sender = update.effective_user
        if message is None or sender is None:
            return
        content = message.text if content_type is ContentType.TEXT else message.caption
        content = content or ""

        if not self.is_authorized(sender.id, sender.username):
            logger.debug(
                "telegram.provider.unauthorized sender_id={} username={} content={}",
                sender.id,
                sender.username or "",
                content[:100],
            )
            return

        logger.debug(
            "telegram.provider.inbound chat_id={} sender_id={} username={} type={} content={}",
            message.chat_id,
            sender.id,
            sender.username or "",
            content_type.value,
            content[:100],
        )
        try:
            await self.process_user_message(message.chat_id, sender.username or str(sender.id), content, content_type)
        except SamanthaError as exc:
            logger.opt(exception=exc).error("telegram.provider.inbound.failed chat_id={}", message.chat_id)
            await message.reply_text(system_log(str(exc), SystemLogStatus.ERROR))


def _build_application(token: str) -> Application:
    return Application.builder().token(token).build()


class TelegramDescriptor(FrontendDescriptor):
    label = "telegram"

    def __init__(self, builder: Callable[[str], Application] | None = None) -> None:
        self._builder = builder or _build_application

    async def initialize(self, config: FrontendProviderConfig, user_input: Pipe[ProviderMessage]) -> FrontendProvider:
        if not config.token:
            raise ConfigurationError("telegram token is empty")
        app = self._builder(config.token)
        # Calls getMe, so a revoked or mistyped token fails here rather than in start().
        await app.initialize()
        logger.info("telegram.provider.initialized")
        return TelegramProvider(app, config, user_input)
