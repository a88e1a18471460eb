"""Telegram bot wiring and the FastAPI application that hosts it.

The Telegram side is a python-telegram-bot ``Application`` with two
handlers:

  /cancelar (CommandHandler)   → ConversationController.handle_cancel
  any other message            → ConversationController.handle_message

Both live in the same handler group, so the cancel command is never
also treated as ordinary text.

HTTP endpoints:

  GET  /health                      Health check
  POST /telegram/webhook            Telegram update webhook (TRANSPORT=webhook)
  GET  /api/appointments            Booked appointments (admin)
  GET  /api/conversations/{chat_id} One chat's conversation record (admin)

Update delivery:
  polling: the Application's Updater long-polls getUpdates (default)
  webhook: Telegram POSTs updates to /telegram/webhook and they are
           queued on the Application's update_queue
"""

from __future__ import annotations

import logging
import secrets
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse
from telegram import Update
from telegram.ext import (
    Application,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from barbershop.auth import require_admin_token
from barbershop.channels.telegram_channel import TelegramChannel, normalize_chat_id
from barbershop.config import Settings, settings
from barbershop.controller import ConversationController, redact_pii
from barbershop.store import ConversationStore, InMemoryConversationStore

log = logging.getLogger("barbershop.app")

_START_TIME = time.time()


# ── Telegram handlers ─────────────────────────────────────────────

async def on_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Feed an inbound message to the controller."""
    controller: ConversationController = context.bot_data["controller"]
    message = update.effective_message
    text = message.text if message is not None else None
    await controller.handle_message(update.effective_chat.id, text)


async def on_cancel(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle the cancel command."""
    controller: ConversationController = context.bot_data["controller"]
    await controller.handle_cancel(update.effective_chat.id)


async def on_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Log exceptions raised while handling an update."""
    chat_id = None
    if isinstance(update, Update) and update.effective_chat is not None:
        chat_id = update.effective_chat.id
    log.error(
        "Error handling update (chat=%s): %s",
        redact_pii(chat_id),
        context.error,
        exc_info=context.error,
    )


def build_application(config: Settings, store: ConversationStore) -> Application:
    """Build the Telegram Application and attach a ConversationController.

    The controller is stored in ``application.bot_data["controller"]`` so
    handlers can reach it.
    """
    builder = (
        Application.builder()
        .token(config.telegram_token)
        .base_url(config.telegram_api_url)
    )
    if config.transport == "webhook":
        # Updates arrive over HTTP; no getUpdates polling
        builder = builder.updater(None)
    application = builder.build()

    controller = ConversationController(
        store,
        TelegramChannel(application.bot),
        admin_chat_id=config.admin_chat_id,
        opening_hour=config.opening_hour,
        closing_hour=config.closing_hour,
        shop_name=config.shop_name,
        cancel_command=config.cancel_command,
    )
    application.bot_data["controller"] = controller

    application.add_handler(
        CommandHandler(config.cancel_command, on_cancel, filters=filters.UpdateType.MESSAGE)
    )
    application.add_handler(MessageHandler(filters.UpdateType.MESSAGE, on_message))
    application.add_error_handler(on_error)

    return application


# ── FastAPI app ───────────────────────────────────────────────────

def create_app(
    config: Settings | None = None,
    store: ConversationStore | None = None,
    application: Application | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    The conversation store is created here and lives as long as the app.
    """
    config = config or settings
    store = store if store is not None else InMemoryConversationStore()
    application = application or build_application(config, store)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await application.initialize()
        if config.transport == "webhook":
            await application.bot.set_webhook(
                url=config.webhook_url,
                secret_token=config.webhook_secret or None,
                allowed_updates=Update.ALL_TYPES,
            )
            log.info("Telegram webhook registered")
        else:
            await application.updater.start_polling(allowed_updates=Update.ALL_TYPES)
        await application.start()

        log.info("%s bot is running!", config.shop_name)
        try:
            yield
        finally:
            if application.updater is not None and application.updater.running:
                await application.updater.stop()
            await application.stop()
            await application.shutdown()
            log.info("Bot stopped")

    app = FastAPI(
        title="Barbershop Booking Bot",
        description="Telegram appointment booking for a barbershop",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.store = store
    app.state.telegram = application

    # ── Health check ───────────────────────────────────────────

    @app.get("/health")
    async def health() -> JSONResponse:
        """Lightweight health check; confirms the event loop is responsive."""
        uptime = round(time.time() - _START_TIME, 1)
        return JSONResponse({"status": "ok", "uptime": uptime, "transport": config.transport})

    # ── Telegram webhook ───────────────────────────────────────

    @app.post("/telegram/webhook")
    async def telegram_webhook(
        request: Request,
        x_telegram_bot_api_secret_token: str | None = Header(default=None),
    ) -> JSONResponse:
        """Receive an Update from Telegram and queue it for the Application."""
        if config.transport != "webhook":
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)

        if config.webhook_secret and not secrets.compare_digest(
            (x_telegram_bot_api_secret_token or "").encode(), config.webhook_secret.encode(),
        ):
            log.warning("Rejected webhook call with bad secret token")
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)

        data = await request.json()
        update = Update.de_json(data, application.bot)
        await application.update_queue.put(update)
        return JSONResponse({"ok": True})

    # ── Admin API ──────────────────────────────────────────────

    @app.get("/api/appointments", dependencies=[Depends(require_admin_token)])
    async def list_appointments() -> JSONResponse:
        """Return every confirmed appointment, earliest first."""
        records = await store.all()
        appointments = [
            {"chat_id": chat_id, "full_name": record.full_name, "time": record.time}
            for chat_id, record in records.items()
            if record.has_appointment
        ]
        appointments.sort(key=lambda a: tuple(int(p) for p in a["time"].split(":")))
        return JSONResponse({"appointments": appointments, "count": len(appointments)})

    @app.get("/api/conversations/{chat_id}", dependencies=[Depends(require_admin_token)])
    async def get_conversation(chat_id: str) -> JSONResponse:
        """Return a single chat's conversation record."""
        record = await store.get(normalize_chat_id(chat_id))
        if record is None:
            return JSONResponse({"error": "Conversation not found"}, status_code=404)
        return JSONResponse({"chat_id": chat_id, **record.model_dump(mode="json")})

    return app
