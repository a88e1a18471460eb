"""Tests for the Telegram wiring and the FastAPI endpoints.

No lifespan is run (TestClient is not used as a context manager), so
nothing talks to Telegram.
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from telegram.ext import CommandHandler, MessageHandler

from barbershop.app import build_application, create_app, on_cancel, on_error, on_message
from barbershop.config import Settings
from barbershop.controller import ConversationController
from barbershop.models.conversation import ConversationState, UserConversation

from conftest import ADMIN_CHAT_ID

WEBHOOK_SECRET = "hook-secret"


def _config(**overrides) -> Settings:
    values = {
        "telegram_token": "123456:TEST-TOKEN",
        "admin_chat_id": ADMIN_CHAT_ID,
        "admin_api_key": "secret",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def _update_payload(chat_id=42, text="hi"):
    return {
        "update_id": 1001,
        "message": {
            "message_id": 7,
            "date": 1760000000,
            "chat": {"id": chat_id, "type": "private", "first_name": "Maria"},
            "from": {"id": chat_id, "is_bot": False, "first_name": "Maria"},
            "text": text,
        },
    }


# ── Application wiring ──────────────────────────────────────────


class TestBuildApplication:
    def test_registers_cancel_before_catch_all(self, store):
        application = build_application(_config(), store)
        handlers = application.handlers[0]

        assert isinstance(handlers[0], CommandHandler)
        assert handlers[0].commands == frozenset({"cancelar"})
        assert isinstance(handlers[1], MessageHandler)

    def test_custom_cancel_command(self, store):
        application = build_application(_config(cancel_command="cancel"), store)
        assert application.handlers[0][0].commands == frozenset({"cancel"})

    def test_controller_uses_given_store(self, store):
        application = build_application(_config(), store)
        controller = application.bot_data["controller"]
        assert isinstance(controller, ConversationController)
        assert controller.store is store

    def test_polling_has_updater(self, store):
        assert build_application(_config(), store).updater is not None

    def test_webhook_has_no_updater(self, store):
        application = build_application(
            _config(transport="webhook", webhook_url="https://bot.example.com/telegram/webhook"),
            store,
        )
        assert application.updater is None


class TestHandlers:
    @pytest.fixture
    def context(self, controller):
        ctx = MagicMock()
        ctx.bot_data = {"controller": controller}
        return ctx

    @staticmethod
    def _update(chat_id, text):
        update = MagicMock()
        update.effective_chat.id = chat_id
        update.effective_message.text = text
        return update

    async def test_on_message_drives_controller(self, context, store):
        await on_message(self._update(42, "hi"), context)
        await on_message(self._update(42, "Maria Silva"), context)

        record = await store.get(42)
        assert record.state == ConversationState.AWAITING_TIME
        assert record.full_name == "Maria Silva"

    async def test_on_message_without_message(self, context, store):
        update = MagicMock()
        update.effective_chat.id = 42
        update.effective_message = None
        await on_message(update, context)
        assert (await store.get(42)).state == ConversationState.AWAITING_NAME

    async def test_on_cancel(self, context, channel):
        await on_cancel(self._update(42, "/cancelar"), context)
        assert channel.sent == [(42, "You don't have any appointment to cancel.")]

    async def test_on_error_logs(self, caplog):
        context = MagicMock()
        context.error = RuntimeError("boom")
        with caplog.at_level("ERROR", logger="barbershop.app"):
            await on_error(None, context)
        assert "boom" in caplog.text


# ── HTTP endpoints ──────────────────────────────────────────────


class TestHealth:
    def test_health(self, store):
        client = TestClient(create_app(_config(), store=store))
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["transport"] == "polling"


class TestWebhook:
    @pytest.fixture
    def webhook_app(self, store):
        return create_app(
            _config(
                transport="webhook",
                webhook_url="https://bot.example.com/telegram/webhook",
                webhook_secret=WEBHOOK_SECRET,
            ),
            store=store,
        )

    def test_disabled_in_polling_mode(self, store):
        client = TestClient(create_app(_config(), store=store))
        resp = client.post("/telegram/webhook", json=_update_payload())
        assert resp.status_code == 404

    def test_rejects_missing_secret(self, webhook_app):
        client = TestClient(webhook_app)
        resp = client.post("/telegram/webhook", json=_update_payload())
        assert resp.status_code == 403
        assert webhook_app.state.telegram.update_queue.qsize() == 0

    def test_rejects_wrong_secret(self, webhook_app):
        client = TestClient(webhook_app)
        resp = client.post(
            "/telegram/webhook",
            json=_update_payload(),
            headers={"X-Telegram-Bot-Api-Secret-Token": "nope"},
        )
        assert resp.status_code == 403

    def test_queues_update(self, webhook_app):
        client = TestClient(webhook_app)
        resp = client.post(
            "/telegram/webhook",
            json=_update_payload(chat_id=42, text="Maria Silva"),
            headers={"X-Telegram-Bot-Api-Secret-Token": WEBHOOK_SECRET},
        )
        assert resp.status_code == 200
        assert resp.json() == {"ok": True}

        queue = webhook_app.state.telegram.update_queue
        assert queue.qsize() == 1
        update = queue.get_nowait()
        assert update.update_id == 1001
        assert update.effective_chat.id == 42
        assert update.effective_message.text == "Maria Silva"


class TestAdminApi:
    @pytest.fixture
    def booked_store(self, store):
        store._records[1] = UserConversation(
            state=ConversationState.HAS_APPOINTMENT,
            full_name="Bia", time="10:00", has_appointment=True,
        )
        store._records[2] = UserConversation(
            state=ConversationState.HAS_APPOINTMENT,
            full_name="Ana", time="9:30", has_appointment=True,
        )
        store._records[3] = UserConversation(
            state=ConversationState.AWAITING_TIME, full_name="Caio",
        )
        return store

    def test_requires_token(self, booked_store):
        client = TestClient(create_app(_config(), store=booked_store))
        assert client.get("/api/appointments").status_code == 401

    def test_lists_appointments_earliest_first(self, booked_store):
        client = TestClient(create_app(_config(), store=booked_store))
        resp = client.get(
            "/api/appointments", headers={"Authorization": "Bearer secret"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["count"] == 2
        assert [a["full_name"] for a in body["appointments"]] == ["Ana", "Bia"]
        assert body["appointments"][0] == {"chat_id": 2, "full_name": "Ana", "time": "9:30"}

    def test_get_conversation(self, booked_store):
        client = TestClient(create_app(_config(), store=booked_store))
        resp = client.get(
            "/api/conversations/3", headers={"Authorization": "Bearer secret"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["state"] == "awaiting_time"
        assert body["full_name"] == "Caio"
        assert body["has_appointment"] is False

    def test_unknown_conversation(self, store):
        client = TestClient(create_app(_config(), store=store))
        resp = client.get(
            "/api/conversations/404", headers={"Authorization": "Bearer secret"},
        )
        assert resp.status_code == 404

    def test_key_comes_from_the_app_config(self, store):
        client = TestClient(create_app(_config(admin_api_key="other"), store=store))
        resp = client.get("/api/appointments", headers={"Authorization": "Bearer secret"})
        assert resp.status_code == 401
        resp = client.get("/api/appointments", headers={"Authorization": "Bearer other"})
        assert resp.status_code == 200

    def test_open_without_key_in_debug(self, store):
        client = TestClient(create_app(_config(admin_api_key="", debug=True), store=store))
        assert client.get("/api/appointments").json() == {"appointments": [], "count": 0}

    def test_locked_without_key_in_production(self, store):
        client = TestClient(create_app(_config(admin_api_key=""), store=store))
        assert client.get("/api/appointments").status_code == 403
