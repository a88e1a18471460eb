"""Application configuration via environment variables."""

from __future__ import annotations

import logging

from pydantic_settings import BaseSettings

log = logging.getLogger("barbershop.config")

TRANSPORTS = ("polling", "webhook")


class Settings(BaseSettings):
    # Telegram
    telegram_token: str = ""
    telegram_api_url: str = "https://api.telegram.org/bot"
    admin_chat_id: str = ""

    # Update delivery: "polling" or "webhook"
    transport: str = "polling"
    webhook_url: str = ""
    webhook_secret: str = ""

    # Shop
    shop_name: str = "Barbearia do Lucas"
    opening_hour: int = 8
    closing_hour: int = 18
    cancel_command: str = "cancelar"

    # Admin auth
    admin_api_key: str = ""

    # Server
    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    def validate_startup(self) -> list[str]:
        """Validate configuration at startup. Returns warnings, raises on errors."""
        warnings: list[str] = []
        _placeholders = {"your_telegram_token", "123456:ABC-DEF..."}

        # Telegram token is required
        if not self.telegram_token or self.telegram_token in _placeholders:
            raise ValueError(
                "TELEGRAM_TOKEN must be provided! "
                "Set it in .env or the environment."
            )

        if not 0 <= self.opening_hour < self.closing_hour <= 24:
            raise ValueError(
                f"Invalid business hours: OPENING_HOUR={self.opening_hour} "
                f"CLOSING_HOUR={self.closing_hour} (need 0 <= open < close <= 24)."
            )

        if self.transport not in TRANSPORTS:
            raise ValueError(
                f"TRANSPORT must be one of {', '.join(TRANSPORTS)}, got {self.transport!r}."
            )

        if self.transport == "webhook" and not self.webhook_url:
            raise ValueError("WEBHOOK_URL is required when TRANSPORT=webhook.")

        if not self.cancel_command or self.cancel_command.startswith("/"):
            raise ValueError("CANCEL_COMMAND must be set and given without the leading '/'.")

        # Admin chat is only needed when a notification is due
        if not self.admin_chat_id:
            warnings.append(
                "ADMIN_CHAT_ID not set. Booking and cancellation notifications will fail."
            )

        # Admin API key: warn if unset
        if not self.admin_api_key:
            if self.debug:
                warnings.append(
                    "ADMIN_API_KEY not set. Admin APIs are open (DEBUG=true)."
                )
            else:
                warnings.append(
                    "ADMIN_API_KEY not set. Admin APIs are locked in production. "
                    "Set ADMIN_API_KEY in .env to enable admin access."
                )

        if self.transport == "webhook" and not self.webhook_secret:
            warnings.append(
                "WEBHOOK_SECRET not set. Webhook requests will not be authenticated."
            )

        return warnings


settings = Settings()
