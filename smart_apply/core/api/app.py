"""FastAPI application for receiving Telegram updates by webhook."""

import hmac
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Header, HTTPException
from loguru import logger

from smart_apply.core.bot import SmartApplyBot

WEBHOOK_PATH = "/telegram/webhook"


def create_app(
    bot: SmartApplyBot,
    secret_token: str = "",
    webhook_url: Optional[str] = None,
) -> FastAPI:
    """Build the webhook app around a configured bot.

    Args:
        bot: Bot whose orchestrator handles the updates.
        secret_token: Expected X-Telegram-Bot-Api-Secret-Token (optional).
        webhook_url: Public URL to register with Telegram on startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if webhook_url:
            await bot.setup()
            await bot.transport.set_webhook(webhook_url, secret_token)
            logger.info("Webhook registered", url=webhook_url)

        yield

        logger.info("Shutting down webhook app")
        await bot.drain()
        if webhook_url:
            await bot.transport.delete_webhook()
        await bot.aclose()

    app = FastAPI(
        title="Smart Apply Bot",
        description="Telegram webhook receiver for the Smart Apply Bot",
        lifespan=lifespan,
    )

    @app.post(WEBHOOK_PATH)
    async def telegram_webhook(
        update: Dict[str, Any],
        x_telegram_bot_api_secret_token: Optional[str] = Header(default=None),
    ) -> Dict[str, bool]:
        if secret_token and not hmac.compare_digest(
            x_telegram_bot_api_secret_token or "", secret_token
        ):
            raise HTTPException(status_code=403, detail="Invalid secret token")
        try:
            bot.submit_update(update)
        except Exception:
            # Acknowledge anyway, otherwise Telegram redelivers it forever
            logger.exception("Skipping malformed update", update_id=update.get("update_id"))
        return {"ok": True}

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app
