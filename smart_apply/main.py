"""
Main entry point for the Smart Apply Bot.
Wires configuration, adapters and the orchestrator, then runs the bot.
"""

import asyncio
import signal
import sys
from typing import Optional

from loguru import logger

from smart_apply.config.config_loader import BotConfig, load_config, require_secrets
from smart_apply.core.bot import SmartApplyBot
from smart_apply.core.errors import ConfigurationError
from smart_apply.core.orchestrator import ConversationOrchestrator
from smart_apply.core.providers.job_search_client import JobSearchClient
from smart_apply.core.providers.llm_client import get_llm_client
from smart_apply.core.providers.telegram_transport import TelegramTransport
from smart_apply.core.providers.title_suggester import TitleSuggester
from smart_apply.core.services.job_search_fanout import JobSearchFanout
from smart_apply.core.services.state_store import ConversationStateStore
from smart_apply.core.services.user_store import UserStore
from smart_apply.core.tools.document_extractor import DocumentExtractor
from smart_apply.core.utils.logging_config import configure_logging


def build_title_suggester(config: BotConfig) -> TitleSuggester:
    model = get_llm_client(
        model_name=config.llm.model,
        api_key=config.llm.api_key,
        temperature=config.llm.temperature,
    )
    return TitleSuggester(model)


def build_job_search_client(config: BotConfig) -> JobSearchClient:
    return JobSearchClient(
        api_key=config.job_search.api_key,
        api_host=config.job_search.api_host,
        base_url=config.job_search.base_url,
        timeout=config.job_search.timeout,
    )


def build_bot(config: BotConfig) -> SmartApplyBot:
    """Create the transport, adapters, stores and orchestrator from config."""
    transport = TelegramTransport(
        token=config.telegram.token,
        api_base_url=config.telegram.api_base_url,
        request_timeout=config.telegram.request_timeout,
    )
    fanout = JobSearchFanout(
        search_client=build_job_search_client(config),
        transport=transport,
        max_titles=config.job_search.max_titles,
        max_listings=config.job_search.max_listings,
        date_posted=config.job_search.date_posted,
        job_type=config.job_search.job_type,
        num_pages=config.job_search.num_pages,
    )
    orchestrator = ConversationOrchestrator(
        transport=transport,
        user_store=UserStore(),
        state_store=ConversationStateStore(),
        extractor=DocumentExtractor(),
        suggester=build_title_suggester(config),
        fanout=fanout,
        download_dir=config.documents.download_dir,
        keep_downloads=config.documents.keep_downloads,
        word_uploads_enabled=config.documents.word_uploads_enabled,
        max_file_size=config.documents.max_file_size,
    )
    return SmartApplyBot(
        transport=transport,
        orchestrator=orchestrator,
        polling_timeout=config.telegram.polling_timeout,
    )


def _log_loop_exception(loop: asyncio.AbstractEventLoop, context: dict) -> None:
    error = context.get("exception")
    logger.opt(exception=error).error(
        "Unhandled error in event loop", detail=context.get("message", "")
    )


async def run_polling(bot: SmartApplyBot) -> None:
    loop = asyncio.get_running_loop()
    loop.set_exception_handler(_log_loop_exception)
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, bot.stop)
        except (NotImplementedError, RuntimeError):
            # Windows: fall back to KeyboardInterrupt
            pass

    try:
        await bot.setup()
        await bot.run_polling()
    finally:
        await bot.aclose()
        logger.info("Telegram bot stopped")


def run_webhook(bot: SmartApplyBot, config: BotConfig) -> None:
    import uvicorn

    from smart_apply.core.api.app import create_app

    if not config.telegram.webhook_url:
        raise ConfigurationError("TELEGRAM_WEBHOOK_URL is required in webhook mode")

    app = create_app(
        bot,
        secret_token=config.telegram.webhook_secret,
        webhook_url=config.telegram.webhook_url,
    )
    uvicorn.run(app, host=config.api.host, port=config.api.port, log_level="info")


def main(
    config_path: Optional[str] = None,
    mode: Optional[str] = None,
    log_level: Optional[str] = None,
) -> int:
    """Start the bot. Returns a process exit code."""
    try:
        config = require_secrets(load_config(config_path))
    except ConfigurationError as e:
        configure_logging()
        logger.error(f"Failed to start application: {e}")
        return 1

    configure_logging(
        log_level or config.observability.log_level, config.observability.log_file
    )
    mode = mode or config.telegram.mode
    if mode not in ("polling", "webhook"):
        logger.error(f"Unknown mode {mode!r}, expected 'polling' or 'webhook'")
        return 1

    try:
        bot = build_bot(config)
        logger.info("🤖 Smart Apply Bot is starting", mode=mode)
        if mode == "webhook":
            run_webhook(bot, config)
        else:
            asyncio.run(run_polling(bot))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except ConfigurationError as e:
        logger.error(f"Failed to start application: {e}")
        return 1
    except Exception:
        logger.exception("Bot crashed")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
