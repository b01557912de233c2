from smart_apply.core.providers.job_search_client import JobSearchClient
from smart_apply.core.providers.llm_client import get_llm_client
from smart_apply.core.providers.telegram_transport import (
    ChatTransport,
    TelegramTransport,
    parse_update,
)
from smart_apply.core.providers.title_suggester import TitleSuggester

__all__ = [
    "get_llm_client",
    "TitleSuggester",
    "JobSearchClient",
    "ChatTransport",
    "TelegramTransport",
    "parse_update",
]
