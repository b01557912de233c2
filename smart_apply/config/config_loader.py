"""Central configuration loader for bot.yaml with env var overrides."""

import os
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel

from smart_apply.core.errors import ConfigurationError


class TelegramConfig(BaseModel):
    token: str = ""
    api_base_url: str = "https://api.telegram.org"
    mode: str = "polling"  # "polling" or "webhook"
    polling_timeout: int = 10
    request_timeout: float = 30.0
    webhook_url: str = ""
    webhook_secret: str = ""


class LLMConfig(BaseModel):
    api_key: str = ""
    model: str = "gemini-2.0-flash"
    temperature: float = 0.2


class JobSearchConfig(BaseModel):
    api_key: str = ""
    api_host: str = "jsearch.p.rapidapi.com"
    base_url: str = "https://jsearch.p.rapidapi.com"
    timeout: float = 30.0
    max_titles: int = 3
    max_listings: int = 5
    date_posted: str = "today"
    job_type: str = "FULLTIME"
    num_pages: int = 1


class DocumentsConfig(BaseModel):
    download_dir: Optional[str] = None  # Per-process temp dir when unset
    keep_downloads: bool = False
    word_uploads_enabled: bool = False
    max_file_size: int = 20 * 1024 * 1024  # Bot API download limit


class APIConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_file: Optional[str] = None


class BotConfig(BaseModel):
    telegram: TelegramConfig = TelegramConfig()
    llm: LLMConfig = LLMConfig()
    job_search: JobSearchConfig = JobSearchConfig()
    documents: DocumentsConfig = DocumentsConfig()
    api: APIConfig = APIConfig()
    observability: ObservabilityConfig = ObservabilityConfig()


_DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "bot.yaml"
_cached_config: Optional["BotConfig"] = None

# Secrets the bot cannot start without, with the env var that supplies each.
REQUIRED_SECRETS = {
    "telegram.token": "TELEGRAM_BOT_TOKEN",
    "llm.api_key": "GEMINI_API_KEY",
    "job_search.api_key": "RAPIDAPI_KEY",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _cast(annotation, value: str):
    if annotation is bool:
        return value.strip().lower() in _TRUE_VALUES
    if annotation in (int, float):
        return annotation(value)
    return value


def load_config(config_path: Optional[str] = None) -> BotConfig:
    """Load config from YAML file and merge with environment variable overrides.

    Priority: env vars > YAML file > defaults.
    """
    global _cached_config

    if _cached_config is not None and config_path is None:
        return _cached_config

    load_dotenv()

    path = Path(config_path) if config_path else _DEFAULT_CONFIG_PATH

    data: Dict = {}
    if path.exists():
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    elif config_path is not None:
        raise ConfigurationError(f"Config file not found: {config_path}")

    config = BotConfig(**data)

    # Env var overrides
    env_overrides = {
        "telegram.token": os.getenv("TELEGRAM_BOT_TOKEN"),
        "telegram.mode": os.getenv("TELEGRAM_MODE"),
        "telegram.webhook_url": os.getenv("TELEGRAM_WEBHOOK_URL"),
        "telegram.webhook_secret": os.getenv("TELEGRAM_WEBHOOK_SECRET"),
        "llm.api_key": os.getenv("GEMINI_API_KEY"),
        "llm.model": os.getenv("GEMINI_MODEL"),
        "job_search.api_key": os.getenv("RAPIDAPI_KEY"),
        "documents.download_dir": os.getenv("DOWNLOAD_DIR"),
        "documents.word_uploads_enabled": os.getenv("WORD_UPLOADS_ENABLED"),
        "api.host": os.getenv("API_HOST"),
        "api.port": os.getenv("API_PORT"),
        "observability.log_level": os.getenv("LOG_LEVEL"),
        "observability.log_file": os.getenv("LOG_FILE"),
    }

    for dotted_key, value in env_overrides.items():
        if value is not None:
            parts = dotted_key.split(".")
            obj = config
            for part in parts[:-1]:
                obj = getattr(obj, part)
            field = parts[-1]
            field_info = type(obj).model_fields[field]
            try:
                setattr(obj, field, _cast(field_info.annotation, value))
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid value for {dotted_key}: {value!r}"
                ) from e

    if config.telegram.mode not in ("polling", "webhook"):
        raise ConfigurationError(
            f"telegram.mode must be 'polling' or 'webhook', got {config.telegram.mode!r}"
        )

    if config_path is None:
        _cached_config = config

    return config


def missing_secrets(config: BotConfig) -> List[str]:
    """Return the env var names of required secrets that are not configured."""
    missing = []
    for dotted_key, env_var in REQUIRED_SECRETS.items():
        section, field = dotted_key.split(".")
        if not getattr(getattr(config, section), field):
            missing.append(env_var)
    return missing


def require_secrets(config: BotConfig) -> BotConfig:
    """Fail fast when a required secret is absent.

    Raises:
        ConfigurationError: naming every missing variable.
    """
    missing = missing_secrets(config)
    if missing:
        raise ConfigurationError(
            f"Missing required configuration: {', '.join(missing)}"
        )
    return config


def reset_config_cache() -> None:
    """Forget the cached default config (used by tests and the CLI)."""
    global _cached_config
    _cached_config = None
