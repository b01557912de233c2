from smart_apply.config.config_loader import BotConfig, load_config

__all__ = ["BotConfig", "load_config"]
