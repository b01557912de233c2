"""Error taxonomy for the bot.

``ValidationError`` is shown to the user as guidance and never changes state.
``ExternalCallFailure`` is logged, reported generically, and resets the flow.
``ConfigurationError`` is fatal at startup.
"""


class SmartApplyError(Exception):
    """Base class for all bot errors."""


class ValidationError(SmartApplyError):
    """Bad user input or a missing prerequisite."""


class UnsupportedType(ValidationError):
    """The document's MIME type has no extraction backend."""


class ExternalCallFailure(SmartApplyError):
    """A download, extraction, AI or search call failed."""


class DownloadFailure(ExternalCallFailure):
    pass


class ExtractionFailure(ExternalCallFailure):
    pass


class TitleSuggestionFailure(ExternalCallFailure):
    pass


class InvalidResponseFormat(TitleSuggestionFailure):
    """The model did not answer with a JSON array of job titles."""


class TransportError(ExternalCallFailure):
    """The chat transport rejected a request."""

    def __init__(self, method: str, description: str, error_code: int = 0):
        super().__init__(f"Telegram '{method}' failed: {description}")
        self.method = method
        self.description = description
        self.error_code = error_code


class ConfigurationError(SmartApplyError):
    """A required setting is missing or invalid."""
