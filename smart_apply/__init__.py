"""
Smart Apply Bot: a Telegram assistant that turns a CV into job title
suggestions and fresh job listings.
"""

from smart_apply.core.bot import SmartApplyBot
from smart_apply.core.model import (
    ChatEvent,
    Command,
    ConversationState,
    DocumentUpload,
    JobListing,
    JobSearchQuery,
    Text,
    UserProfile,
)
from smart_apply.core.orchestrator import ConversationOrchestrator

__all__ = [
    # Types
    "UserProfile",
    "ConversationState",
    "JobListing",
    "JobSearchQuery",
    "ChatEvent",
    "Command",
    "Text",
    "DocumentUpload",
    # Runtime
    "ConversationOrchestrator",
    "SmartApplyBot",
]
