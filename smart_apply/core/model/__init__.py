from smart_apply.core.model.chat_event import ChatEvent, Command, DocumentUpload, Text
from smart_apply.core.model.conversation_state import ConversationState
from smart_apply.core.model.job_listing import DatePosted, JobListing, JobSearchQuery
from smart_apply.core.model.user_profile import WORLDWIDE, UserProfile, location_filter

__all__ = [
    "ChatEvent",
    "Command",
    "Text",
    "DocumentUpload",
    "ConversationState",
    "DatePosted",
    "JobListing",
    "JobSearchQuery",
    "WORLDWIDE",
    "UserProfile",
    "location_filter",
]
