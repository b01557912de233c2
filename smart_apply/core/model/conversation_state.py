from enum import Enum


class ConversationState(str, Enum):
    """Step a user is currently at within the guided flow."""

    AWAITING_NAME = "AWAITING_NAME"
    AWAITING_CV = "AWAITING_CV"
    AWAITING_CONFIRMATION = "AWAITING_CONFIRMATION"
    AWAITING_LOCATION = "AWAITING_LOCATION"
    IDLE = "IDLE"
