"""Transition table for the per-user conversation.

Each entry maps an inbound event (and, for free text, the current state) to
the orchestrator action that handles it and the set of states the user may
be left in afterwards. ``UNCHANGED`` in a target set means "whatever state
the user was in before".
"""

from typing import Dict, FrozenSet, NamedTuple, Optional, Union

from smart_apply.core.model.chat_event import ChatEvent, Command, DocumentUpload, Text
from smart_apply.core.model.conversation_state import ConversationState as S

UNCHANGED = "UNCHANGED"

Target = Union[S, str]


class Transition(NamedTuple):
    action: str
    targets: FrozenSet[Target]


def _t(action: str, *targets: Target) -> Transition:
    return Transition(action, frozenset(targets))


# Commands are accepted in every state.
COMMAND_TRANSITIONS: Dict[str, Transition] = {
    "start": _t("on_start", S.AWAITING_CV),
    "help": _t("on_help", UNCHANGED),
    "upload_new_cv": _t("on_upload_new_cv", S.AWAITING_NAME, S.AWAITING_CV),
    "suggest_new_job_titles": _t("on_suggest_titles", UNCHANGED),
    "search_for_jobs": _t("on_search_for_jobs", S.AWAITING_NAME, S.IDLE, UNCHANGED),
    "update_location": _t("on_update_location", S.AWAITING_LOCATION),
}

# Uploads are accepted in every state.
DOCUMENT_TRANSITION = _t(
    "on_document",
    UNCHANGED,
    S.AWAITING_NAME,
    S.AWAITING_CONFIRMATION,
    S.IDLE,
)

# Free text depends on what the conversation is waiting for.
TEXT_TRANSITIONS: Dict[S, Transition] = {
    S.AWAITING_NAME: _t(
        "on_name", UNCHANGED, S.AWAITING_CV, S.AWAITING_CONFIRMATION, S.IDLE
    ),
    S.AWAITING_CV: _t("on_text_awaiting_cv", UNCHANGED),
    S.AWAITING_CONFIRMATION: _t("on_confirmation", UNCHANGED, S.AWAITING_CV, S.IDLE),
    S.AWAITING_LOCATION: _t("on_location", UNCHANGED, S.IDLE),
    S.IDLE: _t("on_unrecognized_text", UNCHANGED),
}


def resolve(state: S, event: ChatEvent) -> Optional[Transition]:
    """Return the transition for event in state, or None if it is ignored."""
    if isinstance(event, Command):
        return COMMAND_TRANSITIONS.get(event.name)
    if isinstance(event, DocumentUpload):
        return DOCUMENT_TRANSITION
    if isinstance(event, Text):
        # Slash text is routed as a command by the transport, never here
        if event.body.startswith("/"):
            return None
        return TEXT_TRANSITIONS.get(state)
    return None


def is_allowed(transition: Transition, before: S, after: S) -> bool:
    if after in transition.targets:
        return True
    return after == before and UNCHANGED in transition.targets
