from typing import Optional

from smart_apply.core.model.conversation_state import ConversationState
from smart_apply.core.services.kv_store import InMemoryKeyValueStore, KeyValueStore


class ConversationStateStore:
    """Current ConversationState per user; a missing entry reads as IDLE."""

    def __init__(
        self, backend: Optional[KeyValueStore[int, ConversationState]] = None
    ):
        self._backend = backend if backend is not None else InMemoryKeyValueStore()

    def get(self, user_id: int) -> ConversationState:
        return self._backend.get(user_id) or ConversationState.IDLE

    def set(self, user_id: int, state: ConversationState) -> None:
        self._backend.set(user_id, ConversationState(state))
