from smart_apply.core.services.job_search_fanout import FanoutResult, JobSearchFanout
from smart_apply.core.services.kv_store import InMemoryKeyValueStore, KeyValueStore
from smart_apply.core.services.state_store import ConversationStateStore
from smart_apply.core.services.user_store import UserStore

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "UserStore",
    "ConversationStateStore",
    "JobSearchFanout",
    "FanoutResult",
]
