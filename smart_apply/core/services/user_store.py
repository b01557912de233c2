"""In-memory user profile storage."""

from typing import Any, Optional

from loguru import logger

from smart_apply.core.model.user_profile import UserProfile
from smart_apply.core.services.kv_store import InMemoryKeyValueStore, KeyValueStore


class UserStore:
    """Owns every UserProfile; callers read copies and write through upsert."""

    def __init__(self, backend: Optional[KeyValueStore[int, UserProfile]] = None):
        """Initialize the store.

        Args:
            backend: Storage backend (default: process-lifetime memory).
        """
        self._backend = backend if backend is not None else InMemoryKeyValueStore()

    def upsert(self, user_id: int, **fields: Any) -> UserProfile:
        """Create the profile if needed, then merge the supplied fields.

        Only the given fields are overwritten; everything else is kept.

        Args:
            user_id: Stable chat user identifier.
            **fields: UserProfile fields to set.

        Returns:
            A copy of the stored profile after the merge.

        Raises:
            ValueError: If a field name is not part of UserProfile.
        """
        writable = set(UserProfile.model_fields) - {"id"}
        unknown = set(fields) - writable
        if unknown:
            raise ValueError(f"Unknown profile fields: {sorted(unknown)}")

        current = self._backend.get(user_id)
        if current is None:
            profile = UserProfile(id=user_id, **fields)
            logger.debug("Profile created", fields=sorted(fields))
        else:
            profile = UserProfile.model_validate(
                {**current.model_dump(), **fields}
            )
            logger.debug("Profile updated", fields=sorted(fields))

        self._backend.set(user_id, profile)
        return profile.model_copy(deep=True)

    def get(self, user_id: int) -> Optional[UserProfile]:
        """Return a copy of the profile, or None if the user was never seen."""
        profile = self._backend.get(user_id)
        return profile.model_copy(deep=True) if profile is not None else None

    def count(self) -> int:
        return self._backend.count()
