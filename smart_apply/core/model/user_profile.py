from typing import List, Optional

from pydantic import BaseModel, Field

# Literal location value meaning "no location filter".
WORLDWIDE = "Worldwide"


class UserProfile(BaseModel):
    id: int
    display_name: Optional[str] = None
    resume_text: Optional[str] = None
    suggested_titles: List[str] = Field(default_factory=list)  # Latest AI suggestion
    preferred_titles: List[str] = Field(default_factory=list)  # Reserved, never mutated
    location: str = WORLDWIDE

    @property
    def has_resume(self) -> bool:
        return bool(self.resume_text and self.resume_text.strip())


def location_filter(location: Optional[str]) -> Optional[str]:
    """Return the location to search in, or None for an unrestricted search.

    Unset, blank and the "Worldwide" sentinel (any casing) all mean no filter.
    """
    if not location or not location.strip():
        return None
    if location.strip().lower() == WORLDWIDE.lower():
        return None
    return location.strip()
