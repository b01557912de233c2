from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class DatePosted(str, Enum):
    """Recency filters accepted by the job-search API."""

    TODAY = "today"
    THREE_DAYS = "3days"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class JobSearchQuery(BaseModel):
    query: str
    num_pages: int = 1
    date_posted: Optional[DatePosted] = None
    job_type: Optional[str] = None
    location: Optional[str] = None  # Appended to the query text, not a filter


class JobListing(BaseModel):
    """One search hit; unknown API fields are dropped."""

    model_config = ConfigDict(extra="ignore")

    job_title: Optional[str] = None
    employer_name: Optional[str] = None
    job_city: Optional[str] = None
    job_country: Optional[str] = None
    job_apply_link: Optional[str] = None
    job_description: Optional[str] = None
    job_posted_at_timestamp: Optional[int] = None
