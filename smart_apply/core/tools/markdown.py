"""Telegram MarkdownV2 escaping and job-listing formatting."""

import re
from typing import Iterable, Optional

import httpx

from smart_apply.core.model.job_listing import JobListing

# Telegram MarkdownV2 reserved characters, backslash included.
_MARKDOWN_SPECIAL = re.compile(r"([_*\[\]()~`>#+\-=|{}.!\\])")

APPLY_LINK_TEXT = "Apply Here"
MISSING_LINK_TEXT = "No application link available"


def escape_markdown(text: str) -> str:
    """Backslash-escape every MarkdownV2 special character in text."""
    return _MARKDOWN_SPECIAL.sub(r"\\\1", text or "")


def is_well_formed_url(url: Optional[str]) -> bool:
    if not url:
        return False
    try:
        parsed = httpx.URL(url.strip())
    except (httpx.InvalidURL, TypeError):
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.host)


def format_job_link(url: str, text: str = APPLY_LINK_TEXT) -> str:
    return f"[{escape_markdown(text)}]({escape_markdown(url.strip())})"


def format_job_line(job: JobListing) -> str:
    """Render one listing as an escaped bullet plus its apply link."""
    title = job.job_title or "Untitled Position"
    company = job.employer_name or "Unknown Company"
    link = job.job_apply_link

    if is_well_formed_url(link):
        link_line = format_job_link(link)
    else:
        link_line = escape_markdown(link or MISSING_LINK_TEXT)

    return f"• {escape_markdown(title)} at {escape_markdown(company)}\n  {link_line}"


def format_jobs_message(title: str, location: Optional[str], jobs: Iterable[JobListing]) -> str:
    where = f" in {escape_markdown(location)}" if location else ""
    body = "\n\n".join(format_job_line(job) for job in jobs)
    return f"💼 Jobs for {escape_markdown(title)}{where}:\n\n{body}"


def format_no_jobs_message(title: str, location: Optional[str]) -> str:
    where = f" in {location}" if location else ""
    return escape_markdown(
        f'No jobs found for "{title}"{where}. Try different search criteria.'
    )


def format_numbered_list(items: Iterable[str]) -> str:
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, 1))
