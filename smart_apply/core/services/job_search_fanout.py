"""Runs one job search per suggested title and relays the results to chat."""

from typing import List, TypedDict

from loguru import logger

from smart_apply.core.model.job_listing import DatePosted, JobSearchQuery
from smart_apply.core.model.user_profile import WORLDWIDE, UserProfile, location_filter
from smart_apply.core.providers.job_search_client import JobSearchClient
from smart_apply.core.providers.telegram_transport import MARKDOWN_V2, ChatTransport
from smart_apply.core.tools.markdown import format_jobs_message, format_no_jobs_message


class FanoutResult(TypedDict):
    titles_searched: List[str]
    titles_with_jobs: List[str]
    titles_without_jobs: List[str]
    failed_titles: List[str]


class JobSearchFanout:
    """Searches the first few suggested titles, one chat message per title."""

    def __init__(
        self,
        search_client: JobSearchClient,
        transport: ChatTransport,
        max_titles: int = 3,
        max_listings: int = 5,
        date_posted: DatePosted = DatePosted.TODAY,
        job_type: str = "FULLTIME",
        num_pages: int = 1,
    ):
        self._search_client = search_client
        self._transport = transport
        self._max_titles = max_titles
        self._max_listings = max_listings
        self._date_posted = DatePosted(date_posted)
        self._job_type = job_type
        self._num_pages = num_pages

    def build_query(self, title: str, location: str) -> JobSearchQuery:
        return JobSearchQuery(
            query=title,
            num_pages=self._num_pages,
            date_posted=self._date_posted,
            job_type=self._job_type,
            location=location_filter(location),
        )

    async def run(self, chat_id: int, profile: UserProfile) -> FanoutResult:
        """
        Search jobs for the profile's top suggested titles.

        A failure for one title is reported and the remaining titles still
        run. State handling is left to the caller.

        Args:
            chat_id: Chat to send results to
            profile: Profile with suggested titles and a location

        Returns:
            Per-title outcome summary
        """
        location = profile.location or WORLDWIDE
        result = FanoutResult(
            titles_searched=[],
            titles_with_jobs=[],
            titles_without_jobs=[],
            failed_titles=[],
        )

        for title in profile.suggested_titles[: self._max_titles]:
            result["titles_searched"].append(title)
            try:
                jobs = await self._search_client.search(self.build_query(title, location))

                if not jobs:
                    await self._transport.send_message(
                        chat_id,
                        format_no_jobs_message(title, location),
                        parse_mode=MARKDOWN_V2,
                    )
                    result["titles_without_jobs"].append(title)
                    continue

                message = format_jobs_message(title, location, jobs[: self._max_listings])
                await self._transport.send_message(
                    chat_id,
                    message,
                    parse_mode=MARKDOWN_V2,
                    disable_link_preview=True,
                )
                result["titles_with_jobs"].append(title)

            except Exception:
                logger.exception("Job search failed for title", title=title)
                result["failed_titles"].append(title)
                await self._report_failure(chat_id, title)

        logger.info(
            "Job search fan-out finished",
            searched=len(result["titles_searched"]),
            with_jobs=len(result["titles_with_jobs"]),
            failed=len(result["failed_titles"]),
        )
        return result

    async def _report_failure(self, chat_id: int, title: str) -> None:
        try:
            await self._transport.send_message(
                chat_id,
                f'❌ Failed to search for jobs with title "{title}". Please try again later.',
            )
        except Exception:
            logger.exception("Could not report job search failure", title=title)

    async def aclose(self) -> None:
        await self._search_client.aclose()
