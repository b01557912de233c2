"""JSearch (RapidAPI) job-search client."""

from typing import Dict, List, Optional

import httpx
from loguru import logger
from pydantic import ValidationError as SchemaError

from smart_apply.core.model.job_listing import JobListing, JobSearchQuery


class JobSearchClient:
    """Queries the JSearch API. Never raises: any failure yields no listings."""

    def __init__(
        self,
        api_key: str,
        api_host: str = "jsearch.p.rapidapi.com",
        base_url: str = "https://jsearch.p.rapidapi.com",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not api_key:
            raise ValueError("RAPIDAPI_KEY is required for job search")
        self._headers = {"X-RapidAPI-Key": api_key, "X-RapidAPI-Host": api_host}
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    @staticmethod
    def build_params(query: JobSearchQuery) -> Dict[str, str]:
        """Translate a JobSearchQuery into JSearch query-string parameters.

        The location is folded into the free-text query ("<query> in <location>").
        """
        text = query.query.strip()
        if query.location and query.location.strip():
            text = f"{text} in {query.location.strip()}"

        params = {
            "query": text,
            "page": "1",
            "num_pages": str(query.num_pages or 1),
        }
        if query.date_posted is not None:
            params["date_posted"] = query.date_posted.value
        if query.job_type:
            params["job_type"] = query.job_type
        return params

    async def search(self, query: JobSearchQuery) -> List[JobListing]:
        """
        Search for jobs.

        Args:
            query: Search text and filters

        Returns:
            Listings in API order; empty on any transport or API error
        """
        params = self.build_params(query)
        try:
            response = await self._client.get(
                "/search", params=params, headers=self._headers
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError):
            logger.exception("Job search request failed", query=params["query"])
            return []

        raw_jobs = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(raw_jobs, list):
            logger.warning("Job search returned no data array", query=params["query"])
            return []

        listings = []
        for raw in raw_jobs:
            try:
                listings.append(JobListing.model_validate(raw))
            except SchemaError as e:
                logger.warning("Skipping malformed job listing", error=str(e))

        logger.info("Job search completed", query=params["query"], results=len(listings))
        return listings

    async def aclose(self) -> None:
        await self._client.aclose()
