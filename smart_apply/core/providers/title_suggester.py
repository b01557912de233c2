"""Job-title suggestions from résumé text via a chat model."""

import json
import re
from typing import Any, List

from langchain_core.prompts import ChatPromptTemplate
from loguru import logger

from smart_apply.core.errors import InvalidResponseFormat, TitleSuggestionFailure

TITLE_COUNT = 5

_JSON_ARRAY = re.compile(r"\[\s*\".*?\"\s*\]", re.DOTALL)

SUGGEST_PROMPT = ChatPromptTemplate.from_template(
    """
    Analyze the following CV and suggest the top 5 most relevant job titles based on skills, experience, and qualifications.

    IMPORTANT: Return ONLY a valid JSON array of exactly 5 job title strings. Do not include any other text, explanations, or formatting outside the JSON array.

    Example of expected format:
    ["Job Title 1", "Job Title 2", "Job Title 3", "Job Title 4", "Job Title 5"]

    CV to analyze:
    {cv_text}
    """
)


def _response_text(response: Any) -> str:
    content = response.content if hasattr(response, "content") else response
    if isinstance(content, list):
        # Multi-part messages: keep the text parts only
        content = "".join(
            part.get("text", "") if isinstance(part, dict) else str(part)
            for part in content
        )
    return str(content).strip()


def parse_titles(text: str, expected: int = TITLE_COUNT) -> List[str]:
    """Parse the model output into an ordered list of job titles.

    A JSON array embedded in surrounding prose or code fences is extracted
    first; the result must be exactly ``expected`` non-blank strings.

    Raises:
        InvalidResponseFormat: If no such array can be parsed.
    """
    match = _JSON_ARRAY.search(text)
    json_string = match.group(0) if match else text

    try:
        titles = json.loads(json_string)
    except json.JSONDecodeError as e:
        raise InvalidResponseFormat(f"Model response is not a JSON array: {e}") from e

    if not isinstance(titles, list) or not all(isinstance(t, str) for t in titles):
        raise InvalidResponseFormat("Model response is not an array of strings")

    titles = [t.strip() for t in titles]
    if len(titles) != expected or not all(titles):
        raise InvalidResponseFormat(
            f"Expected {expected} job titles, got {len([t for t in titles if t])}"
        )
    return titles


class TitleSuggester:
    """Asks the chat model for the job titles a résumé fits best."""

    def __init__(self, model, expected: int = TITLE_COUNT):
        self._chain = SUGGEST_PROMPT | model
        self._expected = expected

    async def suggest(self, resume_text: str) -> List[str]:
        """
        Suggest job titles for a résumé.

        Args:
            resume_text: Plain résumé text

        Returns:
            Exactly five job titles, most relevant first

        Raises:
            InvalidResponseFormat: The model answer could not be parsed
            TitleSuggestionFailure: The model call itself failed
        """
        logger.info("Requesting job title suggestions", cv_chars=len(resume_text))
        try:
            response = await self._chain.ainvoke({"cv_text": resume_text})
        except Exception as e:
            raise TitleSuggestionFailure(f"Failed to analyze CV: {e}") from e

        titles = parse_titles(_response_text(response), self._expected)
        logger.info("Job titles suggested", count=len(titles))
        return titles
