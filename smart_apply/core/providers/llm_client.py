import os
from typing import Optional

_llm_cache: dict = {}


def get_llm_client(
    model_name: str = "gemini-2.0-flash",
    api_key: Optional[str] = None,
    temperature: float = 0.2,
):
    """
    Get a cached Gemini chat model client.

    Args:
        model_name: Gemini model to use (defaults to gemini-2.0-flash)
        api_key: Google AI API key (falls back to GEMINI_API_KEY)
        temperature: Sampling temperature

    Returns:
        Configured ChatGoogleGenerativeAI client
    """
    api_key = api_key or os.getenv("GEMINI_API_KEY")
    if not api_key:
        raise ValueError("GEMINI_API_KEY environment variable is required")

    cache_key = (model_name, api_key, temperature)
    if cache_key in _llm_cache:
        return _llm_cache[cache_key]

    from langchain_google_genai import ChatGoogleGenerativeAI

    client = ChatGoogleGenerativeAI(
        model=model_name,
        google_api_key=api_key,
        temperature=temperature,
        max_retries=0,
    )
    _llm_cache[cache_key] = client
    return client
