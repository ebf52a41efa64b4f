"""
Gemini REST client: prompt in, text out.

Retries timeouts, connection errors, 5xx and 429 with exponential backoff.
Every failure surfaces as GenerationError so routes map it to 502.
"""

import asyncio
from typing import Any, Optional

import httpx

from learnpath.config import get_settings
from learnpath.kernel.errors import GenerationError
from learnpath.logging_config import get_logger

logger = get_logger(__name__)

RETRY_BACKOFF = (1.0, 2.0, 4.0)  # seconds


def _backoff(attempt: int) -> float:
    return RETRY_BACKOFF[min(attempt, len(RETRY_BACKOFF) - 1)]


async def _request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    max_retries: int,
    **kwargs: Any,
) -> httpx.Response:
    """Perform request with exponential backoff for 5xx, 429 and timeouts."""
    last_exc: Optional[Exception] = None
    for attempt in range(max_retries):
        try:
            response = await client.request(method, url, **kwargs)
        except (httpx.TimeoutException, httpx.ConnectError) as e:
            last_exc = e
            logger.warning("Gemini request failed (attempt %d): %s", attempt + 1, e)
            if attempt < max_retries - 1:
                await asyncio.sleep(_backoff(attempt))
            continue

        if response.status_code == 429 and attempt < max_retries - 1:
            retry_after = response.headers.get("Retry-After")
            wait = int(retry_after) if retry_after and retry_after.isdigit() else _backoff(attempt)
            await asyncio.sleep(wait)
            continue
        if response.status_code >= 500 and attempt < max_retries - 1:
            await asyncio.sleep(_backoff(attempt))
            continue
        return response

    raise last_exc


class GeminiClient:
    """
    Thin wrapper around the ``generateContent`` endpoint.

    Usage:
        client = GeminiClient()
        text = await client.generate("Suggest a title for ...")
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
    ):
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.model = model or settings.gemini_model
        self.base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self.timeout = timeout or settings.generation_timeout_seconds
        self.max_retries = max(1, max_retries or settings.generation_max_retries)
        self.temperature = settings.generation_temperature
        self.max_output_tokens = settings.generation_max_output_tokens

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.model}:generateContent"

    async def generate(self, prompt: str) -> str:
        """
        Send one prompt and return the first candidate's text.

        Raises:
            GenerationError: Missing API key, service unavailable after
                retries, error status, or unexpected response shape
        """
        if not (self.api_key or "").strip():
            raise GenerationError("Generative content is not configured (GEMINI_API_KEY missing)")

        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
            },
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await _request_with_retry(
                    client,
                    "POST",
                    self.url,
                    self.max_retries,
                    json=body,
                    headers={"x-goog-api-key": self.api_key},
                )
        except (httpx.TimeoutException, httpx.ConnectError) as e:
            raise GenerationError("Generative content service is unavailable") from e

        if response.status_code >= 400:
            logger.error("Gemini returned status %s", response.status_code)
            raise GenerationError(
                f"Generative content service returned status {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise GenerationError("Generative content service returned invalid JSON") from e

        return _candidate_text(data)


def _candidate_text(data: Any) -> str:
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise GenerationError("Unexpected response format from generative content service") from e
    if not isinstance(text, str):
        raise GenerationError("Unexpected response format from generative content service")
    return text
