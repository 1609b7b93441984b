"""Turn one card's HTML into an ExtractedEvent with an OpenAI JSON-mode call."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any

import openai
from openai import AsyncOpenAI

from eventdigest.api.schemas import UNKNOWN, ExtractedEvent
from eventdigest.pipeline.errors import ExtractionOtherError, ExtractionParseError, ExtractionRateLimitError
from eventdigest.pipeline.prompts import format_extraction_prompt, zip_flag_key
from eventdigest.pipeline.retry import RetryConfig, retry_with_backoff

logger = logging.getLogger(__name__)

ERROR_EVENT_NAME = "Error extracting"

_FENCE_RE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?```$", re.DOTALL)

_STRING_FIELDS = {
    "eventName": "event_name",
    "date": "date",
    "location": "location",
    "generalArea": "general_area",
    "detailedPageLink": "detailed_page_link",
    "imageUrl": "image_url",
    "zipCode": "zip_code",
}


def error_event(message: str) -> ExtractedEvent:
    """The placeholder record used when a card could not be extracted."""
    return ExtractedEvent(
        event_name=ERROR_EVENT_NAME,
        date=UNKNOWN,
        location=UNKNOWN,
        general_area=UNKNOWN,
        detailed_page_link=UNKNOWN,
        image_url=UNKNOWN,
        zip_code=UNKNOWN,
        has_zip_code=False,
        error=message,
    )


def strip_code_fences(text: str) -> str:
    """Remove a ```json ... ``` or ``` ... ``` wrapper if the model added one."""
    text = text.strip()
    match = _FENCE_RE.match(text)
    if match:
        return match.group(1).strip()
    return text


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return False


def parse_event_json(raw: str, zip_code: str) -> ExtractedEvent:
    """Parse the model output into an ExtractedEvent.

    Raises ``ExtractionParseError`` when the text is not a JSON object.
    """
    text = strip_code_fences(raw)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ExtractionParseError(f"invalid JSON from model: {exc}") from exc
    if not isinstance(data, dict):
        raise ExtractionParseError(f"expected a JSON object, got {type(data).__name__}")

    values: dict[str, Any] = {}
    for key, field_name in _STRING_FIELDS.items():
        value = data.get(key)
        if value is None or value == "":
            continue
        values[field_name] = str(value).strip()

    flag = data.get(zip_flag_key(zip_code), data.get("hasZipCode", False))
    values["has_zip_code"] = _as_bool(flag)
    return ExtractedEvent(**values)


def is_rate_limited(exc: BaseException) -> bool:
    """True for errors that mean 'slow down', which are the only ones retried."""
    if isinstance(exc, ExtractionRateLimitError):
        return True
    return getattr(exc, "status_code", None) == 429


class LLMExtractor:
    """Extracts one event per HTML fragment and never raises to its caller."""

    def __init__(
        self,
        client: AsyncOpenAI,
        *,
        model: str = "gpt-4o-mini",
        zip_code: str = "14075",
        retry_config: RetryConfig | None = None,
        timeout: float = 60.0,
    ) -> None:
        self._client = client
        self._model = model
        self._zip_code = zip_code
        self._retry = retry_config or RetryConfig()
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> LLMExtractor:
        client = AsyncOpenAI(
            api_key=settings.openai_api_key,
            timeout=settings.llm_timeout_seconds,
            max_retries=0,
        )
        return cls(
            client,
            model=settings.llm_model,
            zip_code=settings.target_zip_code,
            retry_config=RetryConfig(
                max_retries=settings.max_retries,
                base_delay=settings.retry_base_delay,
            ),
            timeout=settings.llm_timeout_seconds,
        )

    async def _complete(self, prompt: str) -> str:
        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=self._model,
                    messages=[{"role": "user", "content": prompt}],
                    response_format={"type": "json_object"},
                ),
                timeout=self._timeout,
            )
        except openai.RateLimitError as exc:
            raise ExtractionRateLimitError(str(exc)) from exc
        except (openai.APIError, asyncio.TimeoutError) as exc:
            raise ExtractionOtherError(str(exc) or type(exc).__name__) from exc
        return response.choices[0].message.content or ""

    async def extract_one(self, html_fragment: str, ordinal: int) -> ExtractedEvent:
        """Extract a single card; failures come back as an error record."""
        prompt = format_extraction_prompt(html_fragment, self._zip_code)

        async def attempt() -> ExtractedEvent:
            raw = await self._complete(prompt)
            return parse_event_json(raw, self._zip_code)

        try:
            event = await retry_with_backoff(
                attempt,
                self._retry,
                is_rate_limited,
                label=f"extraction of event {ordinal}",
            )
        except Exception as exc:
            message = str(exc) or type(exc).__name__
            logger.warning(
                "event extraction failed",
                extra={"ordinal": ordinal, "error": message, "error_type": type(exc).__name__},
            )
            return error_event(message)

        logger.debug(
            "event extracted",
            extra={"ordinal": ordinal, "event_name": event.event_name[:80], "has_zip_code": event.has_zip_code},
        )
        return event
