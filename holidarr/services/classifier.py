"""AI fallback classifier backed by an Azure OpenAI chat deployment."""

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Dict, List, NamedTuple, Optional, Tuple

import niquests
from aiolimiter import AsyncLimiter
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from holidarr.core.config import Settings, get_settings
from holidarr.models.holiday import AI_HOLIDAY_TOKENS
from holidarr.models.media import (
    AIClassificationResult,
    Episode,
    HolidayClassification,
    MediaItem,
)
from holidarr.services.classification_cache import ClassificationCache

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a holiday classification model for movies and TV episodes.

Your task:
Given metadata about a piece of media (such as title, episode number, season number, description, and synopsis), identify any holidays that are explicitly or implicitly referenced. You must analyze the text carefully for themes, events, characters, symbols, settings, or phrases associated with real-world holidays.

Your output:
Return ONLY a JSON object with a single key: "holidays".
The value must be a JSON array of objects, where each object has:
- "holiday": string (lowercase holiday name)
- "confidence": number (1-100, how confident you are)
- "reason": string (brief explanation of why)

Example:
{
  "holidays": [
    {
      "holiday": "christmas",
      "confidence": 95,
      "reason": "Santa Claus, presents, and Christmas tree mentioned"
    },
    {
      "holiday": "thanksgiving",
      "confidence": 80,
      "reason": "Family gathering and turkey dinner scene"
    }
  ]
}

Rules:
1. Do NOT include explanations, reasoning, or any text outside the JSON object.
2. Output must always be valid JSON.
3. If no holiday is present, return an empty array: {"holidays": []}
4. Holidays must be REAL and commonly recognized.
5. Classify even indirect or thematic references (e.g., "a mysterious man in a red suit delivering presents" -> christmas).
6. Multiple holidays may apply simultaneously.
7. Confidence should be 70+ for strong matches, 50-70 for moderate, below 50 for weak.
8. Do NOT include any holiday with confidence below 50.

Recognized Holidays:
""" + "\n".join(f"- {token}" for token in AI_HOLIDAY_TOKENS) + """

Notes:
- generic_winter_holiday: snowy specials without explicit holiday naming
- generic_holiday: a holiday theme is present but unspecified

Important:
- Do NOT invent unknown holidays.
- Do NOT guess; only classify when the description contains meaningful signals.
- If the content is a "holiday special", even without the holiday named, classify based on context.
- Always provide confidence and reason for each holiday match.
"""

CONTENT_FILTER_CODE = "content_filter"


class BatchOutcome(NamedTuple):
    """Result of one item in a batch run; exactly one of result and error is set."""

    item: MediaItem
    result: Optional[AIClassificationResult]
    error: Optional[Exception]


class ClassifierConfigError(Exception):
    """The AI backend cannot be used with the current configuration."""


class MalformedResponseError(Exception):
    """The backend answered, but not with the JSON we asked for."""


class BackendError(Exception):
    """Error response from the AI backend."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.retry_after = retry_after

    @classmethod
    def from_response(cls, response: Any) -> "BackendError":
        """Build the matching error subclass from an HTTP error response."""
        status = response.status_code
        code = None
        message = f"AI backend returned HTTP {status}"
        try:
            body = response.json()
        except Exception:
            body = None
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            error = body["error"]
            code = error.get("code")
            message = error.get("message") or message

        if status == 429:
            return RateLimitError(
                message,
                status_code=status,
                code=code,
                retry_after=_parse_retry_after(response.headers),
            )
        if status == 400 and code == CONTENT_FILTER_CODE:
            return ContentFilterError(message, status_code=status, code=code)
        return cls(message, status_code=status, code=code)


class RateLimitError(BackendError):
    """HTTP 429 from the backend. Retryable."""


class ContentFilterError(BackendError):
    """The backend's content policy refused the request. Not retryable."""


def _parse_retry_after(headers: Any) -> Optional[float]:
    if headers is None:
        return None
    value = headers.get("retry-after-ms")
    if value is not None:
        try:
            return float(value) / 1000
        except (TypeError, ValueError):
            pass
    value = headers.get("retry-after")
    if value is not None:
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning("Could not parse retry-after header %r", value)
    return None


def build_request_payload(item: MediaItem) -> Dict[str, Any]:
    """The compact metadata sent to the backend for one item."""
    if isinstance(item, Episode):
        return {
            "title": item.title,
            "seriesTitle": item.series_title,
            "seasonNumber": item.season_number,
            "episodeNumber": item.episode_number,
            "description": item.summary or "",
        }
    return {
        "title": item.title,
        "year": item.year,
        "description": item.summary or "",
    }


def parse_classification(content: Optional[str]) -> Tuple[Dict[str, Any], AIClassificationResult]:
    """Parse the backend's JSON answer.

    Unrecognized holiday tokens and malformed entries are dropped one by one;
    only a payload that is not a JSON object with a "holidays" list fails.

    Returns:
        Tuple of (raw decoded payload, mapped result)

    Raises:
        MalformedResponseError: If the payload cannot be used at all.
    """
    if not content:
        raise MalformedResponseError("Empty response from AI")
    try:
        raw = json.loads(content)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(f"AI response is not valid JSON: {exc}") from exc

    if not isinstance(raw, dict):
        raise MalformedResponseError("AI response is not a JSON object")
    entries = raw.get("holidays", [])
    if not isinstance(entries, list):
        raise MalformedResponseError('AI response "holidays" is not a list')

    holidays: List[HolidayClassification] = []
    for entry in entries:
        if not isinstance(entry, dict):
            logger.warning("Skipping malformed AI entry: %r", entry)
            continue
        token = str(entry.get("holiday", "")).strip().lower()
        holiday = AI_HOLIDAY_TOKENS.get(token)
        if holiday is None:
            logger.warning(f'AI returned unrecognized holiday: "{token}" - skipping')
            continue
        try:
            holidays.append(
                HolidayClassification(
                    holiday=holiday,
                    confidence=entry.get("confidence"),
                    reason=entry.get("reason"),
                )
            )
        except ValidationError as exc:
            logger.warning("Skipping invalid AI entry %r: %s", entry, exc)

    return raw, AIClassificationResult(holidays=holidays)


class HolidayAIClassifier:
    """Classifies single media items with a generative model, at most once each.

    Args:
        cache: Store consulted before, and written after, every backend call.
        settings: Application settings (credentials, pacing, retry policy).

    Raises:
        ClassifierConfigError: If the Azure OpenAI key or endpoint is missing.
    """

    def __init__(
        self,
        cache: Optional[ClassificationCache] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        if not settings.ai_configured:
            raise ClassifierConfigError("Azure OpenAI credentials not configured")

        self._settings = settings
        self.cache = cache or ClassificationCache()
        self.model = settings.azure_openai_model
        self.api_version = settings.azure_openai_api_version
        self.endpoint = f"{settings.azure_openai_endpoint.rstrip('/')}/chat/completions"
        self.max_retries = settings.ai_max_retries
        self.base_delay = settings.ai_base_delay
        self.batch_delay = settings.ai_batch_delay
        self.backend_calls = 0

        self.rate_limiter = AsyncLimiter(settings.ai_requests_per_minute, 60.0)
        # Connection-level retries only; HTTP 429 is handled in classify()
        self.session = niquests.AsyncSession(retries=2)
        if settings.proxy:
            self.session.proxies = {"http": settings.proxy, "https": settings.proxy}

    async def aclose(self) -> None:
        """Properly close the internal HTTP session."""
        if self.session:
            await self.session.close()

    async def _post(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """POST a chat completion request and return the decoded body."""
        async with self.rate_limiter:
            response = await self.session.post(
                self.endpoint,
                params={"api-version": self.api_version},
                json=body,
                headers={
                    "api-key": self._settings.azure_openai_key.get_secret_value(),
                    "Content-Type": "application/json",
                },
                timeout=self._settings.ai_timeout,
            )
        if response.status_code is None or response.status_code >= 400:
            raise BackendError.from_response(response)
        return response.json()

    async def _complete(self, request_payload: Dict[str, Any]) -> Optional[str]:
        """Ask the backend about one item and return the message content."""
        self.backend_calls += 1
        data = await self._post(
            {
                "model": self.model,
                "messages": [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": json.dumps(request_payload)},
                ],
                "response_format": {"type": "json_object"},
            }
        )
        logger.debug(
            "AI response id=%s model=%s usage=%s",
            data.get("id"),
            data.get("model"),
            data.get("usage"),
        )
        choices = data.get("choices") or []
        if not choices:
            raise MalformedResponseError("AI returned no choices")
        return (choices[0].get("message") or {}).get("content")

    async def _sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    async def _persist(
        self,
        item: MediaItem,
        request_payload: Dict[str, Any],
        response_payload: Dict[str, Any],
        result: AIClassificationResult,
    ) -> None:
        """Write the result; a failure only costs a re-classification next run."""
        try:
            await self.cache.store(
                item, request_payload, response_payload, result, self.model
            )
        except SQLAlchemyError as exc:
            logger.error(f"Failed to cache AI classification for {item.label}: {exc}")

    async def classify(self, item: MediaItem) -> AIClassificationResult:
        """Classify one item, reusing the stored answer when there is one.

        Only actionable verdicts (confidence >= 70) are returned and stored.

        Raises:
            RateLimitError: If the backend is still rate limiting after all retries.
            MalformedResponseError: If the answer is not usable JSON.
            BackendError: For any other backend error response.
        """
        cached = await self.cache.get_cached(item.external_id)
        if cached is not None:
            logger.info(f"Using cached AI classification for {item.label}")
            return cached.result

        request_payload = build_request_payload(item)
        logger.info(f"Classifying with AI: {item.label}")

        attempt = 0
        while True:
            try:
                content = await self._complete(request_payload)
                break
            except ContentFilterError as exc:
                logger.warning(
                    f"Content filtered by AI policy, caching as no match: {item.label}"
                )
                result = AIClassificationResult()
                await asyncio.shield(
                    self._persist(
                        item,
                        request_payload,
                        {"holidays": [], "error": {"code": exc.code, "message": str(exc)}},
                        result,
                    )
                )
                return result
            except RateLimitError as exc:
                if attempt >= self.max_retries:
                    logger.error(
                        f"Rate limit persisted after {self.max_retries} retries: {item.label}"
                    )
                    raise
                attempt += 1
                delay = exc.retry_after
                if delay is None:
                    delay = self.base_delay * 2 ** (attempt - 1)
                logger.warning(
                    f"Rate limit hit (429), retrying after {delay}s "
                    f"(attempt {attempt}/{self.max_retries})"
                )
                await self._sleep(delay)
            except Exception as exc:
                logger.error(f"Error classifying {item.label} with AI: {exc}")
                raise

        try:
            raw, parsed = parse_classification(content)
        except MalformedResponseError as exc:
            logger.error(f"Unusable AI response for {item.label}: {exc}")
            raise

        for entry in parsed.holidays:
            if not entry.actionable:
                logger.info(
                    f"Discarding weak AI match {entry.holiday} "
                    f"({entry.confidence}%) for {item.label}"
                )
        result = AIClassificationResult(holidays=parsed.actionable())

        await asyncio.shield(self._persist(item, request_payload, raw, result))

        logger.info(
            f"AI classification complete for {item.label}: "
            f"{len(result.holidays)} holiday matches"
        )
        for h in result.holidays:
            logger.info(f"   - {h.holiday}: {h.confidence}% ({h.reason})")
        return result

    async def iter_batch(
        self,
        items: List[MediaItem],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[BatchOutcome]:
        """Classify items one after another, yielding each outcome in input order.

        A failing item is yielded with its error instead of raising. Once
        cancel_event is set no further backend calls are started.
        """
        for index, item in enumerate(items):
            if cancel_event is not None and cancel_event.is_set():
                logger.info(
                    f"Batch classification cancelled after {index}/{len(items)} items"
                )
                return

            calls_before = self.backend_calls
            try:
                outcome = BatchOutcome(item, await self.classify(item), None)
            except Exception as exc:
                logger.error(f"Failed to classify {item.label}: {exc}")
                outcome = BatchOutcome(item, None, exc)
            yield outcome

            # Pace only calls that actually reached the backend
            if self.backend_calls != calls_before and index < len(items) - 1:
                await self._sleep(self.batch_delay)

    async def classify_batch(
        self,
        items: List[MediaItem],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Dict[str, AIClassificationResult]:
        """Classify items one after another; failed items are left out."""
        return {
            outcome.item.external_id: outcome.result
            async for outcome in self.iter_batch(items, cancel_event)
            if outcome.error is None
        }

    async def get_stored_classifications(
        self, external_id: str
    ) -> List[HolidayClassification]:
        return await self.cache.get_stored_classifications(external_id)
