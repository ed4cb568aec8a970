"""API routes returning JSON for the collection UI or external tools."""

import logging
from functools import lru_cache
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import Field

from holidarr.core.config import get_settings
from holidarr.holiday.matcher import HolidayMatcher
from holidarr.models.holiday import CURATED_HOLIDAYS, Holiday
from holidarr.models.media import (
    CamelModel,
    HolidayClassification,
    HolidayCollection,
    HolidayMatch,
    MediaItem,
)
from holidarr.services.activity import ActivityEntry, ActivityLog
from holidarr.services.classification_cache import ClassificationCache
from holidarr.services.classifier import ClassifierConfigError, HolidayAIClassifier
from holidarr.services.orchestrator import BulkClassificationSummary, HolidayOrchestrator
from holidarr.services.titles import TitleCorpusFetcher

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Dependencies ---


@lru_cache
def get_classification_cache() -> ClassificationCache:
    return ClassificationCache()


@lru_cache
def get_title_fetcher() -> TitleCorpusFetcher:
    return TitleCorpusFetcher()


@lru_cache
def get_classifier() -> Optional[HolidayAIClassifier]:
    """Shared AI classifier, or None when no credentials are configured."""
    try:
        return HolidayAIClassifier(cache=get_classification_cache())
    except ClassifierConfigError as e:
        logger.warning(f"AI classification disabled: {e}")
        return None


def require_media(media: List[MediaItem]) -> None:
    if not media:
        raise HTTPException(status_code=400, detail="No media items provided")


def require_classifier(
    classifier: Optional[HolidayAIClassifier],
) -> HolidayAIClassifier:
    if classifier is None:
        raise HTTPException(
            status_code=503, detail="Azure OpenAI credentials not configured"
        )
    return classifier


async def build_matcher(
    fetcher: TitleCorpusFetcher,
    skip_titles: bool,
    holidays: Optional[List[Holiday]] = None,
) -> HolidayMatcher:
    titles = await fetcher.fetch_titles(skip=skip_titles, holidays=holidays)
    return HolidayMatcher(
        additional_titles=titles, threshold=get_settings().match_threshold
    )


# --- Request / response bodies ---


class MatchRequest(CamelModel):
    """Request body for pattern-only matching."""

    media: List[MediaItem]
    selected_holidays: Optional[List[Holiday]] = None
    threshold: Optional[int] = None
    skip_titles: bool = False


class ClassifyItemRequest(CamelModel):
    """Request body for classifying a single item with AI."""

    item: MediaItem
    selected_holidays: List[Holiday] = Field(default_factory=lambda: list(Holiday))


class ClassifyItemResponse(CamelModel):
    item: MediaItem
    matches: List[HolidayClassification] = []
    error: Optional[str] = None


class BulkClassifyRequest(CamelModel):
    """Request body for bulk classification."""

    media: List[MediaItem]
    selected_holidays: List[Holiday] = Field(default_factory=lambda: list(Holiday))
    use_ai: bool = Field(False, alias="useAI")


class CollectionsRequest(BulkClassifyRequest):
    """Request body for the full collection workflow."""

    threshold: Optional[int] = None
    skip_titles: bool = False


class CollectionsResponse(CamelModel):
    matches: List[HolidayMatch] = []
    collections: List[HolidayCollection] = []
    activity: List[ActivityEntry] = []


# --- Routes ---


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "service": "holidarr"}


@router.get("/holidays")
async def list_holidays(
    classifier: Optional[HolidayAIClassifier] = Depends(get_classifier),
):
    """List supported holidays and which of them have curated patterns."""
    return {
        "holidays": [h.value for h in Holiday],
        "curated": [h.value for h in CURATED_HOLIDAYS],
        "aiConfigured": classifier is not None,
    }


@router.get("/titles")
async def get_titles(
    skip: bool = Query(False, description="Skip fetching the title corpus"),
    holidays: Optional[List[Holiday]] = Query(None, description="Holidays to fetch"),
    fetcher: TitleCorpusFetcher = Depends(get_title_fetcher),
):
    """Return the scraped holiday title corpus (cached for a week)."""
    titles = await fetcher.fetch_titles(skip=skip, holidays=holidays)
    return {
        "titles": {holiday.value: items for holiday, items in titles.items()},
        "total": sum(len(items) for items in titles.values()),
    }


@router.delete("/titles/cache")
async def clear_titles_cache(
    fetcher: TitleCorpusFetcher = Depends(get_title_fetcher),
):
    """Forget cached title lists so the next request scrapes again."""
    await fetcher.clear_cache()
    return {"status": "cleared"}


@router.post("/matches", response_model=List[HolidayMatch])
async def match_media(
    request: MatchRequest,
    fetcher: TitleCorpusFetcher = Depends(get_title_fetcher),
):
    """Run the pattern matcher only. No AI calls are made."""
    require_media(request.media)
    matcher = await build_matcher(fetcher, request.skip_titles)
    threshold = request.threshold if request.threshold is not None else matcher.threshold
    return matcher.find_matches_with_threshold(
        request.media, threshold, request.selected_holidays
    )


@router.post("/classify-item", response_model=ClassifyItemResponse)
async def classify_item(
    request: ClassifyItemRequest,
    classifier: Optional[HolidayAIClassifier] = Depends(get_classifier),
):
    """Classify one item with AI, using the cache when possible.

    A classification failure is reported in the body, never as an HTTP error.
    """
    ai = require_classifier(classifier)
    try:
        result = await ai.classify(request.item)
    except Exception as e:
        logger.error(f"Failed to classify {request.item.label}: {e}")
        return ClassifyItemResponse(item=request.item, error=str(e))

    matches = result.actionable(request.selected_holidays)
    logger.info(f"Classified {request.item.label}: {len(matches)} matches")
    return ClassifyItemResponse(item=request.item, matches=matches)


@router.post("/bulk-classify", response_model=BulkClassificationSummary)
async def bulk_classify(
    request: BulkClassifyRequest,
    cache: ClassificationCache = Depends(get_classification_cache),
    classifier: Optional[HolidayAIClassifier] = Depends(get_classifier),
):
    """Classify a batch, calling the AI backend only for uncached items."""
    require_media(request.media)
    if request.use_ai:
        require_classifier(classifier)

    orchestrator = HolidayOrchestrator(
        cache=cache,
        classifier=classifier,
        activity=ActivityLog(),
    )
    return await orchestrator.bulk_classify(
        request.media, request.selected_holidays, use_ai=request.use_ai
    )


@router.post("/collections", response_model=CollectionsResponse)
async def build_collections(
    request: CollectionsRequest,
    cache: ClassificationCache = Depends(get_classification_cache),
    fetcher: TitleCorpusFetcher = Depends(get_title_fetcher),
    classifier: Optional[HolidayAIClassifier] = Depends(get_classifier),
):
    """Full workflow: cache, AI, pattern matcher, merge, TV/Movies collections."""
    require_media(request.media)
    if request.use_ai:
        require_classifier(classifier)

    activity = ActivityLog()
    orchestrator = HolidayOrchestrator(
        cache=cache,
        matcher=await build_matcher(fetcher, request.skip_titles),
        classifier=classifier,
        activity=activity,
        collection_prefix=get_settings().collection_prefix,
    )
    matches = await orchestrator.find_matches(
        request.media,
        request.selected_holidays,
        use_ai=request.use_ai,
        threshold=request.threshold,
    )
    return CollectionsResponse(
        matches=matches,
        collections=orchestrator.build_collections(matches),
        activity=activity.entries,
    )
