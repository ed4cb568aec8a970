"""Bulk holiday classification workflow.

Combines cached AI verdicts, fresh AI calls for uncached items and the
pattern matcher into one set of per-holiday groupings.
"""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from holidarr.holiday.matcher import HolidayMatcher
from holidarr.library.base import MediaLibrary
from holidarr.models.holiday import Holiday
from holidarr.models.media import (
    CamelModel,
    Episode,
    HolidayClassification,
    HolidayCollection,
    HolidayMatch,
    MediaItem,
    Movie,
)
from holidarr.services.activity import ActivityEntry, ActivityLog
from holidarr.services.classification_cache import ClassificationCache
from holidarr.services.classifier import HolidayAIClassifier

logger = logging.getLogger(__name__)


class BulkClassificationSummary(CamelModel):
    """Outcome of one bulk classification run."""

    cached: int = 0
    classified: int = 0
    failed: int = 0
    total: int = 0
    # Actionable verdicts for the selected holidays, keyed by external id
    results: Dict[str, List[HolidayClassification]] = {}
    activity: List[ActivityEntry] = []


class HolidayOrchestrator:
    """Runs the cache -> AI -> matcher -> merge workflow for a media batch.

    Args:
        cache: Classification cache used for the bulk partition.
        matcher: Pattern matcher, usually built with the scraped title corpus.
            Defaults to curated keywords only; only find_matches uses it.
        classifier: AI classifier; None disables the AI tier.
        activity: Progress log for the run.
        collection_prefix: Prepended to every collection name.
    """

    def __init__(
        self,
        cache: ClassificationCache,
        matcher: Optional[HolidayMatcher] = None,
        classifier: Optional[HolidayAIClassifier] = None,
        activity: Optional[ActivityLog] = None,
        collection_prefix: str = "",
    ):
        self.cache = cache
        self.matcher = matcher or HolidayMatcher()
        self.classifier = classifier
        self.activity = activity or ActivityLog()
        self.collection_prefix = collection_prefix

    async def bulk_classify(
        self,
        media: List[MediaItem],
        selected_holidays: Iterable[Holiday],
        use_ai: bool = True,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> BulkClassificationSummary:
        """Resolve AI verdicts for a batch, calling the backend only for uncached items.

        Items are classified one at a time in input order. One item's failure
        is counted and logged; it never aborts the run. Once cancel_event is
        set no further backend calls are started.
        """
        selected = set(selected_holidays)
        summary = BulkClassificationSummary(total=len(media))

        self.activity.info(f"Checking cache for {len(media)} items")
        partition = await self.cache.partition(media)

        for cached in partition.cached:
            summary.results[cached.media.external_id] = cached.record.result.actionable(
                selected
            )
        summary.cached = len(partition.cached)
        self.activity.info(
            f"{summary.cached} items cached, "
            f"{len(partition.needs_classification)} need classification"
        )

        pending = partition.needs_classification
        if not use_ai or not pending:
            summary.activity = self.activity.entries
            return summary
        if self.classifier is None:
            self.activity.warning("AI classification requested but not configured")
            summary.activity = self.activity.entries
            return summary

        self.activity.info(f"Classifying {len(pending)} items with AI")
        processed = 0
        async for outcome in self.classifier.iter_batch(pending, cancel_event):
            processed += 1
            label = outcome.item.label
            if outcome.error is not None:
                summary.failed += 1
                self.activity.error(f"Failed to classify {label}: {outcome.error}")
                continue
            summary.classified += 1
            summary.results[outcome.item.external_id] = outcome.result.actionable(
                selected
            )
            self.activity.info(f"Classified {processed}/{len(pending)}: {label}")

        if processed < len(pending):
            self.activity.warning(
                f"Classification cancelled, {len(pending) - processed} items left"
            )

        self.activity.success(
            f"Classification complete: {summary.cached} cached, "
            f"{summary.classified} classified, {summary.failed} failed"
        )
        summary.activity = self.activity.entries
        return summary

    async def find_matches(
        self,
        media: List[MediaItem],
        selected_holidays: Optional[Iterable[Holiday]] = None,
        use_ai: bool = True,
        threshold: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[HolidayMatch]:
        """Per-holiday groupings from AI verdicts merged with the pattern matcher.

        Holidays are returned in Holiday declaration order. Within a holiday the
        matcher's items come first; AI-only items follow in input order.
        """
        selected = list(selected_holidays) if selected_holidays is not None else list(Holiday)
        summary = await self.bulk_classify(media, selected, use_ai, cancel_event)

        ai_matches: Dict[Holiday, List[MediaItem]] = {}
        for item in media:
            for classification in summary.results.get(item.external_id, []):
                bucket = ai_matches.setdefault(classification.holiday, [])
                if item not in bucket:
                    bucket.append(item)

        limit = self.matcher.threshold if threshold is None else threshold
        pattern_matches = {
            match.holiday: match
            for match in self.matcher.find_matches_with_threshold(media, limit, selected)
        }

        merged: List[HolidayMatch] = []
        for holiday in Holiday:
            pattern_match = pattern_matches.get(holiday)
            ai_items = ai_matches.get(holiday, [])
            if pattern_match is None and not ai_items:
                continue

            episodes: List[Episode] = list(pattern_match.episodes) if pattern_match else []
            movies: List[Movie] = list(pattern_match.movies) if pattern_match else []
            seen = {item.external_id for item in episodes}
            seen.update(item.external_id for item in movies)
            for item in ai_items:
                if item.external_id in seen:
                    continue
                seen.add(item.external_id)
                if isinstance(item, Episode):
                    episodes.append(item)
                else:
                    movies.append(item)

            match = HolidayMatch(holiday=holiday, episodes=episodes, movies=movies)
            self.activity.info(
                f"{holiday}: {len(match.episodes)} episodes, {len(match.movies)} movies"
            )
            merged.append(match)

        return merged

    def collection_name(self, holiday: Holiday, kind: str) -> str:
        suffix = "TV" if kind == "episode" else "Movies"
        return f"{self.collection_prefix}{holiday} {suffix}"

    def build_collections(self, matches: List[HolidayMatch]) -> List[HolidayCollection]:
        """Split each holiday's matches into separate TV and Movies collections."""
        collections: List[HolidayCollection] = []
        for match in matches:
            if match.episodes:
                collections.append(
                    HolidayCollection(
                        holiday=match.holiday,
                        kind="episode",
                        name=self.collection_name(match.holiday, "episode"),
                        items=match.episodes,
                    )
                )
            if match.movies:
                collections.append(
                    HolidayCollection(
                        holiday=match.holiday,
                        kind="movie",
                        name=self.collection_name(match.holiday, "movie"),
                        items=match.movies,
                    )
                )
        return collections

    async def scan_library(
        self,
        library: MediaLibrary,
        library_ref: str,
        selected_holidays: Optional[Iterable[Holiday]] = None,
        use_ai: bool = True,
        threshold: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[HolidayCollection]:
        """Enumerate a library section and build its holiday collections."""
        episodes = await library.list_episodes(library_ref)
        movies = await library.list_movies(library_ref)
        self.activity.info(
            f"Loaded {len(episodes)} episodes and {len(movies)} movies "
            f"from {library.name} ({library_ref})"
        )

        media: List[MediaItem] = [*episodes, *movies]
        matches = await self.find_matches(
            media, selected_holidays, use_ai, threshold, cancel_event
        )
        collections = self.build_collections(matches)
        self.activity.success(f"Built {len(collections)} collections")
        return collections
