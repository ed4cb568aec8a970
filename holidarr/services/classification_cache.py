"""Persistent memoization of AI classifications.

Every write is an insert that ignores conflicts on the natural key, so a
classification, once stored, is never replaced. This is what guarantees the
AI backend is asked about an item at most once.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, NamedTuple, Optional

from pydantic import ValidationError
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from holidarr.core.database import insert_ignore
from holidarr.models.media import (
    AIClassificationResult,
    CachedClassificationRecord,
    Episode,
    HolidayClassification,
    MediaItem,
)
from holidarr.models.tables import ClassificationRow, MediaItemRow, ResponseCacheRow

logger = logging.getLogger(__name__)


class CachedMedia(NamedTuple):
    media: MediaItem
    record: CachedClassificationRecord


class CachePartition(NamedTuple):
    cached: List[CachedMedia]
    needs_classification: List[MediaItem]


def _media_row(item: MediaItem) -> MediaItemRow:
    is_episode = isinstance(item, Episode)
    return MediaItemRow(
        external_id=item.external_id,
        display_key=item.display_key,
        media_type=item.kind,
        title=item.title,
        year=item.year,
        season=item.season_number if is_episode else None,
        episode=item.episode_number if is_episode else None,
        series_title=item.series_title if is_episode else None,
        summary=item.summary,
    )


class ClassificationCache:
    """Read/write contract over the media item, classification and response tables."""

    def __init__(self, engine: Optional[Engine] = None):
        if engine is None:
            from holidarr.core.database import engine as default_engine

            engine = default_engine
        self.engine = engine

    # --- Reads ---

    def _get_bulk_cached_sync(
        self, external_ids: List[str]
    ) -> Dict[str, CachedClassificationRecord]:
        stmt = (
            select(MediaItemRow.external_id, ResponseCacheRow)
            .join(ResponseCacheRow, ResponseCacheRow.media_item_id == MediaItemRow.id)
            .where(col(MediaItemRow.external_id).in_(external_ids))
        )
        results: Dict[str, CachedClassificationRecord] = {}
        with Session(self.engine) as session:
            for external_id, row in session.exec(stmt).all():
                try:
                    result = AIClassificationResult.model_validate(row.result_payload)
                except ValidationError as exc:
                    logger.warning(
                        "Ignoring unreadable cached classification for %s: %s",
                        external_id,
                        exc,
                    )
                    continue

                # Stored results are already actionable-only; re-filter anyway
                result = AIClassificationResult(holidays=result.actionable())
                results[external_id] = CachedClassificationRecord(
                    external_id=external_id,
                    result=result,
                    request_payload=row.request_payload,
                    response_payload=row.response_payload,
                    model=row.model,
                    created_at=row.created_at,
                )
        return results

    async def get_bulk_cached(
        self, external_ids: Iterable[str]
    ) -> Dict[str, CachedClassificationRecord]:
        """Look up many items in a single query.

        A failing read is reported as "nothing cached": it costs extra backend
        calls but never fails the run.
        """
        ids = list(dict.fromkeys(external_ids))
        if not ids:
            return {}

        try:
            results = await asyncio.to_thread(self._get_bulk_cached_sync, ids)
        except SQLAlchemyError as exc:
            logger.error("Error fetching bulk cached classifications: %s", exc)
            return {}

        logger.info(
            "Found %d cached classifications out of %d items", len(results), len(ids)
        )
        return results

    async def get_cached(self, external_id: str) -> Optional[CachedClassificationRecord]:
        results = await self.get_bulk_cached([external_id])
        return results.get(external_id)

    async def partition(self, items: List[MediaItem]) -> CachePartition:
        """Split items into already-classified and still-to-classify, keeping order."""
        cached_records = await self.get_bulk_cached(item.external_id for item in items)

        cached: List[CachedMedia] = []
        needs_classification: List[MediaItem] = []
        for item in items:
            record = cached_records.get(item.external_id)
            if record is not None:
                cached.append(CachedMedia(item, record))
            else:
                needs_classification.append(item)

        logger.info(
            "Cache partition: %d cached, %d need classification",
            len(cached),
            len(needs_classification),
        )
        return CachePartition(cached, needs_classification)

    def _get_stored_classifications_sync(
        self, external_id: str
    ) -> List[HolidayClassification]:
        stmt = (
            select(ClassificationRow)
            .join(MediaItemRow, ClassificationRow.media_item_id == MediaItemRow.id)
            .where(MediaItemRow.external_id == external_id)
        )
        with Session(self.engine) as session:
            return [
                HolidayClassification(
                    holiday=row.holiday, confidence=row.confidence, reason=row.reason
                )
                for row in session.exec(stmt).all()
            ]

    async def get_stored_classifications(
        self, external_id: str
    ) -> List[HolidayClassification]:
        """Return the classification rows stored for an item."""
        try:
            return await asyncio.to_thread(
                self._get_stored_classifications_sync, external_id
            )
        except SQLAlchemyError as exc:
            logger.error("Error getting stored classifications: %s", exc)
            return []

    # --- Writes ---

    def _store_sync(
        self,
        item: MediaItem,
        request_payload: Dict[str, Any],
        response_payload: Dict[str, Any],
        result: AIClassificationResult,
        model: str,
    ) -> None:
        with Session(self.engine) as session:
            insert_ignore(
                session,
                MediaItemRow,
                _media_row(item).model_dump(exclude={"id"}),
                ["external_id"],
            )
            media_item_id = session.exec(
                select(MediaItemRow.id).where(
                    MediaItemRow.external_id == item.external_id
                )
            ).one()

            for classification in result.actionable():
                row = ClassificationRow(
                    media_item_id=media_item_id,
                    holiday=classification.holiday.value,
                    confidence=classification.confidence,
                    reason=classification.reason,
                )
                insert_ignore(
                    session,
                    ClassificationRow,
                    row.model_dump(exclude={"id"}),
                    ["media_item_id", "holiday"],
                )

            cache_row = ResponseCacheRow(
                media_item_id=media_item_id,
                request_payload=request_payload,
                response_payload=response_payload,
                result_payload=result.model_dump(mode="json"),
                model=model,
            )
            insert_ignore(
                session,
                ResponseCacheRow,
                cache_row.model_dump(exclude={"id"}),
                ["media_item_id"],
            )
            session.commit()

    async def store(
        self,
        item: MediaItem,
        request_payload: Dict[str, Any],
        response_payload: Dict[str, Any],
        result: AIClassificationResult,
        model: str,
    ) -> None:
        """Persist an item and its classification. Existing rows are left untouched.

        Raises:
            SQLAlchemyError: If the store is unavailable.
        """
        await asyncio.to_thread(
            self._store_sync, item, request_payload, response_payload, result, model
        )
