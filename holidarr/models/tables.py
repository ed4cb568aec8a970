"""SQLModel tables backing the classification cache and the title corpus."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column, Text, UniqueConstraint
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MediaItemRow(SQLModel, table=True):
    """A library item that has been sent to (or answered by) the AI backend."""

    __tablename__ = "media_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    external_id: str = Field(max_length=255, unique=True, index=True)
    display_key: str = Field(default="", max_length=500)
    media_type: str = Field(max_length=16, index=True)  # "episode" or "movie"
    title: str = Field(max_length=500, index=True)
    year: Optional[int] = None
    season: Optional[int] = None
    episode: Optional[int] = None
    series_title: Optional[str] = Field(default=None, max_length=500)
    summary: Optional[str] = Field(default=None, sa_column=Column(Text))
    created_at: datetime = Field(default_factory=_utcnow)


class ClassificationRow(SQLModel, table=True):
    """One actionable holiday verdict for one media item."""

    __tablename__ = "ai_classifications"
    __table_args__ = (UniqueConstraint("media_item_id", "holiday"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    media_item_id: int = Field(foreign_key="media_items.id", index=True)
    holiday: str = Field(max_length=64, index=True)
    confidence: float = Field(ge=0, le=100)
    reason: Optional[str] = Field(default=None, sa_column=Column(Text))
    classified_at: datetime = Field(default_factory=_utcnow)


class ResponseCacheRow(SQLModel, table=True):
    """The stored AI exchange for a media item. At most one per item."""

    __tablename__ = "ai_response_cache"

    id: Optional[int] = Field(default=None, primary_key=True)
    media_item_id: int = Field(foreign_key="media_items.id", unique=True, index=True)
    request_payload: Dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )
    response_payload: Dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )
    result_payload: Dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )
    model: str = Field(max_length=100)
    created_at: datetime = Field(default_factory=_utcnow)


class TitleCacheRow(SQLModel, table=True):
    """Scraped holiday titles, keyed "titles::<holiday>"."""

    __tablename__ = "title_corpus_cache"

    cache_key: str = Field(primary_key=True, max_length=128)
    titles: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    fetched_at: float  # Unix timestamp
