"""Media and classification models."""

from datetime import datetime
from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    NonNegativeInt,
    Tag,
)
from pydantic.alias_generators import to_camel

from holidarr.models.holiday import Holiday

# Only classifications at or above this confidence are ever acted upon
ACTIONABLE_CONFIDENCE = 70


class CamelModel(BaseModel):
    """Base model that speaks camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _MediaBase(CamelModel):
    """Fields shared by every library item."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    external_id: str  # Stable id from the source library, used as persistence key
    display_key: str = ""  # Library-internal path, e.g. /library/metadata/123
    title: str = ""
    summary: Optional[str] = None
    year: Optional[int] = None
    added_at: Optional[int] = None


class Episode(_MediaBase):
    """A TV episode."""

    kind: Literal["episode"] = "episode"
    series_title: str
    season_number: NonNegativeInt
    episode_number: NonNegativeInt

    @property
    def label(self) -> str:
        return f"{self.series_title} - {self.title}"


class Movie(_MediaBase):
    """A movie."""

    kind: Literal["movie"] = "movie"

    @property
    def label(self) -> str:
        return f"{self.title} ({self.year})" if self.year else self.title


def _media_kind(value: Any) -> Optional[str]:
    """Pick the union member, falling back to the episode-only fields."""
    if isinstance(value, dict):
        kind = value.get("kind")
        if kind:
            return kind
        if "seriesTitle" in value or "series_title" in value:
            return "episode"
        return "movie"
    return getattr(value, "kind", None)


MediaItem = Annotated[
    Union[Annotated[Episode, Tag("episode")], Annotated[Movie, Tag("movie")]],
    Discriminator(_media_kind),
]


class HolidayClassification(CamelModel):
    """One holiday verdict for one media item."""

    holiday: Holiday
    confidence: float = Field(ge=0, le=100)
    reason: Optional[str] = None

    @property
    def actionable(self) -> bool:
        return self.confidence >= ACTIONABLE_CONFIDENCE


class AIClassificationResult(CamelModel):
    """All holiday verdicts for one media item."""

    holidays: List[HolidayClassification] = []

    def actionable(
        self, selected: Optional[Iterable[Holiday]] = None
    ) -> List[HolidayClassification]:
        """Return actionable verdicts, optionally limited to selected holidays."""
        allowed = set(selected) if selected is not None else None
        return [
            h
            for h in self.holidays
            if h.actionable and (allowed is None or h.holiday in allowed)
        ]


class CachedClassificationRecord(CamelModel):
    """A persisted classification for one media item."""

    external_id: str
    result: AIClassificationResult
    request_payload: Dict[str, Any] = {}
    response_payload: Dict[str, Any] = {}
    model: str = ""
    created_at: Optional[datetime] = None

    @property
    def holidays(self) -> List[HolidayClassification]:
        return self.result.holidays


class HolidayMatch(CamelModel):
    """Items matched to one holiday during a run (not persisted)."""

    holiday: Holiday
    episodes: List[Episode] = []
    movies: List[Movie] = []

    @property
    def total(self) -> int:
        return len(self.episodes) + len(self.movies)


class HolidayCollection(CamelModel):
    """A named TV or movie grouping handed to the media server."""

    holiday: Holiday
    kind: Literal["episode", "movie"]
    name: str
    items: List[MediaItem] = []
