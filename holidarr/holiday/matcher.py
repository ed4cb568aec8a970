"""Deterministic keyword/regex holiday matcher."""

import logging
import re
from typing import Dict, Iterable, List, Mapping, Optional, Pattern, Tuple

from holidarr.holiday.patterns import (
    CURATED_KEYWORDS,
    DEFAULT_MATCH_THRESHOLD,
    EXCLUDE_PATTERNS,
    REQUIRED_TITLES,
    STRONG_INDICATORS,
)
from holidarr.models.holiday import Holiday
from holidarr.models.media import Episode, HolidayMatch, MediaItem, Movie

logger = logging.getLogger(__name__)

TITLE_MATCH_POINTS = 10
SUMMARY_MATCH_POINTS = 3
STRONG_TITLE_POINTS = 15
STRONG_SUMMARY_POINTS = 5

_LEADING_ARTICLE = re.compile(r"^(?:the|a|an)\s+")
_NON_WORD = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")


def _compile(patterns: Iterable[str]) -> List[Pattern[str]]:
    return [re.compile(pattern, re.IGNORECASE) for pattern in patterns]


def title_to_pattern(title: str) -> str:
    """Turn a literal title into a word-bounded, whitespace-tolerant regex."""
    words = title.split()
    body = r"\s+".join(re.escape(word) for word in words)
    return rf"(?<!\w){body}(?!\w)"


def normalize_title(title: str) -> str:
    """Normalize a title for canonical comparisons.

    Punctuation becomes whitespace, case is folded and a leading article
    ("The", "A", "An") is dropped.
    """
    text = _NON_WORD.sub(" ", title.casefold())
    text = _WHITESPACE.sub(" ", text).strip()
    return _LEADING_ARTICLE.sub("", text)


class HolidayMatcher:
    """Scores media items against holidays using curated and scraped patterns.

    Args:
        additional_titles: Supplementary titles per holiday (usually from the
            title corpus). Holidays that only appear here get title-only
            pattern lists.
        threshold: Default minimum score for a match.
    """

    def __init__(
        self,
        additional_titles: Optional[Mapping[Holiday, Iterable[str]]] = None,
        threshold: int = DEFAULT_MATCH_THRESHOLD,
    ):
        self.threshold = threshold
        self._include: Dict[Holiday, List[Pattern[str]]] = {}
        self._strong: Dict[Holiday, List[Pattern[str]]] = {
            holiday: _compile(patterns) for holiday, patterns in STRONG_INDICATORS.items()
        }
        self._exclude: List[Pattern[str]] = _compile(EXCLUDE_PATTERNS)
        self._required: Dict[Holiday, List[Tuple[str, int]]] = {
            holiday: [(normalize_title(title), year) for title, year in entries]
            for holiday, entries in REQUIRED_TITLES.items()
        }
        self._compile_includes(additional_titles or {})

    def _compile_includes(self, additional_titles: Mapping[Holiday, Iterable[str]]) -> None:
        holidays = list(CURATED_KEYWORDS)
        holidays += [h for h in additional_titles if h not in CURATED_KEYWORDS]

        for holiday in holidays:
            patterns = list(CURATED_KEYWORDS.get(holiday, []))
            for title in additional_titles.get(holiday, []):
                if title and title.strip():
                    patterns.append(title_to_pattern(title))
            self._include[holiday] = _compile(patterns)

    @property
    def holidays(self) -> List[Holiday]:
        """Holidays this matcher has patterns for, in stable order."""
        return list(self._include)

    def pattern_count(self, holiday: Holiday) -> int:
        return len(self._include.get(holiday, []))

    def score(self, item: MediaItem, holiday: Holiday) -> int:
        """Return the keyword score of an item for a holiday (0 = no signal)."""
        title = item.title or ""
        summary = item.summary or ""

        # Excluded phrases veto everything
        for pattern in self._exclude:
            if pattern.search(title) or pattern.search(summary):
                return 0

        # A strong title signal for another holiday wins (title only)
        for other, indicators in self._strong.items():
            if other == holiday:
                continue
            if any(pattern.search(title) for pattern in indicators):
                return 0

        score = 0
        for pattern in self._include.get(holiday, []):
            if pattern.search(title):
                score += TITLE_MATCH_POINTS
            elif pattern.search(summary):
                score += SUMMARY_MATCH_POINTS

        for pattern in self._strong.get(holiday, []):
            if pattern.search(title):
                score += STRONG_TITLE_POINTS
            elif pattern.search(summary):
                score += STRONG_SUMMARY_POINTS

        return score

    def is_required_title(self, item: MediaItem, holiday: Holiday) -> bool:
        """True when a movie is one of the holiday's canonical titles."""
        if not isinstance(item, Movie) or item.year is None or not item.title:
            return False

        normalized = normalize_title(item.title)
        return any(
            normalized == title and abs(item.year - year) <= 1
            for title, year in self._required.get(holiday, [])
        )

    def is_match(
        self, item: MediaItem, holiday: Holiday, threshold: Optional[int] = None
    ) -> bool:
        if self.is_required_title(item, holiday):
            return True
        limit = self.threshold if threshold is None else threshold
        return self.score(item, holiday) >= limit

    def find_matches(self, items: List[MediaItem]) -> List[HolidayMatch]:
        return self.find_matches_with_threshold(items, self.threshold)

    def find_matches_with_threshold(
        self,
        items: List[MediaItem],
        threshold: int,
        holidays: Optional[Iterable[Holiday]] = None,
    ) -> List[HolidayMatch]:
        """Group matching items per holiday.

        Holidays are visited in the matcher's own order; only holidays with at
        least one match are returned. Input order is kept within each bucket.
        """
        selected = set(holidays) if holidays is not None else None
        to_check = [h for h in self.holidays if selected is None or h in selected]
        logger.info(
            "Analyzing %d items for %d holidays: %s",
            len(items),
            len(to_check),
            ", ".join(h.value for h in to_check),
        )

        results: List[HolidayMatch] = []
        for holiday in to_check:
            episodes: List[Episode] = []
            movies: List[Movie] = []

            for item in items:
                if self.is_required_title(item, holiday):
                    logger.info(f"{holiday} match (canonical title): {item.label}")
                else:
                    score = self.score(item, holiday)
                    if score < threshold:
                        if score > 0:
                            logger.debug(
                                f"{holiday} weak match (score: {score}): {item.label}"
                            )
                        continue
                    logger.info(f"{holiday} match (score: {score}): {item.label}")

                if isinstance(item, Episode):
                    episodes.append(item)
                else:
                    movies.append(item)

            if episodes or movies:
                results.append(
                    HolidayMatch(holiday=holiday, episodes=episodes, movies=movies)
                )

        return results

    def match_summary(self, items: List[MediaItem]) -> Dict[Holiday, int]:
        """Count matching items per holiday."""
        return {
            holiday: sum(1 for item in items if self.is_match(item, holiday))
            for holiday in self.holidays
        }
