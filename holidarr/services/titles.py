"""Holiday title corpus scraped from reference wiki lists.

The scraped titles feed extra patterns into the matcher. The corpus is a
nice-to-have: every failure here degrades to "no extra titles" so matching
falls back to the curated keywords.
"""

import asyncio
import logging
import re
import time
from typing import Dict, Iterable, List, Mapping, Optional, Set

import niquests
from bs4 import BeautifulSoup
from cachetools import TTLCache
from sqlalchemy import delete
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col

from holidarr.core.config import Settings, get_settings
from holidarr.holiday.patterns import TITLE_CACHE_PREFIX, WIKI_SOURCES
from holidarr.models.holiday import Holiday
from holidarr.models.tables import TitleCacheRow

logger = logging.getLogger(__name__)

USER_AGENT = "holidarr/1.0 (holiday collection builder)"

_TRAILING_QUALIFIER = re.compile(r"\s*\([^()]*\)\s*$")
_QUOTED = re.compile(r"[“”]([^“”]+)[“”]|\"([^\"]+)\"")

MIN_TITLE_LENGTH = 2
MAX_TITLE_LENGTH = 120


def cache_key(holiday: Holiday) -> str:
    return f"{TITLE_CACHE_PREFIX}{holiday.value}"


def normalize_scraped_title(title: str) -> str:
    """Strip trailing qualifiers such as "(film)", "(TV special)" or "(1966)"."""
    title = " ".join(title.split())
    previous = None
    while previous != title:
        previous = title
        title = _TRAILING_QUALIFIER.sub("", title)
    return title.strip()


def normalize_titles(titles: Iterable[str]) -> List[str]:
    """Normalize, filter and de-duplicate (case-insensitively) a title list."""
    seen: Dict[str, str] = {}
    for raw in titles:
        title = normalize_scraped_title(raw)
        if not (MIN_TITLE_LENGTH <= len(title) <= MAX_TITLE_LENGTH):
            continue
        seen.setdefault(title.casefold(), title)
    return sorted(seen.values(), key=str.casefold)


def extract_titles(html: str) -> Set[str]:
    """Pull candidate titles out of a wiki article or category page.

    Two sources are used: link titles in the article body (category pages)
    and quoted strings in the body text (list pages).
    """
    soup = BeautifulSoup(html, "html.parser")
    content = soup.find(id="mw-content-text")
    if content is None:
        return set()

    titles: Set[str] = set()
    for link in content.find_all("a", title=True):
        title = link.get("title", "").strip()
        # Namespaced links (Category:, File:, Help:) are not titles
        if title and ":" not in title:
            titles.add(title)

    for match in _QUOTED.finditer(content.get_text(" ")):
        quoted = (match.group(1) or match.group(2) or "").strip()
        if MIN_TITLE_LENGTH <= len(quoted) <= MAX_TITLE_LENGTH:
            titles.add(quoted)

    return titles


class TitleCorpusFetcher:
    """Fetches and caches holiday title lists.

    Titles are cached twice: in process memory and in the database, both with
    the configured TTL (7 days by default), and both keyed "titles::<holiday>".
    """

    def __init__(
        self,
        engine: Optional[Engine] = None,
        settings: Optional[Settings] = None,
        sources: Optional[Mapping[Holiday, List[str]]] = None,
    ):
        if engine is None:
            from holidarr.core.database import engine as default_engine

            engine = default_engine
        self.engine = engine
        self._settings = settings or get_settings()
        self.sources = dict(sources if sources is not None else WIKI_SOURCES)
        self.ttl = self._settings.title_cache_ttl
        self._memory: TTLCache = TTLCache(maxsize=64, ttl=self.ttl)
        self.session = niquests.AsyncSession(retries=2)
        if self._settings.proxy:
            self.session.proxies = {
                "http": self._settings.proxy,
                "https": self._settings.proxy,
            }

    async def aclose(self) -> None:
        """Properly close the internal HTTP session."""
        if self.session:
            await self.session.close()

    async def fetch_titles(
        self, skip: bool = False, holidays: Optional[Iterable[Holiday]] = None
    ) -> Dict[Holiday, List[str]]:
        """Return scraped titles per holiday.

        Args:
            skip: Return nothing without any I/O.
            holidays: Only fetch these holidays (default: every configured source).

        Never raises; on failure the affected holidays are simply missing.
        """
        if skip:
            return {}

        selected = set(holidays) if holidays is not None else None
        results: Dict[Holiday, List[str]] = {}
        try:
            for holiday, urls in self.sources.items():
                if selected is not None and holiday not in selected:
                    continue
                titles = await self._titles_for(holiday, urls)
                if titles:
                    results[holiday] = titles
        except Exception as exc:
            logger.warning(
                "Title corpus unavailable, using curated keywords only: %s", exc
            )
            return {}

        return results

    async def _titles_for(self, holiday: Holiday, urls: List[str]) -> List[str]:
        key = cache_key(holiday)
        if key in self._memory:
            return self._memory[key]

        stored = await self._load(key)
        if stored is not None:
            self._memory[key] = stored
            return stored

        try:
            titles = await self._scrape(urls)
        except Exception as exc:
            logger.warning(f"Failed to scrape {holiday} titles: {exc}")
            return []

        if titles:
            self._memory[key] = titles
            await self._save(key, titles)
        logger.info(f"Scraped {len(titles)} {holiday} titles")
        return titles

    async def _scrape(self, urls: List[str]) -> List[str]:
        collected: Set[str] = set()
        for index, url in enumerate(urls):
            try:
                collected |= await self._scrape_url(url)
            except Exception as exc:
                logger.warning(f"Failed to scrape {url}: {exc}")
            if index < len(urls) - 1:
                await asyncio.sleep(self._settings.scrape_delay)
        return normalize_titles(collected)

    async def _scrape_url(self, url: str) -> Set[str]:
        response = await self.session.get(
            url,
            headers={"User-Agent": USER_AGENT},
            timeout=self._settings.scrape_timeout,
        )
        response.raise_for_status()
        return extract_titles(response.text or "")

    # --- Persistent cache ---

    def _load_sync(self, key: str) -> Optional[List[str]]:
        with Session(self.engine) as session:
            row = session.get(TitleCacheRow, key)
            if row is None or time.time() - row.fetched_at >= self.ttl:
                return None
            return list(row.titles)

    async def _load(self, key: str) -> Optional[List[str]]:
        try:
            return await asyncio.to_thread(self._load_sync, key)
        except SQLAlchemyError as exc:
            logger.warning("Could not read title cache %s: %s", key, exc)
            return None

    def _save_sync(self, key: str, titles: List[str]) -> None:
        with Session(self.engine) as session:
            row = session.get(TitleCacheRow, key)
            if row is None:
                row = TitleCacheRow(cache_key=key, titles=titles, fetched_at=time.time())
            else:
                row.titles = titles
                row.fetched_at = time.time()
            session.add(row)
            session.commit()

    async def _save(self, key: str, titles: List[str]) -> None:
        try:
            await asyncio.to_thread(self._save_sync, key, titles)
        except SQLAlchemyError as exc:
            logger.warning("Could not write title cache %s: %s", key, exc)

    def _clear_sync(self) -> None:
        with Session(self.engine) as session:
            session.exec(
                delete(TitleCacheRow).where(
                    col(TitleCacheRow.cache_key).startswith(TITLE_CACHE_PREFIX)
                )
            )
            session.commit()

    async def clear_cache(self) -> None:
        """Forget every cached title list so the next fetch scrapes again."""
        self._memory.clear()
        try:
            await asyncio.to_thread(self._clear_sync)
        except SQLAlchemyError as exc:
            logger.warning("Could not clear title cache: %s", exc)
