import time
from unittest.mock import AsyncMock, patch

import pytest
from sqlmodel import Session

from holidarr.models.holiday import Holiday
from holidarr.models.tables import TitleCacheRow
from holidarr.services.titles import (
    TitleCorpusFetcher,
    cache_key,
    extract_titles,
    normalize_scraped_title,
    normalize_titles,
)

SOURCES = {
    Holiday.CHRISTMAS: ["https://wiki.test/christmas-a", "https://wiki.test/christmas-b"],
    Holiday.HALLOWEEN: ["https://wiki.test/halloween"],
}

PAGE = """
<html><body>
  <a href="/wiki/Main_Page" title="Main Page">Main Page</a>
  <div id="mw-content-text">
    <ul>
      <li><a href="/wiki/Elf_(film)" title="Elf (film)">Elf</a></li>
      <li><a href="/wiki/Klaus" title="Klaus (2019 film)">Klaus</a></li>
      <li><a href="/wiki/Category:Christmas" title="Category:Christmas films">more</a></li>
      <li>"The Year Without a Santa Claus" (1974)</li>
    </ul>
  </div>
</body></html>
"""


def test_normalize_scraped_title_strips_qualifiers():
    assert normalize_scraped_title("Elf (film)") == "Elf"
    assert normalize_scraped_title("Frosty the Snowman (TV special) (1969)") == "Frosty the Snowman"
    assert normalize_scraped_title("  Home   Alone  ") == "Home Alone"


def test_normalize_titles_dedupes_filters_and_sorts():
    titles = normalize_titles(["klaus", "Klaus (2019 film)", "X", "elf", "b" * 121])
    assert titles == ["elf", "klaus"]


def test_extract_titles_reads_article_body_only():
    titles = extract_titles(PAGE)

    assert "Elf (film)" in titles
    assert "Klaus (2019 film)" in titles
    assert "The Year Without a Santa Claus" in titles
    assert "Main Page" not in titles
    assert not any(":" in title for title in titles)


def test_extract_titles_without_article_body():
    assert extract_titles("<html><body><p>nothing here</p></body></html>") == set()


@pytest.mark.asyncio
async def test_fetch_titles_skip_does_no_io(engine, settings):
    fetcher = TitleCorpusFetcher(engine, settings, SOURCES)

    with patch.object(fetcher, "_scrape_url", new_callable=AsyncMock) as mock_scrape:
        assert await fetcher.fetch_titles(skip=True) == {}
        mock_scrape.assert_not_called()


@pytest.mark.asyncio
async def test_fetch_titles_scrapes_and_normalizes(engine, settings):
    fetcher = TitleCorpusFetcher(engine, settings, SOURCES)

    async def side_effect(url):
        if url.endswith("christmas-a"):
            return {"Elf (film)", "Klaus (2019 film)"}
        if url.endswith("christmas-b"):
            return {"Elf", "Jingle All the Way"}
        return {"Hocus Pocus (1993 film)"}

    with patch.object(fetcher, "_scrape_url", new_callable=AsyncMock) as mock_scrape:
        mock_scrape.side_effect = side_effect
        titles = await fetcher.fetch_titles()

    assert titles[Holiday.CHRISTMAS] == ["Elf", "Jingle All the Way", "Klaus"]
    assert titles[Holiday.HALLOWEEN] == ["Hocus Pocus"]
    await fetcher.aclose()


@pytest.mark.asyncio
async def test_fetch_titles_limited_to_selected_holidays(engine, settings):
    fetcher = TitleCorpusFetcher(engine, settings, SOURCES)

    with patch.object(fetcher, "_scrape_url", new_callable=AsyncMock) as mock_scrape:
        mock_scrape.return_value = {"Hocus Pocus"}
        titles = await fetcher.fetch_titles(holidays=[Holiday.HALLOWEEN])

    assert list(titles) == [Holiday.HALLOWEEN]
    mock_scrape.assert_awaited_once_with("https://wiki.test/halloween")


@pytest.mark.asyncio
async def test_fetch_titles_uses_memory_then_database_cache(engine, settings):
    fetcher = TitleCorpusFetcher(engine, settings, SOURCES)

    with patch.object(fetcher, "_scrape_url", new_callable=AsyncMock) as mock_scrape:
        mock_scrape.return_value = {"Klaus"}
        first = await fetcher.fetch_titles()
        second = await fetcher.fetch_titles()

    assert first == second
    assert mock_scrape.await_count == 3

    # A new fetcher starts with an empty memory cache but shares the database
    other = TitleCorpusFetcher(engine, settings, SOURCES)
    with patch.object(other, "_scrape_url", new_callable=AsyncMock) as mock_scrape:
        assert await other.fetch_titles() == first
        mock_scrape.assert_not_called()


@pytest.mark.asyncio
async def test_expired_database_entry_is_refetched(engine, settings):
    with Session(engine) as session:
        session.add(
            TitleCacheRow(
                cache_key=cache_key(Holiday.HALLOWEEN),
                titles=["Stale Title"],
                fetched_at=time.time() - settings.title_cache_ttl - 1,
            )
        )
        session.commit()

    fetcher = TitleCorpusFetcher(engine, settings, {Holiday.HALLOWEEN: SOURCES[Holiday.HALLOWEEN]})
    with patch.object(fetcher, "_scrape_url", new_callable=AsyncMock) as mock_scrape:
        mock_scrape.return_value = {"Fresh Title"}
        titles = await fetcher.fetch_titles()

    assert titles == {Holiday.HALLOWEEN: ["Fresh Title"]}


@pytest.mark.asyncio
async def test_scrape_failure_degrades_to_empty_and_is_not_cached(engine, settings):
    fetcher = TitleCorpusFetcher(engine, settings, SOURCES)

    async def side_effect(url):
        if "christmas" in url:
            raise ConnectionError("wiki unreachable")
        return {"Hocus Pocus"}

    with patch.object(fetcher, "_scrape_url", new_callable=AsyncMock) as mock_scrape:
        mock_scrape.side_effect = side_effect
        titles = await fetcher.fetch_titles()

    assert titles == {Holiday.HALLOWEEN: ["Hocus Pocus"]}

    with patch.object(fetcher, "_scrape_url", new_callable=AsyncMock) as mock_scrape:
        mock_scrape.return_value = {"Klaus"}
        titles = await fetcher.fetch_titles()

    # Christmas is scraped again; Halloween comes from the cache
    assert titles[Holiday.CHRISTMAS] == ["Klaus"]
    assert mock_scrape.await_count == 2


@pytest.mark.asyncio
async def test_clear_cache_forces_a_new_scrape(engine, settings):
    fetcher = TitleCorpusFetcher(engine, settings, {Holiday.HALLOWEEN: SOURCES[Holiday.HALLOWEEN]})

    with patch.object(fetcher, "_scrape_url", new_callable=AsyncMock) as mock_scrape:
        mock_scrape.return_value = {"Hocus Pocus"}
        await fetcher.fetch_titles()
        await fetcher.clear_cache()
        await fetcher.fetch_titles()

    assert mock_scrape.await_count == 2
    with Session(engine) as session:
        assert session.get(TitleCacheRow, cache_key(Holiday.HALLOWEEN)) is not None


@pytest.mark.asyncio
async def test_one_failing_source_keeps_titles_from_the_others(engine, settings):
    fetcher = TitleCorpusFetcher(engine, settings, {Holiday.CHRISTMAS: SOURCES[Holiday.CHRISTMAS]})

    async def side_effect(url):
        if url.endswith("christmas-b"):
            raise ConnectionError("404 category page")
        return {"Klaus (2019 film)"}

    with patch.object(fetcher, "_scrape_url", new_callable=AsyncMock) as mock_scrape:
        mock_scrape.side_effect = side_effect
        titles = await fetcher.fetch_titles()

    assert titles == {Holiday.CHRISTMAS: ["Klaus"]}
    assert mock_scrape.await_count == 2

    # The partial list is cached like any other non-empty scrape
    with patch.object(fetcher, "_scrape_url", new_callable=AsyncMock) as mock_scrape:
        assert await fetcher.fetch_titles() == titles
        mock_scrape.assert_not_called()
