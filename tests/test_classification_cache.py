import pytest
from sqlmodel import Session, func, select

from holidarr.core.database import build_engine
from holidarr.models.holiday import Holiday
from holidarr.models.media import AIClassificationResult, HolidayClassification
from holidarr.models.tables import ClassificationRow, MediaItemRow, ResponseCacheRow
from holidarr.services.classification_cache import ClassificationCache


def _result(*entries):
    return AIClassificationResult(
        holidays=[
            HolidayClassification(holiday=h, confidence=c, reason="test")
            for h, c in entries
        ]
    )


def _count(engine, table):
    with Session(engine) as session:
        return session.exec(select(func.count()).select_from(table)).one()


@pytest.mark.asyncio
async def test_store_and_get_cached(cache, christmas_episode):
    await cache.store(
        christmas_episode,
        {"title": christmas_episode.title},
        {"holidays": [{"holiday": "christmas", "confidence": 95}]},
        _result((Holiday.CHRISTMAS, 95)),
        "gpt-4o",
    )

    record = await cache.get_cached(christmas_episode.external_id)

    assert record is not None
    assert record.external_id == "ep-1"
    assert [h.holiday for h in record.holidays] == [Holiday.CHRISTMAS]
    assert record.request_payload == {"title": "A Very Special Christmas"}
    assert record.response_payload["holidays"][0]["holiday"] == "christmas"
    assert record.model == "gpt-4o"
    assert record.created_at is not None


@pytest.mark.asyncio
async def test_get_cached_miss(cache):
    assert await cache.get_cached("unknown") is None
    assert await cache.get_bulk_cached([]) == {}


@pytest.mark.asyncio
async def test_only_actionable_classifications_are_kept(cache, engine, christmas_episode):
    await cache.store(
        christmas_episode,
        {},
        {},
        _result((Holiday.CHRISTMAS, 95), (Holiday.WINTER_HOLIDAY, 60)),
        "gpt-4o",
    )

    stored = await cache.get_stored_classifications(christmas_episode.external_id)
    record = await cache.get_cached(christmas_episode.external_id)

    assert [c.holiday for c in stored] == [Holiday.CHRISTMAS]
    assert [c.holiday for c in record.holidays] == [Holiday.CHRISTMAS]
    assert _count(engine, ClassificationRow) == 1


@pytest.mark.asyncio
async def test_store_never_overwrites(cache, engine, christmas_episode):
    await cache.store(christmas_episode, {}, {}, _result((Holiday.CHRISTMAS, 95)), "gpt-4o")
    await cache.store(
        christmas_episode, {}, {}, _result((Holiday.HALLOWEEN, 90)), "other-model"
    )

    record = await cache.get_cached(christmas_episode.external_id)

    assert [h.holiday for h in record.holidays] == [Holiday.CHRISTMAS]
    assert record.model == "gpt-4o"
    assert _count(engine, MediaItemRow) == 1
    assert _count(engine, ResponseCacheRow) == 1


@pytest.mark.asyncio
async def test_empty_result_is_a_cache_hit(cache, plain_movie):
    await cache.store(plain_movie, {}, {"holidays": []}, AIClassificationResult(), "gpt-4o")

    record = await cache.get_cached(plain_movie.external_id)

    assert record is not None
    assert record.holidays == []


@pytest.mark.asyncio
async def test_partition_keeps_input_order(cache, christmas_episode, plain_episode, plain_movie):
    await cache.store(plain_episode, {}, {}, AIClassificationResult(), "gpt-4o")

    partition = await cache.partition([christmas_episode, plain_episode, plain_movie])

    assert [c.media.external_id for c in partition.cached] == ["ep-2"]
    assert [m.external_id for m in partition.needs_classification] == ["ep-1", "mv-1"]


@pytest.mark.asyncio
async def test_read_failure_degrades_to_not_cached(tmp_path, christmas_episode):
    # No tables were created in this database
    cache = ClassificationCache(build_engine(f"sqlite:///{tmp_path / 'empty.db'}"))

    assert await cache.get_bulk_cached(["ep-1"]) == {}
    partition = await cache.partition([christmas_episode])
    assert partition.needs_classification == [christmas_episode]
    assert await cache.get_stored_classifications("ep-1") == []
