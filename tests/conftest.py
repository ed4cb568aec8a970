import pytest

from holidarr.core.config import Settings
from holidarr.core.database import build_engine, create_db_and_tables
from holidarr.models.media import Episode, Movie
from holidarr.services.classification_cache import ClassificationCache


@pytest.fixture
def engine(tmp_path):
    """A fresh SQLite database per test."""
    engine = build_engine(f"sqlite:///{tmp_path / 'holidarr-test.db'}")
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        azure_openai_key="test-key",
        azure_openai_endpoint="https://example.openai.azure.com/openai/deployments/gpt-4o",
        ai_batch_delay=1.0,
        scrape_delay=0.0,
    )


@pytest.fixture
def cache(engine):
    return ClassificationCache(engine)


@pytest.fixture
def christmas_episode():
    return Episode(
        external_id="ep-1",
        display_key="/library/metadata/1",
        title="A Very Special Christmas",
        summary="The family decorates the tree.",
        series_title="Family Matters",
        season_number=2,
        episode_number=11,
    )


@pytest.fixture
def plain_episode():
    return Episode(
        external_id="ep-2",
        display_key="/library/metadata/2",
        title="The Job Interview",
        summary="Carl prepares for a big interview.",
        series_title="Family Matters",
        season_number=2,
        episode_number=12,
    )


@pytest.fixture
def plain_movie():
    return Movie(
        external_id="mv-1",
        display_key="/library/metadata/3",
        title="Heat",
        summary="A group of professional bank robbers.",
        year=1995,
    )
