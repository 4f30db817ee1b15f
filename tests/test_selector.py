"""Tests for backend selection."""

import logging

import pytest

from rectone.config import DataSourceConfig
from rectone.errors import BackendUnavailable, SubmissionRequiresBackend
from rectone.models import Submission, ToolFilters
from rectone.selector import EnginePool, select_engine
from rectone.service import ToolDirectory
from rectone.store import LocalQueryEngine
from rectone.store.remote import RemoteQueryAdapter


class FakeEngine:
    """Stands in for an AsyncEngine; only identity and dispose matter here."""

    def __init__(self, url):
        self.url = url
        self.disposed = False

    async def dispose(self):
        self.disposed = True


@pytest.fixture
def pool():
    return EnginePool(factory=FakeEngine)


def test_forced_fallback_uses_local(sample_dataset, pool):
    config = DataSourceConfig(database_url="sqlite+aiosqlite:///x.db", use_fallback_data=True)

    engine = select_engine(config, sample_dataset, pool)

    assert isinstance(engine, LocalQueryEngine)
    assert engine.source == "json"


@pytest.mark.parametrize("url", ["", "not a url", "://missing-scheme"])
def test_missing_or_invalid_url_uses_local(sample_dataset, pool, url):
    config = DataSourceConfig(database_url=url)

    assert not config.is_configured
    assert isinstance(select_engine(config, sample_dataset, pool), LocalQueryEngine)


def test_valid_url_uses_remote(sample_dataset, pool):
    config = DataSourceConfig(database_url="postgresql+asyncpg://u:p@db/rectone", remote_timeout=3)

    engine = select_engine(config, sample_dataset, pool)

    assert isinstance(engine, RemoteQueryAdapter)
    assert engine.source == "database"
    assert engine.timeout == 3
    assert engine.engine.url == config.database_url


def test_pool_reuses_engine_per_url(sample_dataset, pool):
    config = DataSourceConfig(database_url="postgresql+asyncpg://db/rectone")

    first = select_engine(config, sample_dataset, pool)
    second = select_engine(config, sample_dataset, pool)

    assert first is not second
    assert first.engine is second.engine


@pytest.mark.asyncio
async def test_pool_dispose(pool):
    engine = pool.get("postgresql+asyncpg://db/rectone")

    await pool.dispose()

    assert engine.disposed is True
    assert pool.get("postgresql+asyncpg://db/rectone") is not engine


def test_selection_is_per_call(sample_dataset, pool):
    config = DataSourceConfig(database_url="postgresql+asyncpg://db/rectone")
    assert isinstance(select_engine(config, sample_dataset, pool), RemoteQueryAdapter)

    config.use_fallback_data = True
    assert isinstance(select_engine(config, sample_dataset, pool), LocalQueryEngine)


def test_debug_logs_data_source(sample_dataset, pool, caplog):
    caplog.set_level(logging.INFO, logger="rectone.selector")

    select_engine(DataSourceConfig(debug=True), sample_dataset, pool)
    select_engine(
        DataSourceConfig(database_url="postgresql+asyncpg://db/rectone", debug=True),
        sample_dataset,
        pool,
    )

    messages = [r.getMessage() for r in caplog.records if r.name == "rectone.selector"]
    assert messages == ["Data source: json", "Data source: database"]


def test_no_log_without_debug(sample_dataset, pool, caplog):
    caplog.set_level(logging.DEBUG, logger="rectone.selector")

    select_engine(DataSourceConfig(), sample_dataset, pool)

    assert not [r for r in caplog.records if r.name == "rectone.selector"]


@pytest.mark.asyncio
async def test_remote_failure_is_not_masked_by_fallback(sample_dataset, tmp_path):
    """A configured but broken database surfaces BackendUnavailable."""
    config = DataSourceConfig(database_url=f"sqlite+aiosqlite:///{tmp_path / 'no-tables.db'}")
    pool = EnginePool()
    directory = ToolDirectory(select_engine(config, sample_dataset, pool))

    try:
        with pytest.raises(BackendUnavailable):
            await directory.query(ToolFilters())
    finally:
        await pool.dispose()


@pytest.mark.asyncio
async def test_submission_in_fallback_mode_is_rejected(sample_dataset, pool):
    config = DataSourceConfig(use_fallback_data=True)
    directory = ToolDirectory(select_engine(config, sample_dataset, pool))
    before = await directory.query(ToolFilters(limit=100))

    with pytest.raises(SubmissionRequiresBackend):
        await directory.submit(
            Submission(name="New Tool", website_url="https://new.tools", slogan="Brand new")
        )

    after = await directory.query(ToolFilters(limit=100))
    assert after == before
    assert directory.source == "json"


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("RECTONE_DATABASE_URL", "postgresql+asyncpg://db/rectone")
    monkeypatch.setenv("RECTONE_USE_FALLBACK_DATA", "yes")
    monkeypatch.setenv("RECTONE_REMOTE_TIMEOUT", "2.5")
    monkeypatch.setenv("RECTONE_DEBUG", "1")
    monkeypatch.delenv("RECTONE_STRICT_FILTERS", raising=False)

    config = DataSourceConfig.from_env()

    assert config.is_configured
    assert config.use_fallback_data is True
    assert config.should_use_fallback is True
    assert config.remote_timeout == 2.5
    assert config.debug is True
    assert config.strict_filters is False


@pytest.mark.parametrize("url", ["sqlite:///x.db", "sqlite+nodriver:///x.db"])
def test_url_without_async_driver_is_backend_unavailable(sample_dataset, url):
    """A parseable URL that cannot build an async engine fails like an unreachable store."""
    config = DataSourceConfig(database_url=url)
    assert config.is_configured

    with pytest.raises(BackendUnavailable) as exc_info:
        select_engine(config, sample_dataset, EnginePool())

    assert exc_info.value.operation == "select_engine"


def test_pool_does_not_cache_failed_engine():
    pool = EnginePool()

    for _ in range(2):
        with pytest.raises(BackendUnavailable):
            pool.get("sqlite:///x.db")

    assert pool._engines == {}
