"""Choose between the fallback JSON engine and the database engine."""

import logging
from typing import Callable, Optional

from sqlalchemy.exc import ArgumentError, InvalidRequestError, NoSuchModuleError
from sqlalchemy.ext.asyncio import AsyncEngine

from .config import DataSourceConfig
from .database import get_engine
from .errors import BackendUnavailable
from .store import FallbackDataset, LocalQueryEngine, QueryEngine
from .store.remote import RemoteQueryAdapter

logger = logging.getLogger("rectone.selector")

EngineFactory = Callable[[str], AsyncEngine]


class EnginePool:
    """Keeps one AsyncEngine (connection pool) per database URL."""

    def __init__(self, factory: EngineFactory = get_engine):
        self._factory = factory
        self._engines: dict[str, AsyncEngine] = {}

    def get(self, url: str) -> AsyncEngine:
        """Engine for ``url``; a URL no async driver can serve is BackendUnavailable."""
        if url not in self._engines:
            try:
                self._engines[url] = self._factory(url)
            except (ArgumentError, InvalidRequestError, NoSuchModuleError, ImportError) as exc:
                logger.error("Cannot create engine for configured database: %s", exc)
                raise BackendUnavailable("select_engine", str(exc)) from exc
        return self._engines[url]

    async def dispose(self) -> None:
        for engine in self._engines.values():
            await engine.dispose()
        self._engines.clear()


def select_engine(
    config: DataSourceConfig,
    dataset: FallbackDataset,
    pool: Optional[EnginePool] = None,
) -> QueryEngine:
    """Resolve the engine for one call.

    Fallback data is used when forced by configuration or when no valid
    database URL is configured. Otherwise the database engine is returned,
    and its failures reach the caller unchanged.
    """
    if config.should_use_fallback:
        engine: QueryEngine = LocalQueryEngine(dataset)
    else:
        pool = pool or EnginePool()
        engine = RemoteQueryAdapter(pool.get(config.database_url), timeout=config.remote_timeout)

    if config.debug:
        logger.info("Data source: %s", engine.source)

    return engine
