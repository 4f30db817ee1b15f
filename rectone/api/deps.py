"""Shared FastAPI dependencies."""

from fastapi import Query

from ..config import DataSourceConfig
from ..i18n import LocaleContext
from ..selector import EnginePool, select_engine
from ..service import ToolDirectory
from ..store import FallbackDataset

# Initialized on startup
_dataset = FallbackDataset()
_pool = EnginePool()


def get_directory() -> ToolDirectory:
    """Dependency to get the directory service; the backend is resolved per request."""
    config = DataSourceConfig.from_env()
    engine = select_engine(config, _dataset, _pool)
    return ToolDirectory(engine, strict_filters=config.strict_filters)


def get_locale(lang: str = Query("en", description="Locale: en, zh, es, de, ja")) -> LocaleContext:
    return LocaleContext.from_tag(lang)
