"""Configuration management."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class DataSourceConfig:
    """Where directory data comes from."""

    # Remote store (any SQLAlchemy async URL)
    database_url: str = ""

    # Force the bundled JSON data even when a database is configured
    use_fallback_data: bool = False
    fallback_data_dir: str = "data"

    # Seconds before a remote call is abandoned with BackendTimeout
    remote_timeout: float = 10.0

    # Reject page/limit <= 0 with InvalidFilter instead of normalizing
    strict_filters: bool = False

    # Development mode: log which data source served each call
    debug: bool = False

    @classmethod
    def from_env(cls) -> "DataSourceConfig":
        """Read configuration from the environment (and .env)."""
        return cls(
            database_url=os.getenv("RECTONE_DATABASE_URL", ""),
            use_fallback_data=_env_flag("RECTONE_USE_FALLBACK_DATA"),
            fallback_data_dir=os.getenv("RECTONE_FALLBACK_DATA_DIR", "data"),
            remote_timeout=float(os.getenv("RECTONE_REMOTE_TIMEOUT", "10")),
            strict_filters=_env_flag("RECTONE_STRICT_FILTERS"),
            debug=_env_flag("RECTONE_DEBUG"),
        )

    @property
    def is_configured(self) -> bool:
        """Check if the remote store URL is present and parseable."""
        if not self.database_url:
            return False
        try:
            url = make_url(self.database_url)
        except ArgumentError:
            return False
        return bool(url.drivername)

    @property
    def should_use_fallback(self) -> bool:
        return self.use_fallback_data or not self.is_configured


@dataclass
class QueryDefaults:
    """Default sizes used by listings and derived views."""

    page_size: int = 24
    featured_limit: int = 6
    related_limit: int = 6
    platform_limit: int = 12
    search_tools_limit: int = 10
    search_terms_limit: int = 5


query_defaults = QueryDefaults()

