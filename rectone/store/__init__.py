"""Query engines for the directory: JSON fallback and database."""

from .base import QueryEngine
from .dataset import FallbackDataset, derive_tags
from .local import LocalQueryEngine

__all__ = ["QueryEngine", "FallbackDataset", "LocalQueryEngine", "derive_tags"]
