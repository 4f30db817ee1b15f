"""Abstract query engine shared by the JSON and database backends."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ..models import (
    Alternative,
    Category,
    ComparisonPair,
    Deal,
    GlobalSearchResult,
    SearchResult,
    Submission,
    Tag,
    Tool,
    ToolFilters,
)
from .dataset import FallbackDataset


class QueryEngine(ABC):
    """Read API over the directory, plus the one write (``submit``).

    Both implementations return identical results for the same data;
    a missing single entity is ``None``.
    """

    source: str = "unknown"

    @abstractmethod
    async def query_tools(self, filters: ToolFilters) -> SearchResult[Tool]:
        """Filter, sort and paginate published tools."""

    @abstractmethod
    async def get_tool(self, slug: str) -> Optional[Tool]:
        pass

    @abstractmethod
    async def featured_tools(self, limit: int) -> list[Tool]:
        pass

    @abstractmethod
    async def trending_tools(self, limit: int) -> list[Tool]:
        pass

    @abstractmethod
    async def latest_tools(self, limit: int) -> list[Tool]:
        pass

    @abstractmethod
    async def categories(self) -> list[Category]:
        """All categories, most populated first."""

    @abstractmethod
    async def get_category(self, slug: str) -> Optional[Category]:
        pass

    @abstractmethod
    async def tags(self) -> list[Tag]:
        """All tags, most used first."""

    @abstractmethod
    async def get_tag(self, slug: str) -> Optional[Tag]:
        pass

    @abstractmethod
    async def active_deals(self, now: Optional[datetime] = None) -> list[Deal]:
        """Live deals, soonest-ending first, open-ended last."""

    @abstractmethod
    async def deals_for_tool(self, tool_slug: str, now: Optional[datetime] = None) -> list[Deal]:
        pass

    @abstractmethod
    async def alternatives(self) -> list[Alternative]:
        pass

    @abstractmethod
    async def get_alternative(self, brand: str) -> Optional[Alternative]:
        """Case-insensitive brand lookup."""

    @abstractmethod
    async def comparisons(self) -> list[ComparisonPair]:
        pass

    @abstractmethod
    async def get_comparison(self, first: str, second: str) -> Optional[ComparisonPair]:
        """Pair lookup in either slug order."""

    @abstractmethod
    async def global_search(
        self, query: str, tools_limit: int, terms_limit: int
    ) -> GlobalSearchResult:
        pass

    @abstractmethod
    async def submit(self, submission: Submission) -> Submission:
        pass

    @abstractmethod
    async def snapshot(self) -> FallbackDataset:
        """The full dataset in source order, unpublished tools included."""
