"""Directory service: the operations pages call, on top of one query engine."""

import logging
from datetime import datetime
from typing import Optional

from .config import query_defaults
from .models import (
    Alternative,
    Category,
    ComparisonPair,
    Deal,
    GlobalSearchResult,
    SearchResult,
    SortKey,
    Submission,
    Tag,
    Tool,
    ToolFilters,
)
from .store import QueryEngine

logger = logging.getLogger("rectone.service")


class ToolDirectory:
    """Service for browsing the tool directory.

    Holds no state besides the engine; every call is independent. Errors
    from the engine (``BackendUnavailable``, ``SubmissionRequiresBackend``)
    propagate as-is.
    """

    def __init__(self, engine: QueryEngine, strict_filters: bool = False):
        self.engine = engine
        self.strict_filters = strict_filters

    @property
    def source(self) -> str:
        return self.engine.source

    # ---- listings ----

    async def query(self, filters: Optional[ToolFilters] = None) -> SearchResult[Tool]:
        """Filter, sort and paginate published tools."""
        filters = (filters or ToolFilters()).normalized(strict=self.strict_filters)
        return await self.engine.query_tools(filters)

    async def get_tool(self, slug: str) -> Optional[Tool]:
        return await self.engine.get_tool(slug)

    async def featured(self, limit: int = query_defaults.featured_limit) -> list[Tool]:
        return await self.engine.featured_tools(limit)

    async def trending(self, limit: int = query_defaults.featured_limit) -> list[Tool]:
        return await self.engine.trending_tools(limit)

    async def latest(self, limit: int = query_defaults.featured_limit) -> list[Tool]:
        return await self.engine.latest_tools(limit)

    # ---- derived views ----

    async def related_tools(
        self, tool: Tool, limit: int = query_defaults.related_limit
    ) -> list[Tool]:
        """Tools sharing ``tool``'s primary category (or first tag), excluding itself."""
        filters = ToolFilters(limit=limit + 1)
        if tool.primary_category:
            filters.category = tool.primary_category
        elif tool.tags:
            filters.tags = [tool.tags[0]]

        result = await self.query(filters)
        return [t for t in result.data if t.slug != tool.slug][:limit]

    async def by_platform(
        self, platform: str, limit: int = query_defaults.platform_limit
    ) -> list[Tool]:
        result = await self.query(ToolFilters(platforms=[platform], limit=limit))
        return result.data

    async def recommended(
        self, filters: Optional[ToolFilters] = None, limit: int = query_defaults.related_limit
    ) -> list[Tool]:
        """Best-rated tools matching ``filters``."""
        base = filters or ToolFilters()
        result = await self.query(
            base.model_copy(update={"limit": limit, "sort": SortKey.RATING})
        )
        return result.data

    # ---- taxonomy ----

    async def categories(self) -> list[Category]:
        return await self.engine.categories()

    async def get_category(self, slug: str) -> Optional[Category]:
        return await self.engine.get_category(slug)

    async def tags(self) -> list[Tag]:
        return await self.engine.tags()

    async def get_tag(self, slug: str) -> Optional[Tag]:
        return await self.engine.get_tag(slug)

    # ---- deals, alternatives, comparisons ----

    async def active_deals(self, now: Optional[datetime] = None) -> list[Deal]:
        return await self.engine.active_deals(now)

    async def deals_for_tool(self, tool_slug: str, now: Optional[datetime] = None) -> list[Deal]:
        return await self.engine.deals_for_tool(tool_slug, now)

    async def alternatives(self) -> list[Alternative]:
        return await self.engine.alternatives()

    async def get_alternative_by_brand(self, brand: str) -> Optional[Alternative]:
        return await self.engine.get_alternative(brand)

    async def comparisons(self) -> list[ComparisonPair]:
        return await self.engine.comparisons()

    async def get_comparison(self, first: str, second: str) -> Optional[ComparisonPair]:
        return await self.engine.get_comparison(first, second)

    # ---- search & submit ----

    async def search(self, query: str) -> GlobalSearchResult:
        return await self.engine.global_search(
            query,
            tools_limit=query_defaults.search_tools_limit,
            terms_limit=query_defaults.search_terms_limit,
        )

    async def submit(self, submission: Submission) -> Submission:
        """Forward a new tool for review. Requires the database backend."""
        logger.info("Submitting %r via %s", submission.name, self.source)
        return await self.engine.submit(submission)
