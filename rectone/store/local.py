"""In-memory query engine over the fallback dataset.

Everything here is a pure function of the dataset and the filters: no
I/O, no mutation. Sorts are stable, so ties keep dataset order.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from ..errors import SubmissionRequiresBackend
from ..models import (
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
from .base import QueryEngine
from .dataset import FallbackDataset

logger = logging.getLogger("rectone.local")

_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


def _contains(haystack: Optional[str], needle: str) -> bool:
    return bool(haystack) and needle in haystack.lower()


def matches_text(tool: Tool, needle: str) -> bool:
    """Case-insensitive substring match on name, slogan, tags and categories."""
    needle = needle.lower()
    return (
        _contains(tool.name, needle)
        or _contains(tool.slogan, needle)
        or any(_contains(tag, needle) for tag in tool.tags)
        or any(_contains(category, needle) for category in tool.categories)
    )


def matches_filters(tool: Tool, filters: ToolFilters) -> bool:
    """True when ``tool`` satisfies every predicate set in ``filters``."""
    if not tool.is_published:
        return False
    if filters.query and not matches_text(tool, filters.query):
        return False
    if filters.category and filters.category not in tool.categories:
        return False
    if filters.tags and not any(tag in tool.tags for tag in filters.tags):
        return False
    if filters.platforms and not any(p in tool.platforms for p in filters.platforms):
        return False
    for flag in ("is_open_source", "supports_secondary_locale", "has_free_trial"):
        wanted = getattr(filters, flag)
        if wanted is not None and getattr(tool, flag) != wanted:
            return False
    return True


def sort_tools(tools: Iterable[Tool], sort: SortKey) -> list[Tool]:
    """Stable sort; ``trending`` is an alias for ``updated``."""
    if sort == SortKey.NEWEST:
        return sorted(tools, key=lambda t: t.created_at, reverse=True)
    if sort == SortKey.NAME:
        return sorted(tools, key=lambda t: t.name.lower())
    if sort == SortKey.RATING:
        return sorted(tools, key=lambda t: t.rating, reverse=True)
    return sorted(tools, key=lambda t: t.updated_at, reverse=True)


def query_tools(tools: Sequence[Tool], filters: ToolFilters) -> SearchResult[Tool]:
    """Filter, sort and paginate ``tools``. Never raises for bad page/limit."""
    filters = filters.normalized()

    matched = [tool for tool in tools if matches_filters(tool, filters)]
    ordered = sort_tools(matched, filters.sort)
    page = ordered[filters.offset:filters.offset + filters.limit]

    return SearchResult[Tool].for_page(page, len(matched), filters.page, filters.limit)


def _sort_deals(deals: Iterable[Deal]) -> list[Deal]:
    return sorted(deals, key=lambda d: (d.ends_at is None, d.ends_at or _FAR_FUTURE))


class LocalQueryEngine(QueryEngine):
    """Serves every read from a :class:`FallbackDataset`."""

    source = "json"

    def __init__(self, dataset: FallbackDataset):
        self.dataset = dataset

    # ---- tools ----

    async def query_tools(self, filters: ToolFilters) -> SearchResult[Tool]:
        return query_tools(self.dataset.tools, filters)

    async def get_tool(self, slug: str) -> Optional[Tool]:
        for tool in self.dataset.published_tools:
            if tool.slug == slug:
                return tool
        return None

    async def featured_tools(self, limit: int) -> list[Tool]:
        featured = [tool for tool in self.dataset.published_tools if tool.is_featured]
        return sort_tools(featured, SortKey.UPDATED)[:limit]

    async def trending_tools(self, limit: int) -> list[Tool]:
        return sort_tools(self.dataset.published_tools, SortKey.TRENDING)[:limit]

    async def latest_tools(self, limit: int) -> list[Tool]:
        return sort_tools(self.dataset.published_tools, SortKey.NEWEST)[:limit]

    # ---- taxonomy ----

    def _counted_categories(self) -> list[Category]:
        published = self.dataset.published_tools
        counted = [
            category.model_copy(
                update={"count": sum(category.slug in t.categories for t in published)}
            )
            for category in self.dataset.categories
        ]
        return sorted(counted, key=lambda c: c.count, reverse=True)

    def _counted_tags(self) -> list[Tag]:
        published = self.dataset.published_tools
        counted = [
            tag.model_copy(
                update={
                    "count": sum(
                        any(tag.matches_label(label) for label in t.tags) for t in published
                    )
                }
            )
            for tag in self.dataset.tags
        ]
        return sorted(counted, key=lambda t: t.count, reverse=True)

    async def categories(self) -> list[Category]:
        return self._counted_categories()

    async def get_category(self, slug: str) -> Optional[Category]:
        return next((c for c in self._counted_categories() if c.slug == slug), None)

    async def tags(self) -> list[Tag]:
        return self._counted_tags()

    async def get_tag(self, slug: str) -> Optional[Tag]:
        return next((t for t in self._counted_tags() if t.slug == slug), None)

    # ---- deals ----

    async def active_deals(self, now: Optional[datetime] = None) -> list[Deal]:
        return _sort_deals(d for d in self.dataset.deals if d.is_live(now))

    async def deals_for_tool(self, tool_slug: str, now: Optional[datetime] = None) -> list[Deal]:
        return _sort_deals(
            d for d in self.dataset.deals if d.tool_slug == tool_slug and d.is_live(now)
        )

    # ---- alternatives & comparisons ----

    async def alternatives(self) -> list[Alternative]:
        return list(self.dataset.alternatives)

    async def get_alternative(self, brand: str) -> Optional[Alternative]:
        wanted = brand.lower()
        return next(
            (alt for alt in self.dataset.alternatives if alt.brand.lower() == wanted), None
        )

    async def comparisons(self) -> list[ComparisonPair]:
        return list(self.dataset.comparisons)

    async def get_comparison(self, first: str, second: str) -> Optional[ComparisonPair]:
        return next(
            (pair for pair in self.dataset.comparisons if pair.matches(first, second)), None
        )

    # ---- search ----

    async def global_search(
        self, query: str, tools_limit: int, terms_limit: int
    ) -> GlobalSearchResult:
        needle = query.strip().lower()
        if not needle:
            return GlobalSearchResult()

        tools = [
            tool for tool in self.dataset.published_tools
            if _contains(tool.name, needle)
            or _contains(tool.slogan, needle)
            or any(_contains(tag, needle) for tag in tool.tags)
        ]
        categories = [
            c for c in self._counted_categories()
            if _contains(c.name, needle) or _contains(c.description, needle)
        ]
        tags = [t for t in self._counted_tags() if _contains(t.name, needle)]

        return GlobalSearchResult(
            tools=tools[:tools_limit],
            categories=categories[:terms_limit],
            tags=tags[:terms_limit],
        )

    # ---- writes ----

    async def submit(self, submission: Submission) -> Submission:
        logger.warning("Rejected submission for %r: fallback data is read-only", submission.name)
        raise SubmissionRequiresBackend()

    async def snapshot(self) -> FallbackDataset:
        return self.dataset
