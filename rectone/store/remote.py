"""Database-backed query engine.

Each filter step of the listing query is pushed down into SQL. Reads see
published tools only; ``snapshot`` exports every row. Store failures
surface as ``BackendUnavailable`` (``BackendTimeout`` past the configured timeout)
and are never retried here.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, TypeVar
from uuid import uuid4

from sqlalchemy import Select, and_, delete, distinct, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from ..database import describe_engine, get_session
from ..errors import BackendTimeout, BackendUnavailable
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
from .orm import (
    LABEL_CATEGORY,
    LABEL_PLATFORM,
    LABEL_TAG,
    AlternativeORM,
    CategoryORM,
    ComparisonORM,
    DealORM,
    SubmissionORM,
    TagORM,
    ToolLabelORM,
    ToolORM,
    alternative_from_row,
    alternative_to_row,
    category_from_row,
    category_to_row,
    comparison_from_row,
    comparison_to_row,
    deal_from_row,
    deal_to_row,
    submission_from_row,
    tag_from_row,
    tag_to_row,
    to_db_time,
    tool_from_row,
    tool_to_row,
    utcnow,
)

logger = logging.getLogger("rectone.remote")

R = TypeVar("R")

_PUBLISHED = ToolORM.status == "published"

_RATING = func.coalesce(
    (ToolORM.score_ease + ToolORM.score_value + ToolORM.score_features + ToolORM.score_docs)
    / 4.0,
    0.0,
)

_ORDERINGS = {
    SortKey.TRENDING: (ToolORM.updated_at.desc(),),
    SortKey.UPDATED: (ToolORM.updated_at.desc(),),
    SortKey.NEWEST: (ToolORM.created_at.desc(),),
    SortKey.NAME: (func.lower(ToolORM.name).asc(),),
    SortKey.RATING: (_RATING.desc(),),
}


# ============ Predicates ============

def _icontains(column, needle: str):
    return func.lower(column).contains(needle.lower(), autoescape=True)


def _has_label(kinds: tuple[str, ...], condition):
    """EXISTS a label row of one of ``kinds`` for the current tool matching ``condition``."""
    return (
        select(ToolLabelORM.id)
        .where(
            ToolLabelORM.tool_seq == ToolORM.seq,
            ToolLabelORM.kind.in_(kinds),
            condition,
        )
        .exists()
    )


def _tool_text_match(needle: str, include_categories: bool = True):
    kinds = (LABEL_TAG, LABEL_CATEGORY) if include_categories else (LABEL_TAG,)
    return or_(
        _icontains(ToolORM.name, needle),
        _icontains(ToolORM.slogan, needle),
        _has_label(kinds, _icontains(ToolLabelORM.label, needle)),
    )


def build_tool_query(filters: ToolFilters) -> Select:
    """Translate filters into a SELECT over published tools (unordered, unpaged)."""
    stmt = select(ToolORM).where(_PUBLISHED)

    if filters.query:
        stmt = stmt.where(_tool_text_match(filters.query))

    if filters.category:
        stmt = stmt.where(_has_label((LABEL_CATEGORY,), ToolLabelORM.label == filters.category))

    if filters.tags:
        stmt = stmt.where(_has_label((LABEL_TAG,), ToolLabelORM.label.in_(filters.tags)))

    if filters.platforms:
        stmt = stmt.where(
            _has_label((LABEL_PLATFORM,), ToolLabelORM.label.in_(filters.platforms))
        )

    if filters.is_open_source is not None:
        stmt = stmt.where(ToolORM.is_open_source.is_(filters.is_open_source))
    if filters.supports_secondary_locale is not None:
        stmt = stmt.where(
            ToolORM.supports_secondary_locale.is_(filters.supports_secondary_locale)
        )
    if filters.has_free_trial is not None:
        stmt = stmt.where(ToolORM.has_free_trial.is_(filters.has_free_trial))

    return stmt


def _category_counts():
    count = (
        select(func.count(distinct(ToolLabelORM.tool_seq)))
        .select_from(ToolLabelORM)
        .join(ToolORM, ToolORM.seq == ToolLabelORM.tool_seq)
        .where(
            _PUBLISHED,
            ToolLabelORM.kind == LABEL_CATEGORY,
            ToolLabelORM.label == CategoryORM.slug,
        )
        .correlate(CategoryORM)
        .scalar_subquery()
        .label("tool_count")
    )
    return select(CategoryORM, count).order_by(count.desc(), CategoryORM.seq)


def _tag_counts():
    count = (
        select(func.count(distinct(ToolLabelORM.tool_seq)))
        .select_from(ToolLabelORM)
        .join(ToolORM, ToolORM.seq == ToolLabelORM.tool_seq)
        .where(
            _PUBLISHED,
            ToolLabelORM.kind == LABEL_TAG,
            or_(ToolLabelORM.label == TagORM.slug, ToolLabelORM.label == TagORM.name),
        )
        .correlate(TagORM)
        .scalar_subquery()
        .label("tool_count")
    )
    return select(TagORM, count).order_by(count.desc(), TagORM.seq)


async def _join(*calls: Awaitable) -> list:
    """Await every call before returning; then raise the first failure, if any."""
    results = await asyncio.gather(*calls, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


def _live_deals(now: Optional[datetime]):
    now = to_db_time(now or datetime.now(timezone.utc))
    return (
        select(DealORM)
        .where(
            DealORM.is_active.is_(True),
            or_(DealORM.starts_at.is_(None), DealORM.starts_at <= now),
            or_(DealORM.ends_at.is_(None), DealORM.ends_at > now),
        )
        .order_by(DealORM.ends_at.is_(None), DealORM.ends_at, DealORM.seq)
    )


class RemoteQueryAdapter(QueryEngine):
    """Serves every read from the database behind ``engine``."""

    source = "database"

    def __init__(self, engine: AsyncEngine, timeout: float = 10.0):
        self.engine = engine
        self.timeout = timeout

    async def _call(self, operation: str, work: Callable[[AsyncSession], Awaitable[R]]) -> R:
        """Run ``work`` in its own session, mapping store failures to BackendUnavailable."""

        async def run() -> R:
            async with get_session(self.engine) as session:
                return await work(session)

        try:
            return await asyncio.wait_for(run(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error("%s timed out after %ss on %s", operation, self.timeout,
                         describe_engine(self.engine))
            raise BackendTimeout(operation, self.timeout) from None
        except (SQLAlchemyError, OSError) as exc:
            logger.error("%s failed on %s: %s", operation, describe_engine(self.engine), exc)
            raise BackendUnavailable(operation, str(exc)) from exc

    async def _tools(self, operation: str, stmt: Select) -> list[Tool]:
        async def work(session: AsyncSession) -> list[Tool]:
            result = await session.execute(stmt)
            return [tool_from_row(row) for row in result.scalars()]

        return await self._call(operation, work)

    # ---- tools ----

    async def query_tools(self, filters: ToolFilters) -> SearchResult[Tool]:
        filters = filters.normalized()
        stmt = build_tool_query(filters)

        async def work(session: AsyncSession) -> SearchResult[Tool]:
            count_result = await session.execute(
                select(func.count()).select_from(stmt.subquery())
            )
            total = count_result.scalar() or 0

            page_stmt = (
                stmt.order_by(*_ORDERINGS[filters.sort], ToolORM.seq)
                .offset(filters.offset)
                .limit(filters.limit)
            )
            result = await session.execute(page_stmt)
            tools = [tool_from_row(row) for row in result.scalars()]
            return SearchResult[Tool].for_page(tools, total, filters.page, filters.limit)

        return await self._call("query_tools", work)

    async def get_tool(self, slug: str) -> Optional[Tool]:
        tools = await self._tools(
            "get_tool", select(ToolORM).where(_PUBLISHED, ToolORM.slug == slug)
        )
        return tools[0] if tools else None

    async def featured_tools(self, limit: int) -> list[Tool]:
        stmt = (
            select(ToolORM)
            .where(_PUBLISHED, ToolORM.is_featured.is_(True))
            .order_by(ToolORM.updated_at.desc(), ToolORM.seq)
            .limit(limit)
        )
        return await self._tools("featured_tools", stmt)

    async def trending_tools(self, limit: int) -> list[Tool]:
        stmt = (
            select(ToolORM)
            .where(_PUBLISHED)
            .order_by(*_ORDERINGS[SortKey.TRENDING], ToolORM.seq)
            .limit(limit)
        )
        return await self._tools("trending_tools", stmt)

    async def latest_tools(self, limit: int) -> list[Tool]:
        stmt = (
            select(ToolORM)
            .where(_PUBLISHED)
            .order_by(*_ORDERINGS[SortKey.NEWEST], ToolORM.seq)
            .limit(limit)
        )
        return await self._tools("latest_tools", stmt)

    # ---- taxonomy ----

    async def _categories(self, operation: str, stmt: Select) -> list[Category]:
        async def work(session: AsyncSession) -> list[Category]:
            result = await session.execute(stmt)
            return [category_from_row(row, count) for row, count in result.all()]

        return await self._call(operation, work)

    async def _tags(self, operation: str, stmt: Select) -> list[Tag]:
        async def work(session: AsyncSession) -> list[Tag]:
            result = await session.execute(stmt)
            return [tag_from_row(row, count) for row, count in result.all()]

        return await self._call(operation, work)

    async def categories(self) -> list[Category]:
        return await self._categories("categories", _category_counts())

    async def get_category(self, slug: str) -> Optional[Category]:
        found = await self._categories(
            "get_category", _category_counts().where(CategoryORM.slug == slug)
        )
        return found[0] if found else None

    async def tags(self) -> list[Tag]:
        return await self._tags("tags", _tag_counts())

    async def get_tag(self, slug: str) -> Optional[Tag]:
        found = await self._tags("get_tag", _tag_counts().where(TagORM.slug == slug))
        return found[0] if found else None

    # ---- deals ----

    async def _deals(self, operation: str, stmt: Select) -> list[Deal]:
        async def work(session: AsyncSession) -> list[Deal]:
            result = await session.execute(stmt)
            return [deal_from_row(row) for row in result.scalars()]

        return await self._call(operation, work)

    async def active_deals(self, now: Optional[datetime] = None) -> list[Deal]:
        return await self._deals("active_deals", _live_deals(now))

    async def deals_for_tool(self, tool_slug: str, now: Optional[datetime] = None) -> list[Deal]:
        return await self._deals(
            "deals_for_tool", _live_deals(now).where(DealORM.tool_slug == tool_slug)
        )

    # ---- alternatives & comparisons ----

    async def alternatives(self) -> list[Alternative]:
        async def work(session: AsyncSession) -> list[Alternative]:
            result = await session.execute(select(AlternativeORM).order_by(AlternativeORM.seq))
            return [alternative_from_row(row) for row in result.scalars()]

        return await self._call("alternatives", work)

    async def get_alternative(self, brand: str) -> Optional[Alternative]:
        async def work(session: AsyncSession) -> Optional[Alternative]:
            result = await session.execute(
                select(AlternativeORM)
                .where(func.lower(AlternativeORM.brand) == brand.lower())
                .order_by(AlternativeORM.seq)
                .limit(1)
            )
            row = result.scalars().first()
            return alternative_from_row(row) if row else None

        return await self._call("get_alternative", work)

    async def comparisons(self) -> list[ComparisonPair]:
        async def work(session: AsyncSession) -> list[ComparisonPair]:
            result = await session.execute(select(ComparisonORM).order_by(ComparisonORM.seq))
            return [comparison_from_row(row) for row in result.scalars()]

        return await self._call("comparisons", work)

    async def get_comparison(self, first: str, second: str) -> Optional[ComparisonPair]:
        async def work(session: AsyncSession) -> Optional[ComparisonPair]:
            result = await session.execute(
                select(ComparisonORM)
                .where(
                    or_(
                        and_(ComparisonORM.a_slug == first, ComparisonORM.b_slug == second),
                        and_(ComparisonORM.a_slug == second, ComparisonORM.b_slug == first),
                    )
                )
                .order_by(ComparisonORM.seq)
                .limit(1)
            )
            row = result.scalars().first()
            return comparison_from_row(row) if row else None

        return await self._call("get_comparison", work)

    # ---- search ----

    async def global_search(
        self, query: str, tools_limit: int, terms_limit: int
    ) -> GlobalSearchResult:
        needle = query.strip()
        if not needle:
            return GlobalSearchResult()

        tools_stmt = (
            select(ToolORM)
            .where(_PUBLISHED, _tool_text_match(needle, include_categories=False))
            .order_by(ToolORM.seq)
            .limit(tools_limit)
        )
        categories_stmt = (
            _category_counts()
            .where(
                or_(
                    _icontains(CategoryORM.name, needle),
                    _icontains(CategoryORM.description, needle),
                )
            )
            .limit(terms_limit)
        )
        tags_stmt = _tag_counts().where(_icontains(TagORM.name, needle)).limit(terms_limit)

        # Independent round-trips; any failure fails the whole search
        tools, categories, tags = await _join(
            self._tools("global_search.tools", tools_stmt),
            self._categories("global_search.categories", categories_stmt),
            self._tags("global_search.tags", tags_stmt),
        )
        return GlobalSearchResult(tools=tools, categories=categories, tags=tags)

    # ---- writes ----

    async def submit(self, submission: Submission) -> Submission:
        async def work(session: AsyncSession) -> Submission:
            row = SubmissionORM(
                id=str(uuid4()),
                name=submission.name,
                website_url=submission.website_url,
                slogan=submission.slogan,
                description=submission.description,
                category=submission.category,
                tags=list(submission.tags),
                platforms=list(submission.platforms),
                pricing_type=submission.pricing_type,
                has_free_trial=submission.has_free_trial,
                is_open_source=submission.is_open_source,
                supports_secondary_locale=submission.supports_secondary_locale,
                logo_url=submission.logo_url,
                contact_email=submission.contact_email,
                additional_notes=submission.additional_notes,
                status="pending",
                created_at=utcnow(),
            )
            session.add(row)
            await session.flush()
            return submission_from_row(row)

        saved = await self._call("submit", work)
        logger.info("Stored submission %s for %r", saved.id, saved.name)
        return saved

    async def mirror(self, dataset: FallbackDataset) -> None:
        """Replace the store's contents with ``dataset``, preserving its order."""

        async def work(session: AsyncSession) -> None:
            for table in (ToolLabelORM, ToolORM, CategoryORM, TagORM, DealORM,
                          AlternativeORM, ComparisonORM):
                await session.execute(delete(table))
            session.add_all([tool_to_row(tool) for tool in dataset.tools])
            session.add_all([category_to_row(c) for c in dataset.categories])
            session.add_all([tag_to_row(t) for t in dataset.tags])
            session.add_all([deal_to_row(d) for d in dataset.deals])
            session.add_all([alternative_to_row(a) for a in dataset.alternatives])
            session.add_all([comparison_to_row(p) for p in dataset.comparisons])

        await self._call("mirror", work)
        logger.info("Mirrored %d tools into %s", len(dataset), describe_engine(self.engine))

    async def snapshot(self) -> FallbackDataset:
        """Every stored row, unpublished tools included, in insertion order."""

        async def deals(session: AsyncSession) -> list[Deal]:
            result = await session.execute(select(DealORM).order_by(DealORM.seq))
            return [deal_from_row(row) for row in result.scalars()]

        tools, categories, tags, all_deals, alternatives, comparisons = await _join(
            self._tools("snapshot.tools", select(ToolORM).order_by(ToolORM.seq)),
            self._categories("snapshot.categories", _category_counts()),
            self._tags("snapshot.tags", _tag_counts()),
            self._call("snapshot.deals", deals),
            self.alternatives(),
            self.comparisons(),
        )
        return FallbackDataset.build(
            tools=tools,
            categories=categories,
            tags=tags,
            deals=all_deals,
            alternatives=alternatives,
            comparisons=comparisons,
        )
