"""API endpoints for listing and looking up tools."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ...config import query_defaults
from ...display import ToolCard, build_tool_card
from ...i18n import LocaleContext
from ...models import SearchResult, Tool, ToolFilters
from ...service import ToolDirectory
from ..deps import get_directory, get_locale

router = APIRouter()


def tool_filters(
    q: Optional[str] = None,
    category: Optional[str] = None,
    tags: Optional[list[str]] = Query(None),
    platforms: Optional[list[str]] = Query(None),
    is_open_source: Optional[bool] = None,
    supports_secondary_locale: Optional[bool] = None,
    has_free_trial: Optional[bool] = None,
    sort: Optional[str] = None,
    page: int = 1,
    limit: int = query_defaults.page_size,
) -> ToolFilters:
    """Dependency building a ToolFilters from query parameters."""
    return ToolFilters(
        query=q,
        category=category,
        tags=tags or [],
        platforms=platforms or [],
        is_open_source=is_open_source,
        supports_secondary_locale=supports_secondary_locale,
        has_free_trial=has_free_trial,
        sort=sort,
        page=page,
        limit=limit,
    )


async def _require_tool(slug: str, directory: ToolDirectory) -> Tool:
    tool = await directory.get_tool(slug)
    if not tool:
        raise HTTPException(status_code=404, detail="Tool not found")
    return tool


@router.get("", response_model=SearchResult[Tool])
async def list_tools(
    filters: ToolFilters = Depends(tool_filters),
    directory: ToolDirectory = Depends(get_directory),
):
    """
    List published tools.

    - q: Free text matched against name, slogan, tags and categories
    - tags / platforms: Repeatable, any match counts
    - sort: trending, newest, updated, rating or name
    - page / limit: 1-based page; values <= 0 fall back to defaults
    """
    return await directory.query(filters)


@router.get("/featured", response_model=list[Tool])
async def featured_tools(
    limit: int = Query(query_defaults.featured_limit, ge=1, le=100),
    directory: ToolDirectory = Depends(get_directory),
):
    return await directory.featured(limit)


@router.get("/trending", response_model=list[Tool])
async def trending_tools(
    limit: int = Query(query_defaults.featured_limit, ge=1, le=100),
    directory: ToolDirectory = Depends(get_directory),
):
    """Most recently updated tools."""
    return await directory.trending(limit)


@router.get("/latest", response_model=list[Tool])
async def latest_tools(
    limit: int = Query(query_defaults.featured_limit, ge=1, le=100),
    directory: ToolDirectory = Depends(get_directory),
):
    return await directory.latest(limit)


@router.get("/recommended", response_model=list[Tool])
async def recommended_tools(
    filters: ToolFilters = Depends(tool_filters),
    directory: ToolDirectory = Depends(get_directory),
):
    """Best-rated tools matching the filters (sort is always rating)."""
    return await directory.recommended(filters, limit=filters.normalized().limit)


@router.get("/platform/{platform}", response_model=list[Tool])
async def tools_by_platform(
    platform: str,
    limit: int = Query(query_defaults.platform_limit, ge=1, le=100),
    directory: ToolDirectory = Depends(get_directory),
):
    return await directory.by_platform(platform, limit)


@router.get("/{slug}", response_model=Tool)
async def get_tool(
    slug: str,
    directory: ToolDirectory = Depends(get_directory),
):
    return await _require_tool(slug, directory)


@router.get("/{slug}/related", response_model=list[Tool])
async def related_tools(
    slug: str,
    limit: int = Query(query_defaults.related_limit, ge=1, le=50),
    directory: ToolDirectory = Depends(get_directory),
):
    """Tools in the same primary category (or sharing the first tag)."""
    tool = await _require_tool(slug, directory)
    return await directory.related_tools(tool, limit)


@router.get("/{slug}/card", response_model=ToolCard)
async def tool_card(
    slug: str,
    ctx: LocaleContext = Depends(get_locale),
    directory: ToolDirectory = Depends(get_directory),
):
    """Localized card summary: rating to one decimal and headline price."""
    tool = await _require_tool(slug, directory)
    return build_tool_card(tool, ctx)
