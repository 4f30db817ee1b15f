"""API endpoints for categories, tags, deals, alternatives, comparisons and search."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ...models import (
    Alternative,
    Category,
    ComparisonPair,
    Deal,
    GlobalSearchResult,
    Tag,
    split_comparison_slug,
)
from ...service import ToolDirectory
from ..deps import get_directory

router = APIRouter()


@router.get("/categories", response_model=list[Category])
async def list_categories(directory: ToolDirectory = Depends(get_directory)):
    """Categories with tool counts, most populated first."""
    return await directory.categories()


@router.get("/categories/{slug}", response_model=Category)
async def get_category(slug: str, directory: ToolDirectory = Depends(get_directory)):
    category = await directory.get_category(slug)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.get("/tags", response_model=list[Tag])
async def list_tags(directory: ToolDirectory = Depends(get_directory)):
    return await directory.tags()


@router.get("/tags/{slug}", response_model=Tag)
async def get_tag(slug: str, directory: ToolDirectory = Depends(get_directory)):
    tag = await directory.get_tag(slug)
    if not tag:
        raise HTTPException(status_code=404, detail="Tag not found")
    return tag


@router.get("/deals", response_model=list[Deal])
async def list_deals(
    tool: Optional[str] = None,
    directory: ToolDirectory = Depends(get_directory),
):
    """
    Live deals, soonest-ending first.

    - tool: Only deals for this tool slug
    """
    if tool:
        return await directory.deals_for_tool(tool)
    return await directory.active_deals()


@router.get("/alternatives", response_model=list[Alternative])
async def list_alternatives(directory: ToolDirectory = Depends(get_directory)):
    return await directory.alternatives()


@router.get("/alternatives/{brand}", response_model=Alternative)
async def get_alternative(brand: str, directory: ToolDirectory = Depends(get_directory)):
    """Alternatives for a brand (case-insensitive)."""
    alternative = await directory.get_alternative_by_brand(brand)
    if not alternative:
        raise HTTPException(status_code=404, detail="Alternative not found")
    return alternative


@router.get("/vs", response_model=list[ComparisonPair])
async def list_comparisons(directory: ToolDirectory = Depends(get_directory)):
    return await directory.comparisons()


@router.get("/vs/{pair}", response_model=ComparisonPair)
async def get_comparison(pair: str, directory: ToolDirectory = Depends(get_directory)):
    """
    Comparison by page slug, e.g. chatgpt-vs-claude (either order).
    """
    slugs = split_comparison_slug(pair)
    if slugs is None:
        raise HTTPException(status_code=404, detail="Comparison not found")
    comparison = await directory.get_comparison(*slugs)
    if not comparison:
        raise HTTPException(status_code=404, detail="Comparison not found")
    return comparison


@router.get("/search", response_model=GlobalSearchResult)
async def search(
    q: str = Query(..., min_length=1),
    directory: ToolDirectory = Depends(get_directory),
):
    """Search tools, categories and tags at once."""
    return await directory.search(q)
