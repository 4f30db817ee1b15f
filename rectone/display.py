"""Display helpers for tool cards: rating text and the headline price."""

from typing import Optional, Sequence

from pydantic import BaseModel

from .i18n import LocaleContext
from .models import PricingPlan, Tool

PRICE_LABELS = {
    "en": {"free_trial": "Free trial", "free": "Free", "contact": "Contact"},
    "zh": {"free_trial": "免费试用", "free": "免费", "contact": "询价"},
}


def _is_free(plan: PricingPlan) -> bool:
    return "free" in plan.plan.lower() or plan.price.is_free


def free_plan(plans: Sequence[PricingPlan]) -> Optional[PricingPlan]:
    """First plan that is free by name or by price."""
    return next((plan for plan in plans if _is_free(plan)), None)


def lowest_paid_plan(plans: Sequence[PricingPlan]) -> Optional[PricingPlan]:
    """Cheapest non-free, non-custom plan; unparseable prices rank last."""
    paid = [p for p in plans if not _is_free(p) and not p.price.is_custom]
    if not paid:
        return None
    return min(paid, key=lambda p: p.price.sort_amount)


def price_label(tool: Tool, ctx: LocaleContext) -> str:
    labels = PRICE_LABELS.get(ctx.locale, PRICE_LABELS["en"])
    free = free_plan(tool.pricing)
    paid = lowest_paid_plan(tool.pricing)
    if free and paid:
        return labels["free_trial"]
    if free:
        return labels["free"]
    if paid:
        return paid.price.display
    return labels["contact"]


def rating_label(tool: Tool) -> Optional[str]:
    """Mean score to one decimal, or None when unrated."""
    if tool.score is None:
        return None
    return f"{tool.score.mean:.1f}"


class ToolCard(BaseModel):
    """What a listing card shows for one tool, already localized."""

    slug: str
    name: str
    slogan: str
    logo_url: Optional[str] = None
    rating: Optional[str] = None
    price: str
    starting_price: Optional[str] = None
    platforms: list[str]
    is_featured: bool = False


def build_tool_card(tool: Tool, ctx: LocaleContext) -> ToolCard:
    paid = lowest_paid_plan(tool.pricing)
    return ToolCard(
        slug=tool.slug,
        name=ctx.localize(tool, "name"),
        slogan=ctx.localize(tool, "slogan"),
        logo_url=tool.logo_url,
        rating=rating_label(tool),
        price=price_label(tool, ctx),
        starting_price=paid.price.display if paid else None,
        platforms=list(tool.platforms),
        is_featured=tool.is_featured,
    )
