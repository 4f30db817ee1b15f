"""Data models for directory entities and queries."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, Literal, Optional, Sequence, TypeVar

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from .errors import InvalidFilter
from .i18n import is_localized_key
from .pricing import Price, parse_price

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 24

T = TypeVar("T")


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class LocalizedModel(BaseModel):
    """Entity that may carry suffix-keyed locale overrides (``name_zh``)."""

    model_config = ConfigDict(extra="allow")

    @property
    def translations(self) -> dict[str, str]:
        extra = self.model_extra or {}
        return {k: v for k, v in extra.items() if is_localized_key(k) and v}


class Timestamped(LocalizedModel):
    created_at: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("created_at", "createdAt")
    )
    updated_at: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("updated_at", "updatedAt")
    )

    @field_validator("created_at", "updated_at")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


# ============ Tools ============

class PricingPlan(BaseModel):
    """One plan in a tool's pricing table."""

    plan: str
    price: Price
    notes: Optional[str] = None

    @field_validator("price", mode="before")
    @classmethod
    def _parse_price(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_price(value)
        return value


class ToolScore(BaseModel):
    """Editorial sub-ratings on a 1-5 scale."""

    ease: float = Field(..., ge=1, le=5)
    value: float = Field(..., ge=1, le=5)
    features: float = Field(..., ge=1, le=5)
    docs: float = Field(..., ge=1, le=5)

    @property
    def mean(self) -> float:
        return (self.ease + self.value + self.features + self.docs) / 4


class FAQ(BaseModel):
    q: str
    a: str


class Tool(Timestamped):
    """A listed tool."""

    id: str
    slug: str
    name: str
    slogan: str = ""
    description: str = Field(
        "", validation_alias=AliasChoices("description", "description_md")
    )
    logo_url: Optional[str] = Field(None, validation_alias=AliasChoices("logo_url", "logo"))
    website_url: Optional[str] = Field(
        None, validation_alias=AliasChoices("website_url", "website")
    )
    docs_url: Optional[str] = Field(None, validation_alias=AliasChoices("docs_url", "docs"))

    categories: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    platforms: list[str] = Field(default_factory=list)
    integrations: list[str] = Field(default_factory=list)
    login_methods: list[str] = Field(default_factory=list)

    pricing: list[PricingPlan] = Field(default_factory=list)
    is_open_source: bool = Field(
        False, validation_alias=AliasChoices("is_open_source", "isOpenSource")
    )
    has_free_trial: bool = Field(
        False, validation_alias=AliasChoices("has_free_trial", "hasFreeTrial")
    )
    supports_secondary_locale: bool = Field(
        False,
        validation_alias=AliasChoices(
            "supports_secondary_locale", "supports_cn", "supportsCN"
        ),
    )

    score: Optional[ToolScore] = None
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)
    faq: list[FAQ] = Field(default_factory=list)

    alt_of: list[str] = Field(default_factory=list)
    deal_ids: list[str] = Field(default_factory=list)

    status: Literal["published", "draft", "pending"] = "published"
    is_featured: bool = False
    created_at: datetime = Field(..., validation_alias=AliasChoices("created_at", "createdAt"))
    updated_at: datetime = Field(..., validation_alias=AliasChoices("updated_at", "updatedAt"))

    @model_validator(mode="after")
    def _check_timestamps(self) -> "Tool":
        if self.updated_at < self.created_at:
            raise ValueError("updated_at must not be earlier than created_at")
        return self

    @property
    def primary_category(self) -> Optional[str]:
        return self.categories[0] if self.categories else None

    @property
    def rating(self) -> float:
        """Mean of the four sub-ratings; unrated tools rank as 0."""
        return self.score.mean if self.score else 0.0

    @property
    def is_published(self) -> bool:
        return self.status == "published"


# ============ Taxonomy ============

class Category(Timestamped):
    """A tool category; ``count`` is derived from published tools at read time."""

    id: str
    slug: str
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    count: int = 0


class Tag(Timestamped):
    id: str
    slug: str
    name: str
    count: int = 0

    def matches_label(self, label: str) -> bool:
        return label == self.slug or label == self.name


# ============ Deals, alternatives, comparisons ============

class Deal(Timestamped):
    """A promotional offer. ``tool_slug`` is not checked against the tool list."""

    id: str
    tool_slug: str
    title: str
    description: str = ""
    code: Optional[str] = None
    url: str
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    source: str = ""
    discount_percentage: Optional[float] = None
    is_active: bool = True

    @field_validator("starts_at", "ends_at")
    @classmethod
    def _window_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    def is_live(self, now: Optional[datetime] = None) -> bool:
        """Active flag set and ``now`` inside the (open-ended) date window."""
        now = as_utc(now) or datetime.now(timezone.utc)
        if not self.is_active:
            return False
        if self.starts_at is not None and self.starts_at > now:
            return False
        return self.ends_at is None or self.ends_at > now


class AlternativeItem(BaseModel):
    tool_slug: str
    reason: str


class Alternative(Timestamped):
    """Recommended substitutes for a brand."""

    id: str
    brand: str
    description: Optional[str] = None
    items: list[AlternativeItem] = Field(default_factory=list)

    @property
    def page_slug(self) -> str:
        return "-".join(self.brand.lower().split()) + "-alternatives"


class Verdict(BaseModel):
    beginner: str = ""
    team: str = ""
    enterprise: str = ""


class ComparisonPair(Timestamped):
    """Head-to-head comparison of two tools; the pair is unordered."""

    id: str
    a_slug: str
    b_slug: str
    matrix: dict[str, Any] = Field(default_factory=dict)
    summary: Optional[str] = None
    verdict: Verdict = Field(
        default_factory=Verdict, validation_alias=AliasChoices("verdict", "verdict_for")
    )

    def matches(self, first: str, second: str) -> bool:
        return (self.a_slug, self.b_slug) in ((first, second), (second, first))

    @property
    def page_slug(self) -> str:
        return f"{self.a_slug}-vs-{self.b_slug}"


def split_comparison_slug(value: str) -> Optional[tuple[str, str]]:
    """Split ``"chatgpt-vs-claude"`` into its two tool slugs."""
    first, sep, second = value.partition("-vs-")
    if not sep or not first or not second:
        return None
    return first, second


# ============ Submissions ============

class Submission(BaseModel):
    """A tool proposed by a visitor, pending editorial review."""

    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    website_url: str = Field(..., min_length=1)
    slogan: str = Field(..., min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    platforms: list[str] = Field(default_factory=list)
    pricing_type: Optional[str] = None
    has_free_trial: bool = False
    is_open_source: bool = False
    supports_secondary_locale: bool = Field(
        False, validation_alias=AliasChoices("supports_secondary_locale", "supports_cn")
    )
    logo_url: Optional[str] = None
    contact_email: Optional[str] = None
    additional_notes: Optional[str] = None
    status: Literal["pending", "approved", "rejected"] = "pending"
    created_at: Optional[datetime] = None


# ============ Queries ============

class SortKey(str, Enum):
    """Listing orders. ``trending`` is most-recently-updated."""

    TRENDING = "trending"
    NEWEST = "newest"
    UPDATED = "updated"
    RATING = "rating"
    NAME = "name"


class ToolFilters(BaseModel):
    """Listing query: all fields optional, booleans are tri-state."""

    query: Optional[str] = None
    category: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    platforms: list[str] = Field(default_factory=list)
    is_open_source: Optional[bool] = None
    supports_secondary_locale: Optional[bool] = Field(
        None, validation_alias=AliasChoices("supports_secondary_locale", "supports_cn")
    )
    has_free_trial: Optional[bool] = None
    sort: SortKey = SortKey.TRENDING
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @field_validator("sort", mode="before")
    @classmethod
    def _unknown_sort_is_trending(cls, value: Any) -> Any:
        if isinstance(value, SortKey):
            return value
        if isinstance(value, str) and value in {key.value for key in SortKey}:
            return value
        return SortKey.TRENDING

    @field_validator("page", "limit", mode="before")
    @classmethod
    def _missing_is_zero(cls, value: Any) -> Any:
        # 0 means "use the default" once normalized
        return 0 if value is None else value

    def normalized(self, strict: bool = False) -> "ToolFilters":
        """Replace page/limit <= 0 with defaults, or raise when strict."""
        if strict:
            if self.page <= 0:
                raise InvalidFilter("page", self.page)
            if self.limit <= 0:
                raise InvalidFilter("limit", self.limit)
        return self.model_copy(
            update={
                "page": self.page if self.page > 0 else DEFAULT_PAGE,
                "limit": self.limit if self.limit > 0 else DEFAULT_LIMIT,
                "query": (self.query or "").strip() or None,
            }
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class SearchResult(BaseModel, Generic[T]):
    """One page of results plus the pre-pagination total."""

    data: list[T] = Field(default_factory=list)
    total: int = 0
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    has_more: bool = False

    @classmethod
    def for_page(cls, data: Sequence[T], total: int, page: int, limit: int) -> "SearchResult[T]":
        return cls(
            data=list(data),
            total=total,
            page=page,
            limit=limit,
            has_more=total > page * limit,
        )

    @property
    def slugs(self) -> list[str]:
        return [getattr(item, "slug", None) for item in self.data]


class GlobalSearchResult(BaseModel):
    """Combined search across tools, categories and tags."""

    tools: list[Tool] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)
    tags: list[Tag] = Field(default_factory=list)
