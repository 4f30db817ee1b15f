"""SQLAlchemy tables for the remote directory store, and row <-> model mapping."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

from ..models import (
    Alternative,
    Category,
    ComparisonPair,
    Deal,
    Submission,
    Tag,
    Tool,
    as_utc,
)

Base = declarative_base()

LABEL_CATEGORY = "category"
LABEL_TAG = "tag"
LABEL_PLATFORM = "platform"


def to_db_time(value: Optional[datetime]) -> Optional[datetime]:
    """Store timestamps as naive UTC so every dialect orders them the same."""
    value = as_utc(value)
    return value.replace(tzinfo=None) if value is not None else None


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ============ Tables ============

class ToolORM(Base):
    """Tools table. ``seq`` preserves insertion order for tie-breaking."""
    __tablename__ = "tools"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    slogan = Column(String, default="")
    description = Column(Text, default="")
    logo_url = Column(String)
    website_url = Column(String)
    docs_url = Column(String)
    pricing = Column(JSON, default=list)
    integrations = Column(JSON, default=list)
    login_methods = Column(JSON, default=list)
    is_open_source = Column(Boolean, default=False, index=True)
    has_free_trial = Column(Boolean, default=False, index=True)
    supports_secondary_locale = Column(Boolean, default=False, index=True)
    score_ease = Column(Float)
    score_value = Column(Float)
    score_features = Column(Float)
    score_docs = Column(Float)
    pros = Column(JSON, default=list)
    cons = Column(JSON, default=list)
    faq = Column(JSON, default=list)
    alt_of = Column(JSON, default=list)
    deal_ids = Column(JSON, default=list)
    translations = Column(JSON, default=dict)
    status = Column(String, default="published", index=True, nullable=False)
    is_featured = Column(Boolean, default=False)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    labels = relationship(
        "ToolLabelORM",
        back_populates="tool",
        lazy="selectin",
        order_by="ToolLabelORM.position",
        cascade="all, delete-orphan",
    )


class ToolLabelORM(Base):
    """Categories, tags and platforms of a tool, one row per label."""
    __tablename__ = "tool_labels"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tool_seq = Column(Integer, ForeignKey("tools.seq"), index=True, nullable=False)
    kind = Column(String, index=True, nullable=False)
    label = Column(String, index=True, nullable=False)
    position = Column(Integer, nullable=False)

    tool = relationship("ToolORM", back_populates="labels")


class CategoryORM(Base):
    __tablename__ = "categories"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text)
    icon = Column(String)
    color = Column(String)
    translations = Column(JSON, default=dict)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)


class TagORM(Base):
    __tablename__ = "tags"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    translations = Column(JSON, default=dict)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)


class DealORM(Base):
    __tablename__ = "deals"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, nullable=False)
    tool_slug = Column(String, index=True, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, default="")
    code = Column(String)
    url = Column(String, nullable=False)
    starts_at = Column(DateTime)
    ends_at = Column(DateTime)
    source = Column(String, default="")
    discount_percentage = Column(Float)
    is_active = Column(Boolean, default=True, index=True)
    translations = Column(JSON, default=dict)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)


class AlternativeORM(Base):
    __tablename__ = "alternatives"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, nullable=False)
    brand = Column(String, index=True, nullable=False)
    description = Column(Text)
    items = Column(JSON, default=list)
    translations = Column(JSON, default=dict)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)


class ComparisonORM(Base):
    __tablename__ = "vspairs"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, nullable=False)
    a_slug = Column(String, index=True, nullable=False)
    b_slug = Column(String, index=True, nullable=False)
    matrix = Column(JSON, default=dict)
    summary = Column(Text)
    verdict = Column(JSON, default=dict)
    translations = Column(JSON, default=dict)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)


class SubmissionORM(Base):
    __tablename__ = "pending_submissions"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    website_url = Column(String, nullable=False)
    slogan = Column(String, nullable=False)
    description = Column(Text)
    category = Column(String)
    tags = Column(JSON, default=list)
    platforms = Column(JSON, default=list)
    pricing_type = Column(String)
    has_free_trial = Column(Boolean, default=False)
    is_open_source = Column(Boolean, default=False)
    supports_secondary_locale = Column(Boolean, default=False)
    logo_url = Column(String)
    contact_email = Column(String)
    additional_notes = Column(Text)
    status = Column(String, default="pending", nullable=False)
    created_at = Column(DateTime, default=utcnow)


# ============ Model -> row ============

def tool_to_row(tool: Tool) -> ToolORM:
    labels = []
    for kind, values in (
        (LABEL_CATEGORY, tool.categories),
        (LABEL_TAG, tool.tags),
        (LABEL_PLATFORM, tool.platforms),
    ):
        labels.extend(
            ToolLabelORM(kind=kind, label=value, position=position)
            for position, value in enumerate(values)
        )

    score = tool.score
    return ToolORM(
        id=tool.id,
        slug=tool.slug,
        name=tool.name,
        slogan=tool.slogan,
        description=tool.description,
        logo_url=tool.logo_url,
        website_url=tool.website_url,
        docs_url=tool.docs_url,
        pricing=[plan.model_dump() for plan in tool.pricing],
        integrations=list(tool.integrations),
        login_methods=list(tool.login_methods),
        is_open_source=tool.is_open_source,
        has_free_trial=tool.has_free_trial,
        supports_secondary_locale=tool.supports_secondary_locale,
        score_ease=score.ease if score else None,
        score_value=score.value if score else None,
        score_features=score.features if score else None,
        score_docs=score.docs if score else None,
        pros=list(tool.pros),
        cons=list(tool.cons),
        faq=[item.model_dump() for item in tool.faq],
        alt_of=list(tool.alt_of),
        deal_ids=list(tool.deal_ids),
        translations=tool.translations,
        status=tool.status,
        is_featured=tool.is_featured,
        created_at=to_db_time(tool.created_at),
        updated_at=to_db_time(tool.updated_at),
        labels=labels,
    )


def category_to_row(category: Category) -> CategoryORM:
    return CategoryORM(
        id=category.id,
        slug=category.slug,
        name=category.name,
        description=category.description,
        icon=category.icon,
        color=category.color,
        translations=category.translations,
        created_at=to_db_time(category.created_at),
        updated_at=to_db_time(category.updated_at),
    )


def tag_to_row(tag: Tag) -> TagORM:
    return TagORM(
        id=tag.id,
        slug=tag.slug,
        name=tag.name,
        translations=tag.translations,
        created_at=to_db_time(tag.created_at),
        updated_at=to_db_time(tag.updated_at),
    )


def deal_to_row(deal: Deal) -> DealORM:
    return DealORM(
        id=deal.id,
        tool_slug=deal.tool_slug,
        title=deal.title,
        description=deal.description,
        code=deal.code,
        url=deal.url,
        starts_at=to_db_time(deal.starts_at),
        ends_at=to_db_time(deal.ends_at),
        source=deal.source,
        discount_percentage=deal.discount_percentage,
        is_active=deal.is_active,
        translations=deal.translations,
        created_at=to_db_time(deal.created_at),
        updated_at=to_db_time(deal.updated_at),
    )


def alternative_to_row(alternative: Alternative) -> AlternativeORM:
    return AlternativeORM(
        id=alternative.id,
        brand=alternative.brand,
        description=alternative.description,
        items=[item.model_dump() for item in alternative.items],
        translations=alternative.translations,
        created_at=to_db_time(alternative.created_at),
        updated_at=to_db_time(alternative.updated_at),
    )


def comparison_to_row(pair: ComparisonPair) -> ComparisonORM:
    return ComparisonORM(
        id=pair.id,
        a_slug=pair.a_slug,
        b_slug=pair.b_slug,
        matrix=pair.matrix,
        summary=pair.summary,
        verdict=pair.verdict.model_dump(),
        translations=pair.translations,
        created_at=to_db_time(pair.created_at),
        updated_at=to_db_time(pair.updated_at),
    )


# ============ Row -> model ============

def tool_from_row(row: ToolORM) -> Tool:
    labels: dict[str, list[str]] = {LABEL_CATEGORY: [], LABEL_TAG: [], LABEL_PLATFORM: []}
    for label in row.labels:
        labels.setdefault(label.kind, []).append(label.label)

    score = None
    if row.score_ease is not None:
        score = {
            "ease": row.score_ease,
            "value": row.score_value,
            "features": row.score_features,
            "docs": row.score_docs,
        }

    return Tool(
        id=row.id,
        slug=row.slug,
        name=row.name,
        slogan=row.slogan or "",
        description=row.description or "",
        logo_url=row.logo_url,
        website_url=row.website_url,
        docs_url=row.docs_url,
        categories=labels[LABEL_CATEGORY],
        tags=labels[LABEL_TAG],
        platforms=labels[LABEL_PLATFORM],
        integrations=row.integrations or [],
        login_methods=row.login_methods or [],
        pricing=row.pricing or [],
        is_open_source=row.is_open_source,
        has_free_trial=row.has_free_trial,
        supports_secondary_locale=row.supports_secondary_locale,
        score=score,
        pros=row.pros or [],
        cons=row.cons or [],
        faq=row.faq or [],
        alt_of=row.alt_of or [],
        deal_ids=row.deal_ids or [],
        status=row.status,
        is_featured=row.is_featured,
        created_at=row.created_at,
        updated_at=row.updated_at,
        **(row.translations or {}),
    )


def category_from_row(row: CategoryORM, count: int = 0) -> Category:
    return Category(
        id=row.id,
        slug=row.slug,
        name=row.name,
        description=row.description,
        icon=row.icon,
        color=row.color,
        count=count,
        created_at=row.created_at,
        updated_at=row.updated_at,
        **(row.translations or {}),
    )


def tag_from_row(row: TagORM, count: int = 0) -> Tag:
    return Tag(
        id=row.id,
        slug=row.slug,
        name=row.name,
        count=count,
        created_at=row.created_at,
        updated_at=row.updated_at,
        **(row.translations or {}),
    )


def deal_from_row(row: DealORM) -> Deal:
    return Deal(
        id=row.id,
        tool_slug=row.tool_slug,
        title=row.title,
        description=row.description or "",
        code=row.code,
        url=row.url,
        starts_at=row.starts_at,
        ends_at=row.ends_at,
        source=row.source or "",
        discount_percentage=row.discount_percentage,
        is_active=row.is_active,
        created_at=row.created_at,
        updated_at=row.updated_at,
        **(row.translations or {}),
    )


def alternative_from_row(row: AlternativeORM) -> Alternative:
    return Alternative(
        id=row.id,
        brand=row.brand,
        description=row.description,
        items=row.items or [],
        created_at=row.created_at,
        updated_at=row.updated_at,
        **(row.translations or {}),
    )


def comparison_from_row(row: ComparisonORM) -> ComparisonPair:
    return ComparisonPair(
        id=row.id,
        a_slug=row.a_slug,
        b_slug=row.b_slug,
        matrix=row.matrix or {},
        summary=row.summary,
        verdict=row.verdict or {},
        created_at=row.created_at,
        updated_at=row.updated_at,
        **(row.translations or {}),
    )


def submission_from_row(row: SubmissionORM) -> Submission:
    return Submission(
        id=row.id,
        name=row.name,
        website_url=row.website_url,
        slogan=row.slogan,
        description=row.description,
        category=row.category,
        tags=row.tags or [],
        platforms=row.platforms or [],
        pricing_type=row.pricing_type,
        has_free_trial=row.has_free_trial,
        is_open_source=row.is_open_source,
        supports_secondary_locale=row.supports_secondary_locale,
        logo_url=row.logo_url,
        contact_email=row.contact_email,
        additional_notes=row.additional_notes,
        status=row.status,
        created_at=row.created_at,
    )
