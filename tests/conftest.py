"""Shared fixtures: a sample directory and both engines over it."""

from datetime import datetime, timezone

import pytest

from rectone.database import get_engine, init_db
from rectone.models import Alternative, Category, ComparisonPair, Deal, Tool
from rectone.store import FallbackDataset, LocalQueryEngine
from rectone.store.remote import RemoteQueryAdapter

NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _at(month: int, day: int) -> datetime:
    return datetime(2024, month, day, tzinfo=timezone.utc)


def _score(ease, value, features, docs):
    return {"ease": ease, "value": value, "features": features, "docs": docs}


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_tool():
    """Factory for tools with sensible defaults."""

    def factory(slug: str, **overrides) -> Tool:
        data = {
            "id": slug,
            "slug": slug,
            "name": slug.replace("-", " ").title(),
            "slogan": f"{slug} slogan",
            "categories": ["misc"],
            "platforms": ["Web"],
            "created_at": _at(1, 1),
            "updated_at": _at(1, 1),
        }
        data.update(overrides)
        return Tool(**data)

    return factory


@pytest.fixture
def sample_tools(make_tool):
    return [
        make_tool(
            "chatgpt", name="ChatGPT", slogan="AI assistant for conversations",
            categories=["ai-writing", "productivity"], tags=["ai-writing", "chatbot"],
            platforms=["Web", "iOS"], supports_secondary_locale=True, has_free_trial=True,
            score=_score(4.8, 4.6, 4.7, 4.5), is_featured=True,
            pricing=[{"plan": "Free", "price": "$0"}, {"plan": "Plus", "price": "$20/month"}],
            created_at=_at(1, 1), updated_at=_at(3, 1), name_zh="ChatGPT 中文",
        ),
        make_tool(
            "claude", name="Claude", slogan="Assistant by Anthropic",
            categories=["ai-writing", "analysis"], tags=["ai-writing", "analysis"],
            platforms=["Web", "API"], has_free_trial=True,
            score=_score(4.3, 4.5, 4.6, 4.4), is_featured=True,
            created_at=_at(1, 15), updated_at=_at(1, 20),
        ),
        make_tool(
            "cursor", name="Cursor", slogan="The AI-first code editor",
            categories=["development"], tags=["code-editor", "ai-coding"],
            platforms=["macOS", "Windows"], supports_secondary_locale=True, has_free_trial=True,
            score=_score(4.5, 4.7, 4.8, 4.3),
            created_at=_at(2, 1), updated_at=_at(2, 1),
        ),
        make_tool(
            "windsurf", name="Windsurf", slogan="Agentic development environment",
            categories=["development"], tags=["ai-agents"], platforms=["Web"],
            is_open_source=True, supports_secondary_locale=True,
            created_at=_at(3, 1), updated_at=_at(3, 5),
        ),
        make_tool(
            "zed", name="zed", slogan="High-performance editor",
            categories=["development", "code-editors"], tags=["code-editor"],
            platforms=["macOS", "Linux"], is_open_source=True,
            score=_score(5, 5, 5, 5),
            created_at=_at(2, 10), updated_at=_at(2, 10),
        ),
        make_tool(
            "notion", name="Notion", slogan="Connected workspace",
            categories=["productivity"], tags=["note-taking"], platforms=["Web", "iOS"],
            supports_secondary_locale=True, has_free_trial=True, is_featured=True,
            score=_score(1, 1, 1, 1),
            created_at=_at(1, 5), updated_at=_at(1, 5),
        ),
        make_tool(
            "obsidian", name="Obsidian", slogan="Private knowledge base",
            categories=[], tags=["note-taking", "markdown"], platforms=["macOS", "Windows"],
            created_at=_at(1, 5), updated_at=_at(1, 5),
        ),
        make_tool(
            "draft-writer", name="Draft Writer", slogan="Not launched yet",
            categories=["ai-writing"], tags=["ai-writing"], status="draft",
            created_at=_at(4, 1), updated_at=_at(4, 1),
        ),
    ]


@pytest.fixture
def sample_dataset(sample_tools):
    categories = [
        Category(id=slug, slug=slug, name=name, description=f"{name} tools", count=99)
        for slug, name in (
            ("ai-writing", "AI Writing"),
            ("development", "Development"),
            ("productivity", "Productivity"),
            ("analysis", "Analysis"),
            ("code-editors", "Code Editors"),
        )
    ]
    deals = [
        Deal(id="d1", tool_slug="chatgpt", title="Plus seats", url="https://x/1",
             starts_at=_at(1, 1), is_active=True),
        Deal(id="d2", tool_slug="notion", title="Plus trial", url="https://x/2",
             ends_at=datetime(2030, 1, 1, tzinfo=timezone.utc), is_active=True),
        Deal(id="d3", tool_slug="cursor", title="Expired", url="https://x/3",
             ends_at=_at(6, 1), is_active=True),
        Deal(id="d4", tool_slug="claude", title="Switched off", url="https://x/4",
             is_active=False),
        Deal(id="d5", tool_slug="zed", title="Not started", url="https://x/5",
             starts_at=datetime(2026, 1, 1, tzinfo=timezone.utc), is_active=True),
        Deal(id="d6", tool_slug="retired-tool", title="Orphan", url="https://x/6",
             ends_at=datetime(2029, 1, 1, tzinfo=timezone.utc), is_active=True),
    ]
    alternatives = [
        Alternative(id="alt-chatgpt", brand="ChatGPT",
                    items=[{"tool_slug": "claude", "reason": "Better reasoning"}]),
        Alternative(id="alt-notion", brand="Notion",
                    items=[{"tool_slug": "obsidian", "reason": "Local files"}]),
    ]
    comparisons = [
        ComparisonPair(id="vs-1", a_slug="chatgpt", b_slug="claude",
                       matrix={"features": ["Chat"]}, summary="Close call",
                       verdict={"beginner": "ChatGPT", "team": "Claude", "enterprise": "ChatGPT"}),
    ]
    return FallbackDataset.build(
        tools=sample_tools,
        categories=categories,
        deals=deals,
        alternatives=alternatives,
        comparisons=comparisons,
    )


@pytest.fixture
def local_engine(sample_dataset):
    return LocalQueryEngine(sample_dataset)


@pytest.fixture
async def db_engine(tmp_path):
    """Create test database engine."""
    engine = get_engine(str(tmp_path / "test.db"))
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def remote_engine(db_engine, sample_dataset):
    """Database engine mirrored from the sample dataset."""
    adapter = RemoteQueryAdapter(db_engine, timeout=5)
    await adapter.mirror(sample_dataset)
    return adapter
