"""Tests for the database-backed query engine."""

import asyncio

import pytest

from rectone.database import get_engine
from rectone.errors import BackendTimeout, BackendUnavailable
from rectone.models import Submission, ToolFilters
from rectone.store.loader import load_dataset, write_dataset
from rectone.store.remote import RemoteQueryAdapter

EQUIVALENCE_CASES = [
    ToolFilters(),
    ToolFilters(query="ai"),
    ToolFilters(query="NOTE"),
    ToolFilters(query="Analysis"),
    ToolFilters(query="100%_off"),
    ToolFilters(category="development"),
    ToolFilters(category="missing"),
    ToolFilters(tags=["code-editor", "chatbot"]),
    ToolFilters(platforms=["iOS", "Linux"]),
    ToolFilters(is_open_source=True),
    ToolFilters(is_open_source=False, has_free_trial=True),
    ToolFilters(supports_secondary_locale=True, sort="name"),
    ToolFilters(sort="rating"),
    ToolFilters(sort="newest", limit=2, page=2),
    ToolFilters(sort="updated", limit=3, page=3),
    ToolFilters(sort="trending", page=0, limit=-1),
]


@pytest.mark.asyncio
@pytest.mark.parametrize("filters", EQUIVALENCE_CASES)
async def test_remote_matches_local(local_engine, remote_engine, filters):
    """Both engines return the same page for the same data and filters."""
    local = await local_engine.query_tools(filters)
    remote = await remote_engine.query_tools(filters)

    assert remote.total == local.total
    assert remote.slugs == local.slugs
    assert remote.page == local.page
    assert remote.limit == local.limit
    assert remote.has_more == local.has_more


@pytest.mark.asyncio
async def test_remote_tools_round_trip(local_engine, remote_engine):
    local = await local_engine.query_tools(ToolFilters())
    remote = await remote_engine.query_tools(ToolFilters())

    assert [t.model_dump() for t in remote.data] == [t.model_dump() for t in local.data]


@pytest.mark.asyncio
async def test_remote_keeps_translations(remote_engine):
    tool = await remote_engine.get_tool("chatgpt")

    assert tool.translations == {"name_zh": "ChatGPT 中文"}
    assert tool.pricing[1].price.amount == 20


@pytest.mark.asyncio
async def test_remote_hides_drafts(remote_engine):
    assert await remote_engine.get_tool("draft-writer") is None
    assert (await remote_engine.query_tools(ToolFilters(query="draft"))).total == 0


@pytest.mark.asyncio
async def test_remote_listings_match_local(local_engine, remote_engine):
    for name in ("featured_tools", "trending_tools", "latest_tools"):
        local = await getattr(local_engine, name)(4)
        remote = await getattr(remote_engine, name)(4)
        assert [t.slug for t in remote] == [t.slug for t in local], name


@pytest.mark.asyncio
async def test_remote_counts_are_derived(local_engine, remote_engine):
    local_categories = await local_engine.categories()
    remote_categories = await remote_engine.categories()

    assert [(c.slug, c.count) for c in remote_categories] == [
        (c.slug, c.count) for c in local_categories
    ]
    assert [(t.slug, t.count) for t in await remote_engine.tags()] == [
        (t.slug, t.count) for t in await local_engine.tags()
    ]
    assert (await remote_engine.get_category("code-editors")).count == 1
    assert await remote_engine.get_category("missing") is None


@pytest.mark.asyncio
async def test_remote_deals(remote_engine, now):
    assert [d.id for d in await remote_engine.active_deals(now=now)] == ["d6", "d2", "d1"]
    assert [d.id for d in await remote_engine.deals_for_tool("notion", now=now)] == ["d2"]
    assert await remote_engine.deals_for_tool("cursor", now=now) == []


@pytest.mark.asyncio
async def test_remote_alternatives_and_comparisons(remote_engine):
    alternative = await remote_engine.get_alternative("chatgpt")
    assert alternative.brand == "ChatGPT"
    assert alternative.items[0].tool_slug == "claude"
    assert len(await remote_engine.alternatives()) == 2

    pair = await remote_engine.get_comparison("claude", "chatgpt")
    assert pair.id == "vs-1"
    assert pair.verdict.team == "Claude"
    assert await remote_engine.get_comparison("claude", "notion") is None


@pytest.mark.asyncio
async def test_remote_global_search_matches_local(local_engine, remote_engine):
    for query in ("note", "writing tools", "editor", "  "):
        local = await local_engine.global_search(query, tools_limit=10, terms_limit=5)
        remote = await remote_engine.global_search(query, tools_limit=10, terms_limit=5)

        assert [t.slug for t in remote.tools] == [t.slug for t in local.tools], query
        assert [c.slug for c in remote.categories] == [c.slug for c in local.categories], query
        assert [t.slug for t in remote.tags] == [t.slug for t in local.tags], query


@pytest.mark.asyncio
async def test_remote_submit_stores_pending(remote_engine):
    saved = await remote_engine.submit(
        Submission(
            name="Zed Preview",
            website_url="https://zed.dev",
            slogan="Editor",
            tags=["code-editor"],
            status="approved",
        )
    )

    assert saved.id
    assert saved.status == "pending"
    assert saved.created_at is not None
    assert saved.tags == ["code-editor"]
    # Submissions are not listed until reviewed
    assert (await remote_engine.query_tools(ToolFilters(query="preview"))).total == 0


@pytest.mark.asyncio
async def test_snapshot_exports_every_tool(remote_engine):
    snapshot = await remote_engine.snapshot()

    assert [t.slug for t in snapshot.tools] == [
        "chatgpt", "claude", "cursor", "windsurf", "zed", "notion", "obsidian", "draft-writer",
    ]
    assert snapshot.tools[-1].status == "draft"
    assert len(snapshot.deals) == 6
    assert len(snapshot.comparisons) == 1


@pytest.mark.asyncio
async def test_missing_tables_raise_backend_unavailable(tmp_path):
    engine = get_engine(str(tmp_path / "empty.db"))
    adapter = RemoteQueryAdapter(engine, timeout=5)
    try:
        with pytest.raises(BackendUnavailable) as exc_info:
            await adapter.query_tools(ToolFilters())
    finally:
        await engine.dispose()

    assert exc_info.value.operation == "query_tools"
    assert not isinstance(exc_info.value, BackendTimeout)


@pytest.mark.asyncio
async def test_slow_call_raises_backend_timeout(db_engine):
    adapter = RemoteQueryAdapter(db_engine, timeout=0.05)

    async def slow(session):
        await asyncio.sleep(1)

    with pytest.raises(BackendTimeout) as exc_info:
        await adapter._call("slow_query", slow)

    assert exc_info.value.operation == "slow_query"
    assert exc_info.value.timeout == 0.05


@pytest.mark.asyncio
async def test_snapshot_matches_local_snapshot(local_engine, remote_engine):
    local = await local_engine.snapshot()
    remote = await remote_engine.snapshot()

    assert [t.slug for t in remote.tools] == [t.slug for t in local.tools]
    assert [d.id for d in remote.deals] == [d.id for d in local.deals]


@pytest.mark.asyncio
async def test_seed_sync_seed_keeps_unpublished_tools(remote_engine, tmp_path):
    """Syncing to JSON and seeding back loses no rows."""
    await write_dataset(await remote_engine.snapshot(), tmp_path)
    await remote_engine.mirror(await load_dataset(tmp_path))

    snapshot = await remote_engine.snapshot()

    assert len(snapshot.tools) == 8
    assert "draft-writer" in [t.slug for t in snapshot.tools]
    assert await remote_engine.get_tool("draft-writer") is None


@pytest.mark.asyncio
async def test_global_search_waits_for_every_lookup(remote_engine, monkeypatch):
    """A fast failure is raised only after the slower lookups have finished."""
    finished = []

    async def failing(operation, stmt):
        raise BackendUnavailable(operation, "connection reset")

    async def slow(operation, stmt):
        await asyncio.sleep(0.2)
        finished.append(operation)
        return []

    monkeypatch.setattr(remote_engine, "_tools", failing)
    monkeypatch.setattr(remote_engine, "_tags", slow)

    with pytest.raises(BackendUnavailable) as exc_info:
        await remote_engine.global_search("note", tools_limit=10, terms_limit=5)

    assert exc_info.value.operation == "global_search.tools"
    assert finished == ["global_search.tags"]


@pytest.mark.asyncio
async def test_snapshot_waits_for_every_lookup(remote_engine, monkeypatch):
    finished = []

    async def failing(operation, stmt):
        raise BackendUnavailable(operation, "connection reset")

    async def slow():
        await asyncio.sleep(0.2)
        finished.append("comparisons")
        return []

    monkeypatch.setattr(remote_engine, "_tags", failing)
    monkeypatch.setattr(remote_engine, "comparisons", slow)

    with pytest.raises(BackendUnavailable):
        await remote_engine.snapshot()

    assert finished == ["comparisons"]
