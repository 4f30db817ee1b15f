"""In-process collections backing the fallback (JSON) mode."""

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Sequence

from ..models import Alternative, Category, ComparisonPair, Deal, Tag, Tool

_SEED_TIMESTAMP = datetime(2024, 1, 1, tzinfo=timezone.utc)


def derive_tags(tools: Iterable[Tool]) -> list[Tag]:
    """Build the tag list from the labels used by tools, first-seen order."""
    counts: Counter = Counter()
    for tool in tools:
        counts.update(dict.fromkeys(tool.tags, 1))

    return [
        Tag(
            id=f"tag-{index}",
            slug="-".join(name.lower().split()),
            name=name,
            count=count,
            created_at=_SEED_TIMESTAMP,
            updated_at=_SEED_TIMESTAMP,
        )
        for index, (name, count) in enumerate(counts.items())
    ]


@dataclass(frozen=True)
class FallbackDataset:
    """Read-only snapshot of every collection, populated before any query."""

    tools: tuple[Tool, ...] = ()
    categories: tuple[Category, ...] = ()
    tags: tuple[Tag, ...] = ()
    deals: tuple[Deal, ...] = ()
    alternatives: tuple[Alternative, ...] = ()
    comparisons: tuple[ComparisonPair, ...] = ()

    @classmethod
    def build(
        cls,
        tools: Sequence[Tool] = (),
        categories: Sequence[Category] = (),
        tags: Sequence[Tag] = (),
        deals: Sequence[Deal] = (),
        alternatives: Sequence[Alternative] = (),
        comparisons: Sequence[ComparisonPair] = (),
    ) -> "FallbackDataset":
        """Create a dataset, deriving tags from tools when none are given."""
        if not tags:
            tags = derive_tags(tool for tool in tools if tool.is_published)
        return cls(
            tools=tuple(tools),
            categories=tuple(categories),
            tags=tuple(tags),
            deals=tuple(deals),
            alternatives=tuple(alternatives),
            comparisons=tuple(comparisons),
        )

    @property
    def published_tools(self) -> list[Tool]:
        return [tool for tool in self.tools if tool.is_published]

    def __len__(self) -> int:
        return len(self.tools)
