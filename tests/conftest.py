"""Shared fixtures: an in-memory catalog standing in for the remote one."""

import asyncio
from typing import Dict, Iterable, List, Optional, Set

import numpy as np
import pytest

from builders import BuildContext
from catalog import MetadataProvider, NotFound, TransientFetchError
from models import ItemRecord


def make_record(identifier: str, category: Optional[str] = None, era: Optional[str] = None,
                rare: bool = False, lineage: Optional[str] = None) -> ItemRecord:
    """Helper to create an ItemRecord for testing."""
    return ItemRecord(
        identifier=identifier,
        categories=[category] if category else [],
        era=era,
        rare=rare,
        lineage=lineage,
    )


class FakeProvider(MetadataProvider):
    """In-memory provider with scriptable failures."""

    def __init__(self, records: Iterable[ItemRecord], scopes: Optional[Dict[int, Set[str]]] = None,
                 failing: Iterable[str] = (), failing_scopes: Iterable[int] = ()):
        self.records = {r.identifier: r for r in records}
        self.scopes = scopes if scopes is not None else {1: set(self.records)}
        self.failing = set(failing)
        self.failing_scopes = set(failing_scopes)
        self.item_calls: List[str] = []
        self.scope_calls: List[int] = []
        self.closed = False

    async def get_item(self, identifier: str) -> ItemRecord:
        self.item_calls.append(identifier)
        await asyncio.sleep(0)
        if identifier in self.failing:
            raise TransientFetchError(f"{identifier} timed out")
        if identifier not in self.records:
            raise NotFound(identifier)
        return self.records[identifier]

    async def list_scope(self, unit: int) -> Set[str]:
        self.scope_calls.append(unit)
        await asyncio.sleep(0)
        if unit in self.failing_scopes:
            raise TransientFetchError(f"era {unit} timed out")
        if unit not in self.scopes:
            raise NotFound(f"era {unit}")
        return set(self.scopes[unit])

    async def aclose(self):
        self.closed = True


def make_context(provider: MetadataProvider, seed: int = 0, max_samples: Optional[int] = None) -> BuildContext:
    return BuildContext(provider, rng=np.random.default_rng(seed), max_samples=max_samples)


def distinct_records(count: int, prefix: str = "item") -> List[ItemRecord]:
    """Items that share no category, era, lineage or rarity with each other."""
    return [
        make_record(f"{prefix}-{i}", category=f"{prefix}-type-{i}", era=f"{prefix}-era-{i}",
                    lineage=f"{prefix}-chain-{i}")
        for i in range(count)
    ]


@pytest.fixture
def rich_catalog() -> List[ItemRecord]:
    """A catalog with strong category, lineage and rarity signals."""
    records = []
    for i in range(6):
        records.append(make_record(f"fire-{i}", category="fire", era="generation-i", lineage=f"fire-chain-{i}"))
    for i in range(5):
        records.append(make_record(f"water-{i}", category="water", era="generation-ii", lineage=f"water-chain-{i}"))
    for i in range(3):
        records.append(make_record(f"bug-{i}", category="bug", era="generation-iii", lineage="bug-chain"))
    for i in range(5):
        records.append(make_record(f"legend-{i}", category=f"legend-type-{i}", era="generation-iv",
                                   rare=True, lineage=f"legend-chain-{i}"))
    records.extend(distinct_records(12, prefix="misc"))
    return records


@pytest.fixture
def rich_provider(rich_catalog) -> FakeProvider:
    return FakeProvider(rich_catalog)
