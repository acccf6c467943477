"""
Tests for the group-building strategies.

These tests verify:
1. Each strategy forms a group of exactly the target size from pool items
2. Strategies return None when their rule cannot be satisfied
3. Lookup failures are absorbed rather than raised
4. Lineage groups are completed by the filler
"""

import asyncio

import pytest

from builders import (
    BUILDER_REGISTRY,
    CategoryBuilder,
    FallbackBuilder,
    LineageBuilder,
    RarityBuilder,
    fill_group,
    get_builder,
)
from models import ItemRecord, RuleKind

from conftest import FakeProvider, distinct_records, make_context, make_record


def build(builder, provider, pool, size=4, **ctx_kwargs):
    ctx = make_context(provider, **ctx_kwargs)
    return asyncio.run(builder.build(tuple(pool), size, ctx)), ctx


# =============================================================================
# REGISTRY
# =============================================================================

class TestRegistry:

    def test_all_builders_registered(self):
        assert set(BUILDER_REGISTRY) == {"category", "lineage", "rarity", "fallback"}

    def test_get_builder_passes_rare_items(self):
        builder = get_builder("rarity", rare_items=["Mew", "lugia"])
        assert builder.rare_items == ("mew", "lugia")

    def test_unknown_builder(self):
        with pytest.raises(ValueError, match="Unknown builder"):
            get_builder("alphabetical")


# =============================================================================
# CATEGORY MATCH
# =============================================================================

class TestCategoryBuilder:

    def test_groups_items_sharing_primary_category(self):
        records = (
            [make_record(f"fire-{i}", category="fire") for i in range(4)]
            + [make_record(f"water-{i}", category="water") for i in range(3)]
            + [make_record(f"grass-{i}", category="grass") for i in range(3)]
        )
        provider = FakeProvider(records)

        group, _ = build(CategoryBuilder(), provider, [r.identifier for r in records])

        assert group is not None
        assert group.rule == RuleKind.CATEGORY
        assert set(group.members) == {f"fire-{i}" for i in range(4)}
        assert group.reason == "All are fire type"

    def test_only_primary_category_counts(self):
        records = [
            make_record("a", category="fire"),
            make_record("b", category="fire"),
            make_record("c", category="fire"),
            # flying is secondary here, it must not join a flying bucket
            *[ItemRecord(identifier=f"bird-{i}", categories=["normal", "flying"]) for i in range(3)],
            make_record("d", category="flying"),
        ]
        provider = FakeProvider(records)

        group, _ = build(CategoryBuilder(), provider, [r.identifier for r in records])

        assert group is None

    def test_returns_none_when_no_category_reaches_size(self):
        records = distinct_records(10)
        provider = FakeProvider(records)

        group, _ = build(CategoryBuilder(), provider, [r.identifier for r in records])

        assert group is None

    def test_items_without_category_are_ineligible(self):
        records = [make_record(f"blank-{i}") for i in range(5)] + [make_record(f"fire-{i}", category="fire") for i in range(3)]
        provider = FakeProvider(records)

        group, _ = build(CategoryBuilder(), provider, [r.identifier for r in records])

        assert group is None

    def test_failed_lookups_are_skipped(self):
        records = [make_record(f"fire-{i}", category="fire") for i in range(6)]
        provider = FakeProvider(records, failing={"fire-0", "fire-1"})
        pool = [r.identifier for r in records] + ["missing"]

        group, ctx = build(CategoryBuilder(), provider, pool)

        assert group is not None
        assert set(group.members) == {"fire-2", "fire-3", "fire-4", "fire-5"}
        assert ctx.unavailable <= {"fire-0", "fire-1", "missing"}

    def test_unreachable_catalog_gives_no_group(self):
        records = [make_record(f"fire-{i}", category="fire") for i in range(5)]
        provider = FakeProvider(records, failing={r.identifier for r in records})

        group, ctx = build(CategoryBuilder(), provider, [r.identifier for r in records])

        assert group is None
        assert ctx.unavailable == {r.identifier for r in records}

    def test_failed_item_is_not_fetched_twice(self):
        provider = FakeProvider([], failing={"flaky"})
        ctx = make_context(provider)

        asyncio.run(ctx.lookup("flaky"))
        asyncio.run(ctx.lookup("flaky"))

        assert provider.item_calls == ["flaky"]

    def test_stops_fetching_once_bucket_is_full(self):
        records = [make_record(f"fire-{i}", category="fire") for i in range(20)]
        provider = FakeProvider(records)

        group, _ = build(CategoryBuilder(), provider, [r.identifier for r in records])

        assert group is not None
        assert len(provider.item_calls) == 4

    def test_max_samples_caps_the_scan(self):
        records = [make_record(f"fire-{i}", category="fire") for i in range(6)]
        provider = FakeProvider(records)

        group, _ = build(CategoryBuilder(), provider, [r.identifier for r in records], max_samples=3)

        assert group is None
        assert len(provider.item_calls) == 3

    def test_pool_smaller_than_size(self):
        records = [make_record(f"fire-{i}", category="fire") for i in range(3)]
        provider = FakeProvider(records)

        group, _ = build(CategoryBuilder(), provider, [r.identifier for r in records])

        assert group is None
        assert provider.item_calls == []


# =============================================================================
# LINEAGE MATCH AND FILLER
# =============================================================================

class TestLineageBuilder:

    def test_full_lineage_group(self):
        records = (
            [make_record(f"evo-{i}", category=f"type-{i}", lineage="chain-a") for i in range(4)]
            + distinct_records(6)
        )
        provider = FakeProvider(records)

        group, _ = build(LineageBuilder(), provider, [r.identifier for r in records])

        assert group is not None
        assert group.rule == RuleKind.LINEAGE
        assert set(group.members) == {f"evo-{i}" for i in range(4)}
        assert group.reason == "Same evolution family"

    def test_partial_lineage_filled_by_category(self):
        records = [
            make_record("a-0", category="water", lineage="chain-a"),
            make_record("a-1", category="water", lineage="chain-a"),
            make_record("w-0", category="water", lineage="chain-w0"),
            make_record("w-1", category="water", lineage="chain-w1"),
        ] + [make_record(f"g-{i}", category="grass", lineage=f"chain-g{i}") for i in range(4)]
        provider = FakeProvider(records)
        pool = ["a-0", "g-0", "w-0", "g-1", "a-1", "w-1", "g-2", "g-3"]

        group, _ = build(LineageBuilder(), provider, pool)

        assert group is not None
        assert len(group.members) == 4
        assert set(group.members) == {"a-0", "a-1", "w-0", "w-1"}
        assert group.rule == RuleKind.LINEAGE

    def test_partial_lineage_padded_from_pool_tail(self):
        records = [
            make_record("a-0", category="water", lineage="chain-a"),
            make_record("a-1", category="water", lineage="chain-a"),
        ] + [make_record(f"g-{i}", category="grass", lineage=f"chain-g{i}") for i in range(4)]
        provider = FakeProvider(records)
        pool = ["a-0", "g-0", "a-1", "g-1", "g-2", "g-3"]

        group, _ = build(LineageBuilder(), provider, pool)

        assert group is not None
        assert set(group.members) == {"a-0", "a-1", "g-3", "g-2"}

    def test_singleton_lineages_are_not_a_group(self):
        records = distinct_records(8)
        provider = FakeProvider(records)

        group, _ = build(LineageBuilder(), provider, [r.identifier for r in records])

        assert group is None

    def test_items_without_category_are_ineligible(self):
        records = [make_record(f"evo-{i}", lineage="chain-a") for i in range(4)] + distinct_records(4)
        provider = FakeProvider(records)

        group, _ = build(LineageBuilder(), provider, [r.identifier for r in records])

        assert group is None


class TestFillGroup:

    def test_prefers_reference_category(self):
        records = [
            make_record("ref", category="fire"),
            make_record("x", category="water"),
            make_record("y", category="fire"),
            make_record("z", category="grass"),
        ]
        provider = FakeProvider(records)
        ctx = make_context(provider)

        fill = asyncio.run(fill_group(["ref"], ("ref", "x", "y", "z"), 1, ctx))

        assert fill == ["y"]

    def test_pads_when_reference_unavailable(self):
        provider = FakeProvider([make_record("x", category="water"), make_record("y", category="fire")],
                                failing={"ref"})
        ctx = make_context(provider)

        fill = asyncio.run(fill_group(["ref"], ("ref", "x", "y"), 2, ctx))

        assert fill == ["y", "x"]

    def test_never_returns_existing_members(self):
        provider = FakeProvider([make_record(i, category="fire") for i in "abcd"])
        ctx = make_context(provider)

        fill = asyncio.run(fill_group(["a", "b"], ("a", "b", "c", "d"), 2, ctx))

        assert sorted(fill) == ["c", "d"]


# =============================================================================
# RARITY MATCH
# =============================================================================

class TestRarityBuilder:

    def test_two_rare_items_padded_from_tail(self):
        records = [make_record("legend-0", rare=True), make_record("legend-1", rare=True)] + distinct_records(6)
        provider = FakeProvider(records)
        pool = [r.identifier for r in records]

        group, _ = build(RarityBuilder(), provider, pool)

        assert group is not None
        assert group.rule == RuleKind.RARITY
        assert set(group.members[:2]) == {"legend-0", "legend-1"}
        assert group.members[2:] == [pool[-1], pool[-2]]

    def test_single_rare_item_is_skipped(self):
        records = [make_record("legend-0", rare=True)] + distinct_records(6)
        provider = FakeProvider(records)

        group, _ = build(RarityBuilder(), provider, [r.identifier for r in records])

        assert group is None

    def test_takes_at_most_target_size(self):
        records = [make_record(f"legend-{i}", rare=True) for i in range(6)] + distinct_records(2)
        provider = FakeProvider(records)

        group, _ = build(RarityBuilder(), provider, [r.identifier for r in records])

        assert group is not None
        assert len(group.members) == 4
        assert all(m.startswith("legend-") for m in group.members)
        assert group.reason == "All legendary"

    def test_curated_list_needs_no_lookups(self):
        records = distinct_records(6)
        pool = ["zapdos", "mew"] + [r.identifier for r in records]
        provider = FakeProvider(records)

        group, ctx = build(RarityBuilder(rare_items=["mew", "lugia", "zapdos"]), provider, pool)

        assert group is not None
        assert group.members[:2] == ["mew", "zapdos"]
        assert ctx.lookups == 0

    def test_repeated_curated_names_count_once(self):
        records = distinct_records(16)
        pool = [r.identifier for r in records]

        group, _ = build(RarityBuilder(rare_items=["item-1", "Item-1", "item-2"]), FakeProvider(records), pool)

        assert group is not None
        assert group.members[:2] == ["item-1", "item-2"]
        assert len(set(group.members)) == 4
        assert group.reason == "Legendary (2 of 4)"


# =============================================================================
# FALLBACK
# =============================================================================

class TestFallbackBuilder:

    def test_random_subset_of_pool(self):
        pool = [f"x-{i}" for i in range(10)]
        provider = FakeProvider([])

        group, ctx = build(FallbackBuilder(), provider, pool)

        assert group is not None
        assert group.rule == RuleKind.FALLBACK
        assert len(set(group.members)) == 4
        assert set(group.members) <= set(pool)
        assert ctx.lookups == 0

    def test_exact_pool_is_used_whole(self):
        pool = ["a", "b", "c", "d"]

        group, _ = build(FallbackBuilder(), FakeProvider([]), pool)

        assert sorted(group.members) == pool

    def test_pool_too_small(self):
        group, _ = build(FallbackBuilder(), FakeProvider([]), ["a", "b", "c"])

        assert group is None
