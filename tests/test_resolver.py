"""Tests for SheetResolver: fetching, caching and link resolution."""

from __future__ import annotations

import asyncio

import pytest

from sheetlink.cache import SheetCache
from sheetlink.errors import SheetNotFoundError, SheetParseError
from sheetlink.resolver import SheetResolver
from sheetlink.source import GitHubSheetSource, MemorySheetSource


# ---------------------------------------------------------------------------
# Sheets and items
# ---------------------------------------------------------------------------


class TestGetSheet:
    def test_rows_in_order(self, resolver):
        rows = asyncio.run(resolver.get_sheet("Item", 0))
        assert [r["ID"] for r in rows] == [0.0, 1.0, 2.0, 3.0, 4.0]
        assert rows[1]["ItemUICategory"] == 1.0

    def test_every_row_has_same_keys(self, resolver):
        rows = asyncio.run(resolver.get_sheet("Item", 1))
        keys = {frozenset(r) for r in rows}
        assert keys == {frozenset({"ID", "Name", "Level", "Singular", "ItemUICategory", "Materia"})}

    def test_empty_named_columns_omitted(self, resolver):
        rows = asyncio.run(resolver.get_sheet("ItemUICategory", 0))
        assert all("" not in r for r in rows)

    def test_missing_sheet(self, resolver):
        with pytest.raises(SheetNotFoundError):
            asyncio.run(resolver.get_sheet("Nope"))

    def test_malformed_sheet(self, source):
        source.add("Broken", "key,0\n#,Name\n")
        with pytest.raises(SheetParseError):
            asyncio.run(SheetResolver(source=source).get_sheet("Broken"))


class TestGetSheetItem:
    def test_depth_one(self, resolver):
        row = asyncio.run(resolver.get_sheet_item("Item", 1))
        assert row == {
            "ID": 1.0,
            "Name": "Potion",
            "Level": 50.0,
            "Singular": "potion",
            "ItemUICategory": {
                "ID": 1.0,
                "Name": "Medicine",
                "Icon": 20.0,
                "ItemSearchCategory": 1.0,
            },
            "Materia": [1.0, 2.0],
        }

    def test_depth_two(self, resolver):
        row = asyncio.run(resolver.get_sheet_item("Item", 1, recurse_depth=2))
        assert row["ItemUICategory"]["ItemSearchCategory"] == {
            "ID": 1.0,
            "Name": "Medicines",
            "Category": 5.0,
        }

    def test_depth_zero(self, resolver, source):
        row = asyncio.run(resolver.get_sheet_item("Item", 1, recurse_depth=0))
        assert row["ItemUICategory"] == 1.0
        assert "ItemUICategory" not in source.fetch_counts

    def test_sparse_array(self, resolver):
        row = asyncio.run(resolver.get_sheet_item("Item", 2))
        assert row["Materia"] == [3.0, None]

    def test_out_of_range_reference_is_none(self, resolver):
        row = asyncio.run(resolver.get_sheet_item("Item", 4))
        assert row["Name"] == "Lotion"
        assert row["ItemUICategory"] is None

    @pytest.mark.parametrize("item_id", [99, -1, 1.5, None, "1"])
    def test_no_such_row(self, resolver, item_id):
        assert asyncio.run(resolver.get_sheet_item("Item", item_id)) is None

    def test_float_index(self, resolver):
        row = asyncio.run(resolver.get_sheet_item("Item", 3.0, recurse_depth=0))
        assert row["Name"] == "Ether"

    def test_missing_sheet_even_for_bad_index(self, resolver):
        with pytest.raises(SheetNotFoundError):
            asyncio.run(resolver.get_sheet_item("Nope", -1))

    def test_missing_linked_sheet_propagates(self, source):
        del source.sheets["ItemSearchCategory"]
        resolver = SheetResolver(source=source)
        assert asyncio.run(resolver.get_sheet_item("Item", 1, recurse_depth=1)) is not None
        with pytest.raises(SheetNotFoundError):
            asyncio.run(resolver.get_sheet_item("Item", 1, recurse_depth=2))


class TestCycles:
    def test_self_reference_bounded_by_depth(self, resolver):
        row = asyncio.run(resolver.get_sheet_item("ClassJob", 2, recurse_depth=3))
        assert row["Name"] == "paladin"
        assert row["Parent"]["Name"] == "gladiator"
        assert row["Parent"]["Parent"]["Name"] == "adventurer"
        assert row["Parent"]["Parent"]["Parent"] == {"ID": 0.0, "Name": "adventurer", "Parent": 0.0}

    def test_self_reference_depth_one(self, resolver):
        row = asyncio.run(resolver.get_sheet_item("ClassJob", 0, recurse_depth=1))
        assert row["Parent"] == {"ID": 0.0, "Name": "adventurer", "Parent": 0.0}


# ---------------------------------------------------------------------------
# Caching
# ---------------------------------------------------------------------------


class TestCaching:
    def test_repeat_calls_fetch_once(self, resolver, source):
        asyncio.run(resolver.get_sheet("Item", 0))
        asyncio.run(resolver.get_sheet("Item", 0))
        assert source.fetch_counts == {"Item": 1}

    def test_depths_share_entry(self, resolver, source):
        asyncio.run(resolver.get_sheet("Item", 0))
        asyncio.run(resolver.get_sheet("Item", 2))
        assert source.fetch_counts["Item"] == 1
        assert source.fetch_counts["ItemUICategory"] == 1
        assert source.fetch_counts["ItemSearchCategory"] == 1

    def test_linked_sheet_fetched_once_per_sheet(self, resolver, source):
        asyncio.run(resolver.get_sheet("Item", 1))
        assert source.fetch_counts == {"Item": 1, "ItemUICategory": 1}

    def test_refetch_after_ttl(self, source, clock):
        resolver = SheetResolver(source=source, cache=SheetCache(ttl=10, clock=clock))
        asyncio.run(resolver.get_sheet_data("Item"))
        clock.advance(9)
        asyncio.run(resolver.get_sheet_data("Item"))
        assert source.fetch_counts["Item"] == 1
        clock.advance(2)
        asyncio.run(resolver.get_sheet_data("Item"))
        assert source.fetch_counts["Item"] == 2

    def test_zero_ttl_never_refetches(self, source, clock):
        resolver = SheetResolver(source=source, cache=SheetCache(ttl=0, clock=clock))
        asyncio.run(resolver.get_sheet_data("Item"))
        clock.advance(10**6)
        asyncio.run(resolver.get_sheet_data("Item"))
        assert source.fetch_counts["Item"] == 1

    def test_resolvers_do_not_share_cache(self, source):
        asyncio.run(SheetResolver(source=source).get_sheet_data("Item"))
        asyncio.run(SheetResolver(source=source).get_sheet_data("Item"))
        assert source.fetch_counts["Item"] == 2

    def test_concurrent_misses_coalesced(self, slow_source):
        resolver = SheetResolver(source=slow_source)

        async def _many():
            return await asyncio.gather(*(resolver.get_sheet_data("Item") for _ in range(5)))

        results = asyncio.run(_many())
        assert slow_source.fetch_counts["Item"] == 1
        assert all(r is results[0] for r in results)

    def test_concurrent_rows_share_linked_fetch(self, slow_source):
        resolver = SheetResolver(source=slow_source)
        rows = asyncio.run(resolver.get_sheet("Item", 2))
        assert len(rows) == 5
        assert slow_source.fetch_counts == {"Item": 1, "ItemUICategory": 1, "ItemSearchCategory": 1}

    def test_failed_fetch_not_cached(self, source):
        resolver = SheetResolver(source=source)
        with pytest.raises(SheetNotFoundError):
            asyncio.run(resolver.get_sheet_data("Later"))
        source.add("Later", "key,0\n#,Name\n,\n0,x\n")
        data = asyncio.run(resolver.get_sheet_data("Later"))
        assert len(data) == 1
        assert source.fetch_counts["Later"] == 2

    def test_aclose_clears_cache(self, resolver):
        asyncio.run(resolver.get_sheet_data("Item"))
        asyncio.run(resolver.aclose())
        assert len(resolver.cache) == 0


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestFromConfig:
    def _config(self, **overrides):
        config = {
            "repo_id": "owner/sheets",
            "branch": "main",
            "ttl": 30,
            "base_url": "https://example.test/raw",
            "timeout": 5,
            "token_env": "SHEETLINK_TEST_TOKEN",
            "linkable_types": ["Item"],
        }
        config.update(overrides)
        return config

    def test_builds_github_source(self, monkeypatch):
        monkeypatch.delenv("SHEETLINK_TEST_TOKEN", raising=False)
        resolver = SheetResolver.from_config(self._config())
        assert isinstance(resolver.source, GitHubSheetSource)
        assert resolver.source.url_for("Item") == "https://example.test/raw/owner/sheets/main/csv/Item.csv"
        assert resolver.cache.ttl == 30
        assert resolver.linkable_types == frozenset({"Item"})
        assert resolver.source._token is None

    def test_token_from_environment(self, monkeypatch):
        monkeypatch.setenv("SHEETLINK_TEST_TOKEN", "s3cret")
        resolver = SheetResolver.from_config(self._config())
        assert resolver.source._headers()["Authorization"] == "Bearer s3cret"

    def test_default_source(self):
        resolver = SheetResolver()
        assert isinstance(resolver.source, GitHubSheetSource)
        assert resolver.source.repo_id == "xivapi/ffxiv-datamining"
        assert resolver.linkable_types is None

    def test_context_manager(self):
        source = MemorySheetSource({"Item": "key,0\n#,Name\n,\n0,x\n"})

        async def _use():
            async with SheetResolver(source=source) as sr:
                row = await sr.get_sheet_item("Item", 0)
            return row, len(sr.cache)

        row, cached = asyncio.run(_use())
        assert row == {"ID": 0.0, "Name": "x"}
        assert cached == 0


class TestScalarColumnTypes:
    def test_scalar_types_stay_raw_values(self):
        source = MemorySheetSource({
            "Item": (
                "key,0,1,2,3\n"
                "#,Name,Level,Flags,ItemUICategory\n"
                "int32,str,uint8,bit&01,ItemUICategory\n"
                "0,Potion,50,True,1\n"
            ),
            "ItemUICategory": "key,0\n#,Name\nint32,str\n0,Misc\n1,Medicine\n",
        })
        rows = asyncio.run(SheetResolver(source=source).get_sheet("Item"))
        assert rows == [{
            "ID": 0.0,
            "Name": "Potion",
            "Level": 50.0,
            "Flags": True,
            "ItemUICategory": {"ID": 1.0, "Name": "Medicine"},
        }]
        assert source.fetch_counts == {"Item": 1, "ItemUICategory": 1}
