"""Shared sheet fixtures for the sheetlink test suite."""

from __future__ import annotations

import asyncio

import pytest

from sheetlink.logging import set_log_dir
from sheetlink.resolver import SheetResolver
from sheetlink.source import MemorySheetSource

# Item links to ItemUICategory, which links to ItemSearchCategory.
# Item 4 points past the end of ItemUICategory.
ITEM_CSV = """\
key,0,1,2,3,4,5
#,Name,Level,{Singular},ItemUICategory,Materia[0],Materia[1]
,,,,ItemUICategory,,
0,,0,,0,,
1,Potion,50,potion,1,1,2
2,Hi-Potion,60,hi-potion,1,3,
3,Ether,45,ether,2,0,0
4,Lotion,10,lotion,9,,
"""

# Last column has an empty name and must never appear in rows.
ITEM_UI_CATEGORY_CSV = """\
key,0,1,2,3
#,Name,Icon,ItemSearchCategory,
,,,ItemSearchCategory,
0,,0,0,junk
1,Medicine,20,1,junk
2,Ether Stuff,21,1,junk
"""

ITEM_SEARCH_CATEGORY_CSV = """\
key,0,1
#,Name,Category
,,
0,,0
1,Medicines,5
"""

# Self-referencing sheet: only the depth bound stops recursion.
CLASS_JOB_CSV = """\
key,0,1
#,Name,Parent
,,ClassJob
0,adventurer,0
1,gladiator,0
2,paladin,1
"""

SHEETS = {
    "Item": ITEM_CSV,
    "ItemUICategory": ITEM_UI_CATEGORY_CSV,
    "ItemSearchCategory": ITEM_SEARCH_CATEGORY_CSV,
    "ClassJob": CLASS_JOB_CSV,
}


class SlowSheetSource(MemorySheetSource):
    """Memory source that yields to the event loop before answering."""

    async def fetch(self, sheet_name: str) -> str:
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        return await super().fetch(sheet_name)


class FakeClock:
    """Manually advanced clock for cache expiry tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _reset_event_sink():
    yield
    set_log_dir(None)


@pytest.fixture
def source() -> MemorySheetSource:
    return MemorySheetSource(SHEETS)


@pytest.fixture
def resolver(source: MemorySheetSource) -> SheetResolver:
    return SheetResolver(source=source)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sheets() -> dict[str, str]:
    return dict(SHEETS)


@pytest.fixture
def slow_source() -> SlowSheetSource:
    return SlowSheetSource(SHEETS)
