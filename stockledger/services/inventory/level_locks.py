"""
In-process mutual exclusion per (location_id, item_variant_id).

Row locks (``SELECT ... FOR UPDATE``) serialize writers across processes on
PostgreSQL; SQLite has no row locks at all. This registry serializes writers
inside one process regardless of backend, so the insufficiency guard always
runs against the latest committed balance. The ``version`` column on
``InventoryLevel`` catches anything that still slips through.

Entries are reference counted and dropped when the last holder leaves, so
the registry never outlives the event loop that created a lock.
"""

import asyncio
from contextlib import AsyncExitStack, asynccontextmanager

LevelKey = tuple[int, int]

_locks: dict[LevelKey, asyncio.Lock] = {}
_holders: dict[LevelKey, int] = {}


@asynccontextmanager
async def _hold(key: LevelKey):
    lock = _locks.get(key)
    if lock is None:
        lock = _locks[key] = asyncio.Lock()
    _holders[key] = _holders.get(key, 0) + 1

    try:
        async with lock:
            yield
    finally:
        _holders[key] -= 1
        if _holders[key] == 0:
            del _holders[key]
            del _locks[key]


@asynccontextmanager
async def level_locks(*keys: LevelKey):
    """Hold the locks for every key; always acquired in sorted order."""
    async with AsyncExitStack() as stack:
        for key in sorted(set(keys)):
            await stack.enter_async_context(_hold(key))
        yield


def held_keys() -> list[LevelKey]:
    return list(_locks)
