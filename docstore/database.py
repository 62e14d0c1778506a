import asyncio
from typing import Dict, Any, Set, Optional

# This file holds all the in-memory data stores, change listeners and locks.

COLLECTIONS: Dict[str, Dict[str, Dict[str, Any]]] = {}
USERS: Dict[str, Dict[str, Any]] = {}
TOKENS: Dict[str, str] = {}
LISTENERS: Dict[str, Set[asyncio.Queue]] = {}
_LOCKS: Dict[str, asyncio.Lock] = {}

# Sentinel pushed to every listener when the store is reset
STORE_RESET = object()


def _get_lock(key: str) -> asyncio.Lock:
    if key not in _LOCKS:
        _LOCKS[key] = asyncio.Lock()
    return _LOCKS[key]


def _collection(name: str) -> Dict[str, Dict[str, Any]]:
    return COLLECTIONS.setdefault(name, {})


def _add_listener(collection: str) -> asyncio.Queue:
    queue: asyncio.Queue = asyncio.Queue()
    LISTENERS.setdefault(collection, set()).add(queue)
    return queue


def _remove_listener(collection: str, queue: asyncio.Queue) -> None:
    listeners = LISTENERS.get(collection)
    if listeners is None:
        return
    listeners.discard(queue)
    if not listeners:
        LISTENERS.pop(collection, None)


def _notify(collection: str, before: Optional[Dict[str, Any]], after: Optional[Dict[str, Any]]) -> None:
    # each listener gets the before/after image and decides if it cares
    for queue in list(LISTENERS.get(collection, ())):
        queue.put_nowait((before, after))
