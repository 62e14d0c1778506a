"""In-memory fake document store for testing.

Implements the same DocumentStore interface as StoreClient but keeps
everything in a dict and pushes snapshots through asyncio queues.
No HTTP, no server.
"""

import asyncio
from typing import Any, Dict, List, Optional

from productsync.store import DocumentStore, Subscription


class FakeSubscription(Subscription):

    def __init__(self, collection: str, field: str, value: Any):
        super().__init__()
        self.collection = collection
        self.field = field
        self.value = value
        self.release_count = 0
        self._queue: asyncio.Queue = asyncio.Queue()

    def push(self, documents: List[Dict[str, Any]]) -> None:
        self._queue.put_nowait(("snapshot", documents))

    def fail(self, error: Exception) -> None:
        self._queue.put_nowait(("error", error))

    async def _release(self) -> None:
        self.release_count += 1

    async def __aiter__(self):
        while True:
            kind, payload = await self._queue.get()
            if kind == "error":
                raise payload
            yield payload


class FakeDocumentStore(DocumentStore):

    def __init__(self) -> None:
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.subscriptions: List[FakeSubscription] = []
        self.fail_with: Optional[Exception] = None
        self.listen_error: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None
        self._next_id = 1

    def seed(self, collection: str, doc: Dict[str, Any]) -> None:
        self.collections.setdefault(collection, {})[doc["id"]] = dict(doc)

    def query(self, collection: str, field: str, value: Any) -> List[Dict[str, Any]]:
        return [dict(d) for d in self.collections.get(collection, {}).values() if d.get(field) == value]

    async def _round_trip(self) -> None:
        if self.gate is not None:
            await self.gate.wait()
        await asyncio.sleep(0)
        if self.fail_with is not None:
            raise self.fail_with

    def _broadcast(self, collection: str) -> None:
        for sub in self.subscriptions:
            if sub.collection == collection and not sub.closed:
                sub.push(self.query(collection, sub.field, sub.value))

    async def add_document(self, collection: str, data: Dict[str, Any]) -> str:
        await self._round_trip()
        doc_id = f"doc{self._next_id}"
        self._next_id += 1
        self.collections.setdefault(collection, {})[doc_id] = {**data, "id": doc_id}
        self._broadcast(collection)
        return doc_id

    async def set_document(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        await self._round_trip()
        self.collections.setdefault(collection, {})[doc_id] = {**data, "id": doc_id}
        self._broadcast(collection)

    async def delete_document(self, collection: str, doc_id: str) -> None:
        await self._round_trip()
        self.collections.get(collection, {}).pop(doc_id, None)
        self._broadcast(collection)

    async def listen(self, collection: str, field: str, value: Any) -> FakeSubscription:
        await asyncio.sleep(0)
        if self.listen_error is not None:
            raise self.listen_error
        sub = FakeSubscription(collection, field, value)
        self.subscriptions.append(sub)
        sub.push(self.query(collection, field, value))
        return sub


def pen_document(doc_id: str = "a", user_id: str = "u1") -> Dict[str, Any]:
    return {"id": doc_id, "userId": user_id, "nombre": "Pen", "precio": 1.5, "stock": 10, "categoria": "Hogar"}
