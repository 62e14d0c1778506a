"""Abstract document store, the collaborator the product repository talks to.

StoreClient is the HTTP implementation; tests use an in-memory fake.
"""

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, List


class Subscription(ABC):
    """A live query handle: an async iterable of full result sets.

    ``close()`` releases the underlying listener exactly once, no matter
    how many times or from how many exit paths it is called.
    """

    def __init__(self) -> None:
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._release()

    @abstractmethod
    async def _release(self) -> None:
        """Drop the server-side listener."""

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[List[Dict[str, Any]]]:
        ...


class DocumentStore(ABC):

    @abstractmethod
    async def add_document(self, collection: str, data: Dict[str, Any]) -> str:
        """Store a new document and return its server-assigned id."""

    @abstractmethod
    async def set_document(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Overwrite the document with this id."""

    @abstractmethod
    async def delete_document(self, collection: str, doc_id: str) -> None:
        """Remove the document with this id."""

    @abstractmethod
    async def listen(self, collection: str, field: str, value: Any) -> Subscription:
        """Open a live equality query on ``field == value``."""
