# productsync/client.py
import json
import logging
from contextlib import AsyncExitStack
from typing import Optional, Dict, Any, List

import httpx
import requests

from .config import DEFAULT_BASE_URL
from .errors import StoreError, TransportError, SubscriptionError, error_from_response
from .models import Session
from .store import DocumentStore, Subscription

logger = logging.getLogger(__name__)


def _detail(response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return response.text or None
    if isinstance(body, dict) and "detail" in body:
        detail = body["detail"]
        return detail if isinstance(detail, str) else json.dumps(detail)
    return None


def _check(response) -> Any:
    if response.status_code >= 400:
        raise error_from_response(response.status_code, _detail(response))
    return response.json()


class StoreClient(DocumentStore):
    """HTTP client for the docstore service.

    Identity calls are blocking and go through a ``requests`` session;
    document calls are async and go through ``httpx``.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_key: Optional[str] = None,
        timeout: float = 10,
        session=None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self._transport = transport
        self.api_key: Optional[str] = None
        self.set_api_key(api_key)

    def set_api_key(self, api_key: Optional[str]) -> None:
        self.api_key = api_key
        if api_key:
            self.session.headers.update({"Authorization": f"Bearer {api_key}"})
        else:
            self.session.headers.pop("Authorization", None)

    # -----------------------
    # Identity (blocking)
    # -----------------------
    def _request_sync(self, method: str, path: str, **kwargs) -> Any:
        try:
            r = self.session.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise TransportError(str(e) or e.__class__.__name__) from e
        return _check(r)

    def register(self, email: str, password: str) -> Session:
        body = self._request_sync("POST", "/auth/register", json={"email": email, "password": password})
        return Session.model_validate(body)

    def login(self, email: str, password: str) -> Session:
        body = self._request_sync("POST", "/auth/login", json={"email": email, "password": password})
        return Session.model_validate(body)

    def reset(self):
        return self._request_sync("POST", "/reset")

    # -----------------------
    # Documents (async)
    # -----------------------
    def _async_client(self, timeout=None) -> httpx.AsyncClient:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout if timeout is not None else self.timeout,
            transport=self._transport,
        )

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        async with self._async_client() as client:
            try:
                r = await client.request(method, path, **kwargs)
            except httpx.HTTPError as e:
                raise TransportError(str(e) or e.__class__.__name__) from e
        return _check(r)

    async def add_document(self, collection: str, data: Dict[str, Any]) -> str:
        body = await self._request("POST", f"/collections/{collection}/documents", json=data)
        return body["id"]

    async def set_document(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        await self._request("PUT", f"/collections/{collection}/documents/{doc_id}", json=data)

    async def delete_document(self, collection: str, doc_id: str) -> None:
        await self._request("DELETE", f"/collections/{collection}/documents/{doc_id}")

    async def get_document(self, collection: str, doc_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/collections/{collection}/documents/{doc_id}")

    async def query(self, collection: str, field: str, value: Any) -> List[Dict[str, Any]]:
        return await self._request(
            "GET", f"/collections/{collection}/documents", params={"field": field, "value": value}
        )

    async def listen(self, collection: str, field: str, value: Any) -> "HttpSubscription":
        # no read timeout: the stream stays quiet until something changes
        client = self._async_client(timeout=httpx.Timeout(self.timeout, read=None))
        subscription = HttpSubscription(client, f"/collections/{collection}/listen", {"field": field, "value": value})
        await subscription.open()
        return subscription


class HttpSubscription(Subscription):
    """A listen stream read line by line as NDJSON snapshots."""

    def __init__(self, client: httpx.AsyncClient, path: str, params: Dict[str, Any]):
        super().__init__()
        self._client = client
        self._path = path
        self._params = params
        self._stack = AsyncExitStack()
        self._response: Optional[httpx.Response] = None

    async def open(self) -> None:
        try:
            await self._stack.enter_async_context(self._client)
            self._response = await self._stack.enter_async_context(
                self._client.stream("GET", self._path, params=self._params)
            )
        except httpx.HTTPError as e:
            await self.close()
            raise TransportError(str(e) or e.__class__.__name__) from e

        if self._response.status_code != 200:
            await self._response.aread()
            error = error_from_response(self._response.status_code, _detail(self._response))
            await self.close()
            raise error
        logger.debug("listening on %s %s", self._path, self._params)

    async def _release(self) -> None:
        logger.debug("releasing listener on %s", self._path)
        await self._stack.aclose()

    async def __aiter__(self):
        if self._response is None:
            raise StoreError("subscription is not open")
        try:
            async for line in self._response.aiter_lines():
                if not line.strip():
                    continue
                message = _parse_line(line)
                if message.get("type") == "error":
                    raise SubscriptionError(message.get("message") or "The listen stream failed.")
                yield message.get("documents") or []
        except httpx.HTTPError as e:
            raise TransportError(str(e) or e.__class__.__name__) from e
        raise SubscriptionError("The listen stream was closed by the server.")


def _parse_line(line: str) -> Dict[str, Any]:
    try:
        message = json.loads(line)
    except ValueError as e:
        raise SubscriptionError(f"Unreadable listen message: {line[:80]}") from e
    if not isinstance(message, dict):
        raise SubscriptionError(f"Unexpected listen message: {line[:80]}")
    return message
