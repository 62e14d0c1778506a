# tests/test_client.py
import asyncio
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from docstore.main import app
from productsync.client import StoreClient
from productsync.errors import (
    AuthenticationError, ConflictError, InvalidArgumentError, NotFoundError,
    PermissionDeniedError, SubscriptionError, TransportError, error_from_response,
)
from productsync.models import Product
from productsync.repository import ProductRepository


def make_client(api_key=None):
    return StoreClient(
        base_url="http://testserver",
        api_key=api_key,
        session=TestClient(app),
        transport=httpx.ASGITransport(app=app),
    )


def signed_in(email="alice@example.com"):
    c = make_client()
    session = c.register(email, "secret1")
    c.set_api_key(session.token)
    return c, session


def test_identity_errors_are_typed():
    make_client().reset()
    c, _ = signed_in()
    with pytest.raises(ConflictError):
        c.register("alice@example.com", "secret1")
    with pytest.raises(AuthenticationError):
        c.login("alice@example.com", "wrong-password")
    with pytest.raises(InvalidArgumentError):
        c.register("short@example.com", "123")


def test_document_round_trip():
    make_client().reset()
    c, session = signed_in()
    pen = Product(user_id=session.uid, name="Pen", price=1.5, stock=10, category="Hogar")

    async def scenario():
        doc_id = await c.add_document("products", pen.to_document())
        fetched = await c.get_document("products", doc_id)
        await c.set_document("products", doc_id, pen.model_copy(update={"stock": 4}).to_document())
        listed = await c.query("products", "userId", session.uid)
        await c.delete_document("products", doc_id)
        with pytest.raises(NotFoundError):
            await c.get_document("products", doc_id)
        return doc_id, fetched, listed

    doc_id, fetched, listed = asyncio.run(scenario())
    assert fetched == {"id": doc_id, **pen.to_document()}
    assert [Product.from_document(d).stock for d in listed] == [4]


def test_foreign_writes_are_permission_errors():
    make_client().reset()
    alice, _ = signed_in()
    _, bob = signed_in("bob@example.com")
    stolen = Product(user_id=bob.uid, name="Pen", price=1, stock=1)

    with pytest.raises(PermissionDeniedError):
        asyncio.run(alice.add_document("products", stolen.to_document()))


def test_repository_mutations_against_the_service():
    make_client().reset()
    c, session = signed_in()
    repo = ProductRepository(c)
    pen = Product(user_id=session.uid, name="Pen", price=1.5, stock=10)

    created = asyncio.run(repo.create_product(pen))
    assert created.is_success
    denied = asyncio.run(repo.update_product(created.value, pen.model_copy(update={"user_id": "someone-else"})))
    assert isinstance(denied.error, PermissionDeniedError)
    assert asyncio.run(repo.delete_product(created.value)).is_success


def test_error_mapping_falls_back_to_store_error():
    err = error_from_response(503, None)
    assert type(err).__name__ == "StoreError"
    assert str(err) == "HTTP 503"
    assert err.status_code == 503


def streaming_client(handler):
    return StoreClient(base_url="http://testserver", api_key="t", transport=httpx.MockTransport(handler))


def ndjson(*messages):
    return "".join(json.dumps(m) + "\n" for m in messages).encode()


def test_listen_yields_snapshots_then_fails_when_the_stream_ends():
    seen_requests = []

    def handler(request):
        seen_requests.append(request)
        return httpx.Response(200, content=ndjson(
            {"type": "snapshot", "documents": [{"id": "a", "userId": "u1", "nombre": "Pen", "precio": 1.5, "stock": 10}]},
            {"type": "snapshot", "documents": []},
        ))

    async def scenario():
        sub = await streaming_client(handler).listen("products", "userId", "u1")
        received = []
        with pytest.raises(SubscriptionError):
            async for documents in sub:
                received.append(documents)
        await sub.close()
        await sub.close()
        return sub, received

    sub, received = asyncio.run(scenario())
    assert [len(r) for r in received] == [1, 0]
    assert sub.closed
    request = seen_requests[0]
    assert request.url.path == "/collections/products/listen"
    assert request.url.params["value"] == "u1"
    assert request.headers["Authorization"] == "Bearer t"


def test_listen_error_line_is_terminal():
    def handler(request):
        return httpx.Response(200, content=ndjson(
            {"type": "snapshot", "documents": []},
            {"type": "error", "code": "cancelled", "message": "The listener was cancelled because the store was reset."},
            {"type": "snapshot", "documents": []},
        ))

    async def scenario():
        repo = ProductRepository(streaming_client(handler))
        received = []
        with pytest.raises(SubscriptionError) as exc:
            async for products in repo.products_realtime("u1"):
                received.append(products)
        return received, str(exc.value)

    received, message = asyncio.run(scenario())
    assert received == [[]]
    assert message == "The listener was cancelled because the store was reset."


def test_listen_denied_before_streaming():
    def handler(request):
        return httpx.Response(403, json={"detail": "Missing or insufficient permissions."})

    with pytest.raises(PermissionDeniedError):
        asyncio.run(streaming_client(handler).listen("products", "userId", "someone-else"))


def test_listen_transport_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    with pytest.raises(TransportError):
        asyncio.run(streaming_client(handler).listen("products", "userId", "u1"))
