# tests/test_docstore.py
from fastapi.testclient import TestClient

from docstore.main import app

client = TestClient(app)


def reset():
    client.post("/reset")


def signup(email="alice@example.com", password="secret1"):
    r = client.post("/auth/register", json={"email": email, "password": password})
    assert r.status_code == 201
    body = r.json()
    return body["uid"], {"Authorization": f"Bearer {body['token']}"}


def product(uid, **fields):
    doc = {"userId": uid, "nombre": "Pen", "precio": 1.5, "stock": 10, "categoria": "Hogar"}
    doc.update(fields)
    return doc


def test_register_then_login():
    reset()
    uid, _ = signup()
    r = client.post("/auth/login", json={"email": "Alice@Example.com", "password": "secret1"})
    assert r.status_code == 200
    assert r.json()["uid"] == uid


def test_register_rejects_duplicates_and_weak_passwords():
    reset()
    signup()
    r = client.post("/auth/register", json={"email": "alice@example.com", "password": "secret1"})
    assert r.status_code == 409
    r = client.post("/auth/register", json={"email": "bob@example.com", "password": "123"})
    assert r.status_code == 400


def test_login_with_bad_password():
    reset()
    signup()
    r = client.post("/auth/login", json={"email": "alice@example.com", "password": "nope!!"})
    assert r.status_code == 401


def test_documents_require_a_token():
    reset()
    uid, _ = signup()
    r = client.post("/collections/products/documents", json=product(uid))
    assert r.status_code == 401
    r = client.post("/collections/products/documents", json=product(uid), headers={"Authorization": "Bearer bogus"})
    assert r.status_code == 401


def test_query_only_returns_the_callers_documents():
    reset()
    alice, alice_auth = signup()
    bob, bob_auth = signup("bob@example.com")
    client.post("/collections/products/documents", json=product(alice), headers=alice_auth)
    client.post("/collections/products/documents", json=product(bob, nombre="Cup"), headers=bob_auth)

    r = client.get("/collections/products/documents", params={"field": "userId", "value": alice}, headers=alice_auth)
    assert r.status_code == 200
    docs = r.json()
    assert [d["nombre"] for d in docs] == ["Pen"]
    assert all(d["userId"] == alice for d in docs)


def test_query_for_someone_else_is_denied():
    reset()
    _, alice_auth = signup()
    bob, _ = signup("bob@example.com")
    r = client.get("/collections/products/documents", params={"field": "userId", "value": bob}, headers=alice_auth)
    assert r.status_code == 403
    assert r.json()["detail"] == "Missing or insufficient permissions."


def test_writes_must_belong_to_the_caller():
    reset()
    alice, alice_auth = signup()
    bob, bob_auth = signup("bob@example.com")
    r = client.post("/collections/products/documents", json=product(bob), headers=alice_auth)
    assert r.status_code == 403

    doc_id = client.post("/collections/products/documents", json=product(bob), headers=bob_auth).json()["id"]
    r = client.put(f"/collections/products/documents/{doc_id}", json=product(alice), headers=alice_auth)
    assert r.status_code == 403
    r = client.delete(f"/collections/products/documents/{doc_id}", headers=alice_auth)
    assert r.status_code == 403


def test_set_overwrites_without_merging():
    reset()
    uid, auth = signup()
    doc_id = client.post(
        "/collections/products/documents", json=product(uid, legacy=True), headers=auth
    ).json()["id"]

    r = client.put(f"/collections/products/documents/{doc_id}", json=product(uid, stock=0), headers=auth)
    assert r.status_code == 200

    doc = client.get(f"/collections/products/documents/{doc_id}", headers=auth).json()
    assert doc["stock"] == 0
    assert doc["id"] == doc_id
    assert "legacy" not in doc


def test_delete_is_idempotent():
    reset()
    uid, auth = signup()
    doc_id = client.post("/collections/products/documents", json=product(uid), headers=auth).json()["id"]

    assert client.delete(f"/collections/products/documents/{doc_id}", headers=auth).json()["deleted"] is True
    assert client.delete(f"/collections/products/documents/{doc_id}", headers=auth).json()["deleted"] is False
    assert client.get(f"/collections/products/documents/{doc_id}", headers=auth).status_code == 404


def test_listen_for_someone_else_is_denied():
    reset()
    _, alice_auth = signup()
    bob, _ = signup("bob@example.com")
    r = client.get("/collections/products/listen", params={"field": "userId", "value": bob}, headers=alice_auth)
    assert r.status_code == 403
