import json
import logging
import secrets
import uuid
from typing import Optional, Dict, Any, List, AsyncIterator

from fastapi import HTTPException

# Import from other modules
from .core import (
    CredentialsIn, SessionOut, MIN_PASSWORD_LENGTH, OWNER_FIELD,
    PERMISSION_DENIED, _hash_password, _make_user_dict, _make_document, _matches
)
from .database import (
    COLLECTIONS, USERS, TOKENS, LISTENERS, STORE_RESET, _LOCKS,
    _get_lock, _collection, _add_listener, _remove_listener, _notify
)

# This file contains the core logic for all API endpoints.

logger = logging.getLogger(__name__)


# Identity
async def register_logic(payload: CredentialsIn) -> SessionOut:
    email = payload.email.strip().lower()
    if not email:
        raise HTTPException(status_code=400, detail="The email address is badly formatted.")
    if len(payload.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"The given password is invalid. Password should be at least {MIN_PASSWORD_LENGTH} characters",
        )

    lock = _get_lock(f"user:{email}")
    await lock.acquire()
    try:
        if email in USERS:
            raise HTTPException(status_code=409, detail="The email address is already in use by another account.")
        user = _make_user_dict(email, payload.password)
        USERS[email] = user
    finally:
        lock.release()

    logger.info("registered user %s", user["uid"])
    return _issue_session(user)


async def login_logic(payload: CredentialsIn) -> SessionOut:
    email = payload.email.strip().lower()
    user = USERS.get(email)
    if not user:
        raise HTTPException(status_code=401, detail="There is no user record corresponding to this identifier.")
    expected = _hash_password(payload.password, user["salt"])["password_hash"]
    if not secrets.compare_digest(expected, user["password_hash"]):
        raise HTTPException(status_code=401, detail="The password is invalid or the user does not have a password.")
    return _issue_session(user)


def _issue_session(user: Dict[str, Any]) -> SessionOut:
    token = uuid.uuid4().hex
    TOKENS[token] = user["uid"]
    return SessionOut(uid=user["uid"], email=user["email"], token=token)


def resolve_principal(authorization: Optional[str]) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="The request is missing a valid credential.")
    uid = TOKENS.get(authorization[len("Bearer "):])
    if uid is None:
        raise HTTPException(status_code=401, detail="The user's credential is no longer valid.")
    return uid


# Security rules
def _check_owner_filter(uid: str, field: str, value: Any) -> None:
    if field != OWNER_FIELD or value != uid:
        raise HTTPException(status_code=403, detail=PERMISSION_DENIED)


def _check_write(uid: str, body: Dict[str, Any], existing: Optional[Dict[str, Any]]) -> None:
    if body.get(OWNER_FIELD) != uid:
        raise HTTPException(status_code=403, detail=PERMISSION_DENIED)
    if existing is not None and existing.get(OWNER_FIELD) != uid:
        raise HTTPException(status_code=403, detail=PERMISSION_DENIED)


# Documents
async def add_document_logic(collection: str, body: Dict[str, Any], uid: str):
    _check_write(uid, body, None)
    doc_id = uuid.uuid4().hex
    doc = _make_document(doc_id, body)
    _collection(collection)[doc_id] = doc
    _notify(collection, None, doc)
    return {"id": doc_id}


async def set_document_logic(collection: str, doc_id: str, body: Dict[str, Any], uid: str):
    lock = _get_lock(f"doc:{collection}:{doc_id}")
    await lock.acquire()
    try:
        docs = _collection(collection)
        before = docs.get(doc_id)
        _check_write(uid, body, before)
        # overwrite, no merge with the previous fields
        after = _make_document(doc_id, body)
        docs[doc_id] = after
    finally:
        lock.release()
    _notify(collection, before, after)
    return {"id": doc_id}


async def delete_document_logic(collection: str, doc_id: str, uid: str):
    lock = _get_lock(f"doc:{collection}:{doc_id}")
    await lock.acquire()
    try:
        docs = _collection(collection)
        before = docs.get(doc_id)
        if before is None:
            return {"id": doc_id, "deleted": False}
        if before.get(OWNER_FIELD) != uid:
            raise HTTPException(status_code=403, detail=PERMISSION_DENIED)
        del docs[doc_id]
    finally:
        lock.release()
    _notify(collection, before, None)
    return {"id": doc_id, "deleted": True}


async def get_document_logic(collection: str, doc_id: str, uid: str):
    doc = COLLECTIONS.get(collection, {}).get(doc_id)
    if not doc:
        raise HTTPException(status_code=404, detail="document not found")
    if doc.get(OWNER_FIELD) != uid:
        raise HTTPException(status_code=403, detail=PERMISSION_DENIED)
    return doc


def _run_query(collection: str, field: str, value: Any) -> List[Dict[str, Any]]:
    return [d for d in COLLECTIONS.get(collection, {}).values() if _matches(d, field, value)]


async def query_logic(collection: str, field: str, value: str, uid: str):
    _check_owner_filter(uid, field, value)
    return _run_query(collection, field, value)


# Realtime listen
def _snapshot_line(collection: str, field: str, value: Any) -> str:
    return json.dumps({"type": "snapshot", "documents": _run_query(collection, field, value)}) + "\n"


async def listen_logic(collection: str, field: str, value: str, uid: str) -> AsyncIterator[str]:
    """Stream the full matching set, once now and again after each relevant change.

    Permission checks run before the first line so a denied listen
    fails with a plain HTTP error instead of a broken stream.
    """
    _check_owner_filter(uid, field, value)
    return _listen_stream(collection, field, value)


async def _listen_stream(collection: str, field: str, value: Any) -> AsyncIterator[str]:
    queue = _add_listener(collection)
    try:
        yield _snapshot_line(collection, field, value)
        while True:
            change = await queue.get()
            if change is STORE_RESET:
                yield json.dumps({
                    "type": "error",
                    "code": "cancelled",
                    "message": "The listener was cancelled because the store was reset.",
                }) + "\n"
                return
            before, after = change
            if _matches(before, field, value) or _matches(after, field, value):
                yield _snapshot_line(collection, field, value)
    finally:
        _remove_listener(collection, queue)


# Utility: reset (for tests/demo)
async def reset_all_logic():
    for listeners in list(LISTENERS.values()):
        for queue in list(listeners):
            queue.put_nowait(STORE_RESET)
    COLLECTIONS.clear()
    USERS.clear()
    TOKENS.clear()
    LISTENERS.clear()
    _LOCKS.clear()
    return {"status": "reset"}
