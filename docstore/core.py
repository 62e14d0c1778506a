import hashlib
import secrets
import uuid
from typing import Optional, Dict, Any

from pydantic import BaseModel

MIN_PASSWORD_LENGTH = 6
OWNER_FIELD = "userId"
PERMISSION_DENIED = "Missing or insufficient permissions."


class CredentialsIn(BaseModel):
    email: str
    password: str


class SessionOut(BaseModel):
    uid: str
    email: str
    token: str


def _hash_password(password: str, salt: Optional[str] = None) -> Dict[str, str]:
    salt = salt if salt else secrets.token_hex(8)
    digest = hashlib.sha256(f"{salt}:{password}".encode("utf-8")).hexdigest()
    return {"salt": salt, "password_hash": digest}


def _make_user_dict(email: str, password: str) -> Dict[str, Any]:
    return {
        "uid": uuid.uuid4().hex,
        "email": email,
        **_hash_password(password),
    }


def _make_document(doc_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
    # the id lives beside the stored fields, never inside them
    data = {k: v for k, v in body.items() if k != "id"}
    return {"id": doc_id, **data}


def _matches(doc: Optional[Dict[str, Any]], field: str, value: Any) -> bool:
    return doc is not None and doc.get(field) == value
