# docstore/main.py
import os
from typing import Optional, Dict, Any

from fastapi import FastAPI, Header, Query, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from .core import CredentialsIn, SessionOut
from .store import (
    register_logic, login_logic, resolve_principal,
    add_document_logic, set_document_logic, delete_document_logic,
    get_document_logic, query_logic, listen_logic, reset_all_logic
)

app = FastAPI(title="docstore (in-memory realtime document store)")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def current_uid(authorization: Optional[str] = Header(None)) -> str:
    return resolve_principal(authorization)


# ---------------------------
# Identity endpoints
# ---------------------------
@app.post("/auth/register", response_model=SessionOut, status_code=201)
async def register(payload: CredentialsIn):
    return await register_logic(payload)


@app.post("/auth/login", response_model=SessionOut)
async def login(payload: CredentialsIn):
    return await login_logic(payload)


# ---------------------------
# Document endpoints
# ---------------------------
@app.post("/collections/{collection}/documents", status_code=201)
async def add_document(collection: str, body: Dict[str, Any], uid: str = Depends(current_uid)):
    return await add_document_logic(collection, body, uid)


@app.put("/collections/{collection}/documents/{doc_id}")
async def set_document(collection: str, doc_id: str, body: Dict[str, Any], uid: str = Depends(current_uid)):
    return await set_document_logic(collection, doc_id, body, uid)


@app.delete("/collections/{collection}/documents/{doc_id}")
async def delete_document(collection: str, doc_id: str, uid: str = Depends(current_uid)):
    return await delete_document_logic(collection, doc_id, uid)


@app.get("/collections/{collection}/documents/{doc_id}")
async def get_document(collection: str, doc_id: str, uid: str = Depends(current_uid)):
    return await get_document_logic(collection, doc_id, uid)


@app.get("/collections/{collection}/documents")
async def query_documents(
    collection: str,
    field: str = Query(..., min_length=1),
    value: str = Query(...),
    uid: str = Depends(current_uid),
):
    return await query_logic(collection, field, value, uid)


@app.get("/collections/{collection}/listen")
async def listen(
    collection: str,
    field: str = Query(..., min_length=1),
    value: str = Query(...),
    uid: str = Depends(current_uid),
):
    stream = await listen_logic(collection, field, value, uid)
    return StreamingResponse(stream, media_type="application/x-ndjson")


# ---------------------------
# Utility: reset (for tests/demo)
# ---------------------------
@app.post("/reset")
async def reset_all():
    return await reset_all_logic()


def run():
    import uvicorn
    uvicorn.run(
        "docstore.main:app",
        host=os.getenv("DOCSTORE_HOST", "0.0.0.0"),
        port=int(os.getenv("DOCSTORE_PORT", "8085")),
    )


if __name__ == "__main__":
    run()
