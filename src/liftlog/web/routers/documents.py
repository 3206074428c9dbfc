"""Document routes: the remote store's HTTP contract."""

from fastapi import APIRouter, Body, HTTPException, Query, Request

from ...errors import RemoteReadFailed, RemoteWriteFailed
from ...remote.sqlite import SqliteRemoteStore

router = APIRouter(prefix="/collections", tags=["documents"])


def get_store(request: Request) -> SqliteRemoteStore:
    """Get the document store from app state."""
    return request.app.state.store


@router.get("/{path:path}/docs")
async def list_documents(
    request: Request,
    path: str,
    order_by: str | None = Query(default=None, pattern=r"^[A-Za-z_][A-Za-z0-9_]*$"),
    limit: int | None = Query(default=None, ge=0),
):
    """List a collection, optionally the ``limit`` most recent by ``order_by``."""
    store = get_store(request)
    try:
        if order_by is not None:
            docs = await store.read_recent(path, order_by, limit if limit is not None else 50)
        else:
            docs = await store.read_all(path)
            if limit is not None:
                docs = docs[:limit]
    except RemoteReadFailed as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    return {"docs": docs}


@router.put("/{path:path}/docs/{doc_id}")
async def put_document(request: Request, path: str, doc_id: str, data: dict = Body(...)):
    """Create or overwrite a document under a client-chosen id."""
    store = get_store(request)
    try:
        await store.upsert(path, doc_id, data)
    except RemoteWriteFailed as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    return {"id": doc_id}


@router.post("/{path:path}/docs", status_code=201)
async def add_document(request: Request, path: str, data: dict = Body(...)):
    """Create a document with a server-generated id."""
    store = get_store(request)
    try:
        doc_id = await store.add(path, data)
    except RemoteWriteFailed as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    return {"id": doc_id}


@router.delete("/{path:path}/docs/{doc_id}")
async def delete_document(request: Request, path: str, doc_id: str):
    """Delete a document; deleting a missing document succeeds."""
    store = get_store(request)
    try:
        existed = await store.delete(path, doc_id)
    except RemoteWriteFailed as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    return {"deleted": existed}
