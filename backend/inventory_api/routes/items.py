from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from inventory_api.schemas import ItemCreate, ok
from inventory_api.storage import DocumentStore

router = APIRouter(prefix="/api/items", tags=["items"])


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


@router.get("")
def list_items(request: Request, store: DocumentStore = Depends(get_store)):
    return ok(store.list(refresh=request.app.state.refresh_on_read))


@router.post("")
def create_item(payload: ItemCreate, store: DocumentStore = Depends(get_store)):
    return ok(store.append(payload.model_dump()))


@router.get("/{backend_id}")
def get_item(
    backend_id: str,
    request: Request,
    store: DocumentStore = Depends(get_store),
):
    return ok(store.get(backend_id, refresh=request.app.state.refresh_on_read))


@router.put("/{backend_id}")
def update_item(
    backend_id: str,
    patch: dict[str, Any] = Body(...),
    store: DocumentStore = Depends(get_store),
):
    store.merge_update(backend_id, patch)
    return ok(None)


@router.delete("/{backend_id}")
def delete_item(backend_id: str, store: DocumentStore = Depends(get_store)):
    store.remove(backend_id)
    return {"isOk": True}
