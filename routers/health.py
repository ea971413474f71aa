from fastapi import APIRouter, Depends

from core.store import DocumentStore
from dependencies.auth import get_store

router = APIRouter(
    prefix="/health",
    tags=["Health"],
)


@router.get("", summary="Store reachability")
def health_check(store: DocumentStore = Depends(get_store)):
    store_status = store.ping()
    return {
        "status": "ok" if store_status.get("status") == "ok" else "degraded",
        "store": store_status,
    }
