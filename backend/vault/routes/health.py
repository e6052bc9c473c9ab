"""Health probe."""
from fastapi import APIRouter, Depends

from vault.dependencies import get_store
from vault.services.metadata_store import MetadataStore

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health_check(store: MetadataStore = Depends(get_store)):
    """Verify API and database connectivity."""
    if await store.ping():
        return {"status": "ok", "database": "connected"}
    return {"status": "error", "database": "unavailable"}
