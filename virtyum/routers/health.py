from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from virtyum import __version__
from virtyum.config import settings
from virtyum.database import StoreConnection, get_store

router = APIRouter(tags=["health"])

@router.get("/")
async def root():
    return {
        "message": "Virtyum API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.APP_ENV,
    }

@router.get("/api/health")
async def health(store: StoreConnection = Depends(get_store)):
    """Liveness plus store reachability; 503 while the store is unreachable."""
    reachable = await store.ping()
    body = {
        "status": "OK" if reachable else "DEGRADED",
        "service": "Virtyum API",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "Connected" if reachable else "Disconnected",
    }
    if not reachable:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
    return body
