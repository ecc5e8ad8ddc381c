"""
Health check.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from taskflow import __version__
from taskflow_api.deps import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(db=Depends(get_db)):
    backend = "postgres" if db.supports_jsonb else "sqlite"
    try:
        await db.fetchval("SELECT 1")
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "database": backend, "version": __version__},
        )
    return {"status": "ok", "database": backend, "version": __version__}
