"""Health & Readiness Probes — liveness and readiness endpoints.

Invariants:
    - GET /health/ always returns 200 if the process is up (liveness)
    - GET /health/ready returns 503 if the ledger database is unreachable (readiness)
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from finledger.api.dependencies import get_services
from finledger.infrastructure import database
from finledger.services.service_container import AppServices

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "finledger-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check(services: AppServices = Depends(get_services)):
    """Readiness probe — database connectivity plus retrieval backend status."""
    # No database configured means the in-memory store is in use
    db_ok = await database.db_manager.health_check() if database.db_manager else True
    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
            },
        )
    return {
        "status": "ready",
        "checks": {
            "database": "healthy",
            "vector_index": services.retriever.index.name,
            "knowledge_indexed": services.retriever.knowledge_indexed,
        },
    }
