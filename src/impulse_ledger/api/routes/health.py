"""Health and root endpoints.

``/`` reports the API identity and version; ``/health`` runs ``SELECT 1``
against the database.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from impulse_ledger import __version__
from impulse_ledger.api.models import HealthResponse
from impulse_ledger.db.connection import connection_scope

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
async def root():
    """Root endpoint showing API identity and current version."""
    return {"message": "Impulse Ledger API", "version": __version__}


@router.get("/health", response_model=HealthResponse)
def health_check():
    """Database liveness check; answers 503 when the database is unreachable."""
    try:
        with connection_scope() as conn:
            conn.execute("SELECT 1").fetchone()
    except Exception as exc:
        logger.warning("Health check failed: %s", exc)
        return JSONResponse(status_code=503, content={"ok": False, "db": str(exc)})
    return HealthResponse(ok=True, db="ok")
