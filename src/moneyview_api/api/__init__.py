"""API routers.

Router structure
----------------
PARTNER (require api-key header):
  POST /cashKuber    → bulk lead ingestion

PUBLIC (no auth):
  /api/v1/health     → comprehensive status with database check
  /api/v1/ready      → readiness probe
  /api/v1/live       → liveness probe
"""
from fastapi import APIRouter

from .endpoints import health, ingest

router = APIRouter()

# Partner ingestion keeps its historical unversioned path.
router.include_router(ingest.router, tags=["Ingestion"])

router.include_router(health.router, prefix="/api/v1", tags=["Health"])
