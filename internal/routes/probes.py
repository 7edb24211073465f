"""Kubernetes probe endpoints.

These endpoints are internal-only and excluded from the OpenAPI schema.
"""

from fastapi import APIRouter

router = APIRouter(tags=["internal"], include_in_schema=False)


@router.get("/healthz")
async def healthz():
    """Liveness probe - is the process alive?"""
    return {"status": "ok"}


@router.get("/readyz")
async def readyz():
    """Readiness probe - is the service ready to receive traffic?"""
    return {"status": "ok"}
