"""
Health check API endpoint.

Routes: GET /health

System role: Liveness probe
"""

from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict:
    """Basic health check."""
    return {"ok": True}
