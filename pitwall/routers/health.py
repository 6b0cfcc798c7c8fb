# pitwall/routers/health.py
"""Health check endpoint."""
from fastapi import APIRouter

from pitwall.schemas.common import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness probe."""
    return HealthResponse(status="ok")
