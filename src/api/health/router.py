"""Health check endpoints for monitoring."""

from fastapi import APIRouter, Response, status

from src.api.core.dependencies import AsyncSessionDep
from src.modules.health.service import HealthService, OverallHealthStatus

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check(db: AsyncSessionDep, response: Response) -> OverallHealthStatus:
    """Health check for the ledger database."""
    health = await HealthService(db).run_all_checks()
    if health.status != "healthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return health


@router.get("/liveness")
async def liveness_check():
    """Simple liveness check - indicates if service is running."""
    return {"status": "alive", "service": "subscription-billing-api"}
