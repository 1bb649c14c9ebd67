from fastapi import APIRouter

from src.api.health.router import router as health_router
from src.api.payments.router import router as payments_router
from src.api.portone.router import router as portone_router

# Browser and webhook facing routes
public_router = APIRouter(prefix="/api")
public_router.include_router(payments_router)
public_router.include_router(portone_router)

# Main API router
api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(public_router)
