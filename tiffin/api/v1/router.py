"""
API v1 Router - Main Entry Point
Aggregates all v1 endpoints of the subscription service.
"""

from fastapi import APIRouter

from tiffin.api.v1.endpoints import curry, deliveries, meals, subscriptions, upgrades
from tiffin.config.settings import settings

router = APIRouter(
    responses={
        400: {"description": "Bad Request"},
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Not Found"},
        422: {"description": "Business Rule Violation"},
        500: {"description": "Internal Server Error"},
    }
)

router.include_router(subscriptions.router)
router.include_router(meals.router)
router.include_router(deliveries.router)
router.include_router(curry.router)
router.include_router(upgrades.router)


@router.get("/health", tags=["Health"])
def health_check():
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.API_VERSION,
        "environment": settings.ENVIRONMENT,
    }
