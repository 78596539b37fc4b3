"""Router combining all route modules."""

from fastapi import APIRouter

from unsubscribe_service.api import health, unsubscribe

api_router = APIRouter()

# Liveness/readiness (no prefix)
api_router.include_router(health.router)

# Public unsubscribe page (token-authenticated, no login)
api_router.include_router(unsubscribe.router)
