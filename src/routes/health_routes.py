"""
Health Check Routes

System health, status and the routing surface.
"""

from fastapi import APIRouter
from models.schemas import HealthResponse
from config.settings import settings


router = APIRouter(tags=["Health"])

# Named views of the dashboard and whether they need a session
VIEWS = {
    "auth": {"path": "/auth", "guarded": False},
    "analytics": {"path": "/analytics", "guarded": True},
    "account": {"path": "/account", "guarded": True},
    "faq": {"path": "/faq", "guarded": False},
    "settings": {"path": "/settings", "guarded": False},
    "contact": {"path": "/contact", "guarded": False},
    "chatbot": {"path": "/chatbot", "guarded": False},
}


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check endpoint.

    Returns the current status and version of the system.
    This endpoint can be used for monitoring and load balancer health checks.

    Returns:
        HealthResponse with status and version information
    """
    return HealthResponse(
        status="healthy",
        version=settings.APP_VERSION
    )


@router.get("/")
async def root():
    """Root endpoint with API information and the named views."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "description": "Synthetic market snapshots with AI-generated insight panels",
        "entry": "/auth",
        "views": VIEWS,
        "endpoints": {
            "health": "/health",
            "login": "POST /auth/login",
            "logout": "POST /auth/logout",
            "analyze": "POST /analytics/analyze",
            "refresh_category": "POST /analytics/refresh/{category}",
            "refresh_all": "POST /analytics/refresh-all",
            "state": "GET /analytics/state",
            "charts": "GET /analytics/charts",
            "overview": "GET /analytics/overview",
            "report": "GET /analytics/report.csv"
        }
    }
