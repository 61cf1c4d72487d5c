"""
Main FastAPI Application

Unified API server with all routes organized cleanly.
"""

import logging
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from config.settings import settings
from storage.session_store import SessionUnavailable, get_session_store

from src.controllers.dashboard_controller import InputInvalid
from src.controllers.session_guard import ENTRY_ROUTE
from src.routes import health_routes, auth_routes, dashboard_routes

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%H:%M:%S'
)


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="API for market snapshots and AI-generated market insights"
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health_routes.router)
    app.include_router(auth_routes.router)
    app.include_router(dashboard_routes.router)

    @app.exception_handler(SessionUnavailable)
    async def session_unavailable_handler(request: Request, exc: SessionUnavailable):
        """Unauthenticated requests go to the entry route, never a JSON error."""
        return RedirectResponse(ENTRY_ROUTE, status_code=status.HTTP_303_SEE_OTHER)

    @app.exception_handler(InputInvalid)
    async def input_invalid_handler(request: Request, exc: InputInvalid):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})

    @app.on_event("startup")
    async def startup_event():
        """Initialize application resources on startup."""
        logger = logging.getLogger(__name__)

        logger.info(f"Insight provider: {settings.INSIGHT_PROVIDER}, market data: {settings.MARKET_DATA_SOURCE}")

        if not settings.AUTH_ACCOUNTS:
            logger.warning("⚠️  AUTH_ACCOUNTS is empty - nobody can sign in")

        # Initialize session store
        try:
            get_session_store()

            if settings.SESSION_BACKEND.lower() == "redis":
                from config.database import ping_redis

                error = ping_redis()
                if error is None:
                    logger.info("✅ Redis: Connected")
                else:
                    logger.warning(f"⚠️  Redis: Not connected - {error}")

        except Exception as e:
            logger.error(f"❌ Session store initialization error: {e}")
            logger.warning("Application will continue but sign-in may not work")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Release connections on shutdown."""
        from config.database import close_redis
        close_redis()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
