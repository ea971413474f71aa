import os
import sys
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Ensure local imports resolve
sys.path.append(os.path.dirname(__file__))

# Core
from core.backends import Backends, build_backends
from core.config import settings
from core.errors import HotelOSError
from core.logging_config import logger
from core.scheduler import start_scheduler

# -------------------------------------------------
# Routers
# -------------------------------------------------
from routers.auth import router as auth_router
from routers.admin import router as admin_router
from routers.settings import router as settings_router
from routers.logbook import router as logbook_router
from routers.concierge import router as concierge_router
from routers.health import router as health_router


# -------------------------------------------------
# Create the Application
# -------------------------------------------------
def create_app(
    backends: Optional[Backends] = None,
    refresh_seconds: Optional[int] = None,
) -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="HotelOS back-office API: users & roles, settings, logbook, concierge",
    )

    app.state.backends = backends or build_backends(settings)
    app.state.scheduler = None
    if refresh_seconds is None:
        refresh_seconds = settings.STORE_REFRESH_SECONDS

    # -------------------------------------------------
    # CORS
    # -------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------
    # Startup / shutdown
    # -------------------------------------------------
    @app.on_event("startup")
    async def on_startup():
        logger.info(f"Starting {settings.PROJECT_NAME} ({settings.ENV})")
        app.state.scheduler = start_scheduler(app.state.backends.store, refresh_seconds)

    @app.on_event("shutdown")
    async def on_shutdown():
        if app.state.scheduler:
            app.state.scheduler.shutdown(wait=False)
            app.state.scheduler = None

    # -------------------------------------------------
    # Error handling
    # -------------------------------------------------
    @app.exception_handler(HotelOSError)
    async def handle_hotelos(request: Request, exc: HotelOSError):
        if exc.status_code in (401, 403):
            logger.warning(f"HTTP {exc.status_code} at {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (401, 403, 500):
            logger.warning(f"HTTP {exc.status_code} at {request.url.path}: {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.error("Unhandled error at %s", request.url, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    # -------------------------------------------------
    # Register Routers
    # -------------------------------------------------
    app.include_router(auth_router)
    app.include_router(admin_router)
    app.include_router(settings_router)
    app.include_router(logbook_router)
    app.include_router(concierge_router)
    app.include_router(health_router)

    return app


# Create the global FastAPI instance
app = create_app()
