"""
main.py
-------
FastAPI application factory and entry point.

Application lifecycle:
  1. App is created by create_application().
  2. The real-time gateway is attached to app.state so routes can publish.
  3. lifespan context manager runs on startup / shutdown.
  4. Routers are registered with their URL prefixes.
  5. Global exception handlers normalise unexpected errors.

Run with:
    uvicorn main:app --reload              # development
    uvicorn main:app --workers 1           # rooms live in process memory
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from statuspage.api.routes import admin, auth, incidents, maintenance, public, realtime, services
from statuspage.core.config import settings
from statuspage.core.logging import configure_logging, get_logger
from statuspage.db.session import AsyncSessionLocal, engine
from statuspage.realtime.gateway import RealtimeGateway
from statuspage.realtime.membership import RoomMembershipManager
from statuspage.services.organization_service import OrganizationDirectory

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Startup / shutdown lifecycle hook.

    Startup:
      - Configure structured logging

    Shutdown:
      - Close every live socket and drop all rooms
      - Dispose the async engine (graceful connection pool drain)
    """
    configure_logging()
    logger.info(
        "Starting up",
        app=settings.APP_NAME,
        env=settings.APP_ENV,
        debug=settings.DEBUG,
    )
    yield
    logger.info("Shutting down, closing sockets and disposing DB engine")
    await app.state.realtime.shutdown()
    await engine.dispose()


def build_gateway() -> RealtimeGateway:
    membership = RoomMembershipManager(
        OrganizationDirectory(AsyncSessionLocal),
        org_id_requires_auth=settings.REALTIME_ORG_ID_REQUIRES_AUTH,
    )
    return RealtimeGateway(membership)


def create_application() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Multi-tenant status page backend with JWT auth, RBAC, "
            "tenant data isolation and real-time WebSocket updates."
        ),
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.realtime = build_gateway()

    # ── CORS ─────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Routers ───────────────────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(admin.router)
    app.include_router(services.router)
    app.include_router(incidents.router)
    app.include_router(maintenance.router)
    app.include_router(public.router)
    app.include_router(realtime.router)

    # ── Global Exception Handlers ─────────────────────────────────────────────

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    # ── Health Check ──────────────────────────────────────────────────────────

    @app.get("/api/health", tags=["Health"], summary="Service health check")
    async def health(request: Request) -> dict:
        return {
            "status": "ok",
            "app": settings.APP_NAME,
            "env": settings.APP_ENV,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "realtime": request.app.state.realtime.stats(),
            "pollIntervalSeconds": settings.POLL_INTERVAL_SECONDS,
        }

    return app


app = create_application()
