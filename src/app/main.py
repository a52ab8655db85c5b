"""FastAPI application factory.

Creates the app with logging middleware, metrics middleware, CORS, Sentry,
lifespan events for database initialization and the ERP sync schedule, and
the v1 API router.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import Response

from src.app.api.middleware.logging import LoggingMiddleware, configure_structlog
from src.app.api.v1.router import router as v1_router
from src.app.buildings.repository import BuildingRepository
from src.app.config import Settings, get_settings
from src.app.core.database import close_db, get_session, init_db
from src.app.core.monitoring import MetricsMiddleware, get_metrics_response, init_sentry
from src.app.erp.client import ERPClient
from src.app.erp.schemas import EntityKind
from src.app.snapshots.models import (
    AcquisitionModel,
    BuildingProposalModel,
    LetterOfIntentModel,
)
from src.app.snapshots.repository import SnapshotRepository
from src.app.sync.engine import SyncOrchestrator, wait_for_idle
from src.app.sync.reconciler import BuildingReconciler, FullRefreshReconciler
from src.app.sync.scheduler import ERPSyncScheduler


def build_sync_orchestrators(
    settings: Settings,
    building_repository: BuildingRepository,
) -> dict[EntityKind, SyncOrchestrator]:
    """Wire one orchestrator per ERP entity kind around a shared ERP client."""
    client = ERPClient(
        base_url=settings.ERP_API_BASE_URL,
        api_key=settings.ERP_API_KEY,
        api_secret=settings.ERP_API_SECRET,
        timeout=settings.ERP_TIMEOUT,
        page_length=settings.ERP_PAGE_LENGTH,
        max_attempts=settings.ERP_MAX_ATTEMPTS,
    )

    reconcilers = [
        BuildingReconciler(store=building_repository),
        FullRefreshReconciler(
            EntityKind.ACQUISITION,
            SnapshotRepository(session_factory=get_session, model=AcquisitionModel),
        ),
        FullRefreshReconciler(
            EntityKind.BUILDING_PROPOSAL,
            SnapshotRepository(session_factory=get_session, model=BuildingProposalModel),
        ),
        FullRefreshReconciler(
            EntityKind.LETTER_OF_INTENT,
            SnapshotRepository(session_factory=get_session, model=LetterOfIntentModel),
        ),
    ]
    return {r.kind: SyncOrchestrator(client=client, reconciler=r) for r in reconcilers}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: init DB, Sentry and the sync schedule; tear down on shutdown."""
    log = structlog.get_logger(__name__)
    settings = get_settings()
    configure_structlog()
    await init_db()

    # Initialize Sentry if DSN is configured
    if settings.SENTRY_DSN:
        init_sentry(dsn=settings.SENTRY_DSN, environment=settings.ENVIRONMENT.value)

    # ── Buildings ───────────────────────────────────────────────────────
    building_repository = BuildingRepository(session_factory=get_session)
    app.state.building_repository = building_repository

    # ── ERP Sync ────────────────────────────────────────────────────────
    # Failure here leaves the API up; sync endpoints answer 503.
    app.state.sync_orchestrators = None
    app.state.sync_scheduler = None
    try:
        orchestrators = build_sync_orchestrators(settings, building_repository)
        app.state.sync_orchestrators = orchestrators
        log.info("erp_sync.initialized", kinds=[k.value for k in orchestrators])

        if settings.ERP_SYNC_ENABLED:
            scheduler = ERPSyncScheduler(
                orchestrators=list(orchestrators.values()),
                interval_minutes=settings.get_sync_interval_minutes(),
            )
            if scheduler.start():
                app.state.sync_scheduler = scheduler
        else:
            log.info("erp_sync.schedule_disabled")
    except Exception:
        log.warning("erp_sync.init_failed", exc_info=True)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    scheduler = getattr(app.state, "sync_scheduler", None)
    if scheduler is not None:
        scheduler.shutdown()

    # Passes still writing must finish before the engine is disposed
    orchestrators = getattr(app.state, "sync_orchestrators", None)
    if orchestrators:
        await wait_for_idle(orchestrators.values(), timeout=settings.ERP_SYNC_SHUTDOWN_TIMEOUT)

    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Buildings API",
        version="0.1.0",
        description="Building inventory with periodic ERP synchronization",
        lifespan=lifespan,
    )

    # Middleware is added in reverse order (last added = outermost)

    # CORS middleware
    if settings.CORS_ALLOWED_ORIGINS == "*":
        origins = ["*"]
    else:
        origins = [o.strip() for o in settings.CORS_ALLOWED_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Logging middleware (logs every request with timing)
    app.add_middleware(LoggingMiddleware)

    # Metrics middleware (outermost -- records Prometheus metrics for all requests)
    app.add_middleware(MetricsMiddleware)

    app.include_router(v1_router)

    # Prometheus metrics endpoint (infrastructure route, outside v1 router)
    @app.get("/metrics", include_in_schema=False)
    async def metrics(request: Request) -> Response:
        """Prometheus metrics endpoint."""
        return get_metrics_response()

    return app


# Module-level app for uvicorn
app = create_app()
