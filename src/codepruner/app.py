"""FastAPI application factory for CodePruner."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from codepruner.common.config import get_settings
from codepruner.common.logging import setup_logging
from codepruner.common.schemas import HealthResponse


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        from codepruner.deps import get_db, get_event_writer, get_scheduler
        db = get_db()
        await db.init()
        await db.create_all()
        writer = get_event_writer()
        writer.start()
        scheduler = get_scheduler()
        if settings.maintenance_enabled:
            await scheduler.start()
        yield
        # Shutdown
        await scheduler.stop()
        await writer.stop()
        await db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", response_model=HealthResponse)
    async def health():
        from codepruner.deps import get_db, get_event_writer, get_scheduler
        db_ok = await get_db().ping()
        return HealthResponse(
            status="ok" if db_ok else "degraded",
            version=settings.api_version,
            database=db_ok,
            maintenance_scheduled=get_scheduler().is_scheduled,
            writer_pending=get_event_writer().pending,
        )

    # Mount routers
    from codepruner.ingestion.router import router as ingestion_router
    from codepruner.analysis.router import router as analysis_router
    from codepruner.scheduler.router import router as maintenance_router
    from codepruner.tenants.router import router as tenant_router

    prefix = settings.api_prefix
    app.include_router(ingestion_router, prefix=prefix, tags=["ingestion"])
    app.include_router(analysis_router, prefix=prefix, tags=["endpoints"])
    app.include_router(maintenance_router, prefix=prefix, tags=["maintenance"])
    app.include_router(tenant_router, prefix=prefix, tags=["tenants"])

    return app
