from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from gallery.api import bucket, images, spa
from gallery.config import Settings, get_settings
from gallery.credentials import fetch_database_credentials
from gallery.db import check_db, create_engine, create_session_factory, ensure_table
from gallery.errors import BootstrapError, ConfigurationError, register_error_handlers
from gallery.log import configure_logging
from gallery.schemas import HealthResponse
from gallery.storage import S3Storage

logger = structlog.get_logger()


async def bootstrap(app: FastAPI, settings: Settings) -> None:
    """Build the process-wide storage client and pool, then verify bucket and table.

    Any failure here is fatal; the server must not accept requests without
    its storage targets.
    """
    missing = settings.missing_required()
    if missing:
        raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")

    logger.info("storage_init", region=settings.AWS_REGION, bucket=settings.S3_BUCKET)
    try:
        storage = S3Storage.from_settings(settings)
        await run_in_threadpool(storage.ensure_bucket)
        app.state.storage = storage

        if settings.uses_database:
            creds = await run_in_threadpool(fetch_database_credentials, settings)
            engine = create_engine(settings, creds)
            await ensure_table(engine)
            app.state.engine = engine
            app.state.session_factory = create_session_factory(engine)
            logger.info("db_connected", host=settings.DB_HOST, database=creds.database)
    except Exception as e:
        logger.error("bootstrap_failed", error=str(e))
        raise BootstrapError(f"Failed to set up bucket or table: {e}") from e


def create_app(settings: Optional[Settings] = None, run_bootstrap: bool = True) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)
    app = FastAPI(title=settings.APP_NAME, version="1.0.0")
    app.state.settings = settings
    app.state.static_dir = settings.STATIC_DIR
    app.state.storage = None
    app.state.engine = None
    app.state.session_factory = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    @app.get("/health", response_model=HealthResponse)
    async def health():
        db_ok = await check_db(app.state.engine)
        return HealthResponse(status="ok", db=db_ok)

    app.include_router(images.router if settings.uses_database else bucket.router)
    # Catch-all last so API routes win
    app.include_router(spa.router)

    if run_bootstrap:
        @app.on_event("startup")
        async def startup():
            await bootstrap(app, settings)

        @app.on_event("shutdown")
        async def shutdown():
            if app.state.engine is not None:
                await app.state.engine.dispose()

    return app


app = create_app()
