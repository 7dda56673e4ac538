import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from patent_intake.api.routes import health, submit
from patent_intake.core.config import Settings, settings
from patent_intake.core.errors import register_exception_handlers
from patent_intake.core.logging import setup_logging
from patent_intake.core.middleware import RequestIdMiddleware, UploadSizeLimitMiddleware
from patent_intake.core.rate_limiter import SlidingWindowRateLimiter
from patent_intake.core.security_headers import SecurityHeadersMiddleware

# Setup logging
setup_logging(settings)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    app_settings: Settings = app.state.settings
    logger.info(f"Starting {app_settings.PROJECT_NAME} v{app_settings.VERSION}")
    logger.info(f"Environment: {app_settings.ENVIRONMENT}")
    logger.info(f"Upload ceiling: {app_settings.max_total_label} MB")
    if not app_settings.RECIPIENT_EMAIL:
        logger.warning("RECIPIENT_EMAIL is not set; submissions will be refused")

    yield

    logger.info("Shutting down...")


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around one read-only Settings instance."""
    app_settings = app_settings or settings

    app = FastAPI(
        title=app_settings.PROJECT_NAME,
        version=app_settings.VERSION,
        description="""
## Questionario preliminare brevetto

Receives the patent-disclosure questionnaire, validates it and emails a
plain-text report with the uploaded attachments to the patent office.
        """,
        lifespan=lifespan,
        docs_url="/docs" if app_settings.DEBUG else None,
        redoc_url=None,
    )
    app.state.settings = app_settings
    app.state.rate_limiter = SlidingWindowRateLimiter(
        limit=app_settings.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=app_settings.RATE_LIMIT_WINDOW_SECONDS,
        trusted_proxies=app_settings.TRUSTED_PROXIES,
    )

    # Reject oversize bodies before they are read
    app.add_middleware(
        UploadSizeLimitMiddleware,
        max_total_bytes=app_settings.max_total_bytes,
        limit_label=app_settings.max_total_label,
    )

    # Request ID Tracing
    app.add_middleware(RequestIdMiddleware)

    # Outermost, so early rejections carry the headers too
    app.add_middleware(SecurityHeadersMiddleware)

    register_exception_handlers(app)

    app.include_router(submit.router, prefix="/api", tags=["submit"])
    app.include_router(health.router)

    # The questionnaire web form; mounted last so API routes win
    static_dir = Path(app_settings.STATIC_DIR)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
    else:
        logger.info("Static directory %s not found, serving API only", static_dir)

    return app


app = create_app()
