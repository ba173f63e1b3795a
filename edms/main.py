import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from .config import Settings, get_settings
from .middleware import RequestLoggingMiddleware
from .middleware.logging import ACCESS_LOGGER_NAME
from .routers import documents, health, projects, reports, stats
from .schemas import flatten_errors
from .services.blob_router import BlobRouter
from .storage import StorageBackend, create_storage

logging.basicConfig(level=logging.INFO, handlers=[logging.StreamHandler(sys.stdout)])
logging.getLogger(ACCESS_LOGGER_NAME).setLevel(logging.INFO)

logger = logging.getLogger(__name__)


def _init_sentry(settings: Settings) -> None:
    if settings.sentry_dsn and str(settings.sentry_dsn).strip().lower().startswith(("http://", "https://")):
        sentry_sdk.init(
            dsn=str(settings.sentry_dsn).strip(),
            environment=settings.environment,
            integrations=[
                FastApiIntegration(transaction_style="endpoint"),
                SqlalchemyIntegration(),
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            ],
            traces_sample_rate=settings.sentry_traces_sample_rate,
        )


async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"detail": {"message": "Invalid request", "errors": flatten_errors(exc.errors())}},
    )


async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error method=%s path=%s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[StorageBackend] = None,
    blob_router: Optional[BlobRouter] = None,
) -> FastAPI:
    settings = settings or get_settings()
    _init_sentry(settings)

    storage = storage if storage is not None else create_storage(settings)
    blob_router = blob_router if blob_router is not None else BlobRouter.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.storage.close()

    app = FastAPI(title="Construction Document Management API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.storage = storage
    app.state.blob_router = blob_router
    logger.info("app_configured environment=%s storage=%s", settings.environment, storage.name)

    app.add_middleware(RequestLoggingMiddleware)

    if settings.metrics_enabled:
        instrumentator = Instrumentator(should_group_status_codes=True, should_ignore_untemplated=True)
        instrumentator.instrument(app).expose(app, include_in_schema=False)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, _invalid_request)
    app.add_exception_handler(Exception, _unhandled_error)

    app.include_router(health.router, tags=["health"])
    app.include_router(stats.router, tags=["stats"])
    app.include_router(projects.router, tags=["projects"])
    app.include_router(documents.router, tags=["documents"])
    app.include_router(reports.router, tags=["reports"])
    return app


app = create_app()
