"""FastAPI application entry point.

Wires together: middleware, exception handlers, routes, metrics.
Validates config at startup and builds the process-wide ShareClient over
the service chosen by adapter_mode (canned fixtures or the live vendor API).
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from glucose.adapters.factory import get_api_service
from glucose.api import router as glucose_router
from glucose.client import ShareClient
from shared.config import settings
from shared.exceptions import ProblemDetailError
from shared.logging import configure_logging
from shared.metrics import create_metrics_app
from shared.middleware import (
    RequestIdMiddleware,
    http_exception_handler,
    problem_detail_handler,
    request_validation_handler,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    configure_logging(json_output=True)
    app.state.share_client = ShareClient(
        settings.libre_username,
        settings.libre_password,
        share_server=settings.libre_base_url,
        api_service=get_api_service(base_url=settings.libre_base_url),
    )
    logger.info(
        "app_starting",
        adapter_mode=settings.adapter_mode,
        libre_base_url=settings.libre_base_url,
    )
    yield
    logger.info("app_shutting_down")


app = FastAPI(
    title="Glucose Share API",
    description=(
        "Signs in to LibreLinkUp, resolves the account's monitored patient and "
        "serves recent CGM readings as uniform glucose samples."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(RequestIdMiddleware)

# All errors emit application/problem+json (RFC 9457)
app.add_exception_handler(ProblemDetailError, problem_detail_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)

app.include_router(glucose_router)

metrics_app = create_metrics_app()
app.mount("/metrics", metrics_app)


@app.get("/health")
async def health():
    return {"status": "ok"}
