"""FastAPI middleware for request ID injection, access logging and error handling."""

import time
from collections.abc import Callable
from contextvars import ContextVar
from uuid import uuid4

import structlog
from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from shared.exceptions import PROBLEM_BASE, ProblemDetailError

logger = structlog.get_logger()

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

PROBLEM_JSON = "application/problem+json"


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag every request with an ID and log its outcome.

    Header name: X-Request-ID. Default format: UUID v4.
    The ID is bound into structlog contextvars for the lifetime of the request.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Callable[..., Response]]
    ):
        rid = request.headers.get("X-Request-ID", str(uuid4()))
        request_id_var.set(rid)
        structlog.contextvars.bind_contextvars(request_id=rid)
        start = time.monotonic()

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = rid
            logger.info(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.monotonic() - start) * 1000, 1),
            )
            return response
        finally:
            structlog.contextvars.unbind_contextvars("request_id")


def _problem(request: Request, status: int, body: dict) -> JSONResponse:
    body.setdefault("instance", str(request.url.path))
    return JSONResponse(status_code=status, content=body, media_type=PROBLEM_JSON)


async def problem_detail_handler(request: Request, exc: ProblemDetailError) -> JSONResponse:
    """Convert ProblemDetailError exceptions into RFC 9457 responses."""
    body: dict = {
        "type": exc.type_uri,
        "title": exc.title,
        "status": exc.status,
        "detail": exc.detail,
    }
    if exc.violations:
        body["violations"] = exc.violations
    if exc.status >= 500:
        logger.warning("upstream_problem", title=exc.title, status=exc.status)
    return _problem(request, exc.status, body)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Convert FastAPI/Pydantic native validation errors into RFC 9457 format.

    Query parameters (count, since) are validated here too, so every 422
    carries a violations array rather than FastAPI's default {detail: [...]}.
    """
    violations = []
    for err in exc.errors():
        loc = err.get("loc", ())
        field = ".".join(str(part) for part in loc if part not in ("body", "query"))
        violations.append(
            {
                "field": field or "(root)",
                "message": err.get("msg", "Validation error"),
                "constraint": err.get("type", "validation"),
            }
        )

    body = {
        "type": f"{PROBLEM_BASE}/validation-error",
        "title": "Validation Error",
        "status": 422,
        "detail": f"Request contains {len(violations)} validation error(s)",
        "violations": violations,
    }
    return _problem(request, 422, body)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Convert generic HTTP exceptions into RFC 9457 format."""
    body = {
        "type": "about:blank",
        "title": exc.detail if isinstance(exc.detail, str) else "Error",
        "status": exc.status_code,
        "detail": exc.detail if isinstance(exc.detail, str) else str(exc.detail),
    }
    return _problem(request, exc.status_code, body)
