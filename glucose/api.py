"""FastAPI router for the Glucose domain.

Endpoints:
- GET /api/v1/readings?count=N           most recent N readings, oldest first
- GET /api/v1/readings?since=<ISO 8601>  readings newer than a UTC instant
- DELETE /api/v1/session                 drop the cached vendor session
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, Query, Request, Response

from glucose.client import ShareClient
from glucose.domain.models import ShareGlucose
from glucose.errors import DataError, DateError, HttpError, LoginError, ShareError
from shared.config import settings
from shared.exceptions import (
    InvalidTimestampError,
    ProblemDetailError,
    UpstreamDataError,
    UpstreamFetchError,
    UpstreamLoginError,
    UpstreamUnavailableError,
)
from shared.metrics import api_requests_total, api_response_duration_seconds
from shared.middleware import request_id_var

router = APIRouter(prefix="/api/v1")


# --- Dependencies ---


def get_share_client(request: Request) -> ShareClient:
    """The process-wide ShareClient built during app startup."""
    return request.app.state.share_client


# --- Response helpers ---


def _meta() -> dict[str, Any]:
    return {
        "request_id": request_id_var.get(""),
        "timestamp": datetime.now(UTC).isoformat(),
        "api_version": settings.api_version,
    }


def _reading_to_dict(reading: ShareGlucose) -> dict[str, Any]:
    return {
        "glucose_mg_dl": reading.glucose,
        "trend": reading.trend,
        "timestamp": reading.timestamp.isoformat(),
    }


def share_error_to_problem(exc: ShareError) -> ProblemDetailError:
    """Convert the client's public error vocabulary into RFC 9457 problems."""
    if isinstance(exc, LoginError):
        return UpstreamLoginError(exc.error_code)
    if isinstance(exc, HttpError):
        return UpstreamUnavailableError(f"LibreLinkUp could not be reached: {exc.cause}")
    if isinstance(exc, DataError):
        return UpstreamDataError(exc.reason)
    return UpstreamFetchError(str(exc))


# --- Endpoints ---


@router.get("/readings")
async def get_readings(
    client: ShareClient = Depends(get_share_client),
    count: int = Query(settings.default_reading_count, ge=0, le=settings.max_reading_count),
    since: datetime | None = Query(None),
):
    """Get recent glucose readings for the account's monitored patient."""
    start_time = time.monotonic()
    status_code = "200"
    try:
        if since is not None:
            readings = await client.fetch_since(since, count)
        else:
            readings = await client.fetch_last(count)
    except DateError as exc:
        status_code = "400"
        raise InvalidTimestampError(since.isoformat() if since else "") from exc
    except ShareError as exc:
        problem = share_error_to_problem(exc)
        status_code = str(problem.status)
        raise problem from exc
    finally:
        duration = time.monotonic() - start_time
        api_requests_total.labels(endpoint="readings", method="GET", status_code=status_code).inc()
        api_response_duration_seconds.labels(endpoint="readings").observe(duration)

    return {"data": [_reading_to_dict(r) for r in readings], "meta": _meta()}


@router.delete("/session", status_code=204)
async def reset_session(client: ShareClient = Depends(get_share_client)):
    """Forget the vendor session; the next read signs in again."""
    client.reset()
    api_requests_total.labels(endpoint="session", method="DELETE", status_code="204").inc()
    return Response(status_code=204)
