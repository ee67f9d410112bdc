"""Authenticated JSON transport for the LibreLinkUp API.

Policy:
- Every call opens its own short-lived httpx.AsyncClient (no pooled reuse)
- POST bodies are serialized before any network I/O (EncodingError on failure)
- 401/403 responses raise ApiError before the body is decoded
- Bodies that do not match the expected model are retried as the vendor's
  {status, error: {message}} envelope (ApiError), else DecodingError
- Network failures and timeouts surface as ApiError with no payload
- No retry here; retry policy belongs to the caller
"""

import json
from collections.abc import Mapping
from typing import Any, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from glucose.adapters.libre_objects import ApiErrorEnvelope
from glucose.errors import ApiError, DecodingError, EncodingError, LibreApiError
from shared.config import settings
from shared.metrics import vendor_api_duration_seconds, vendor_api_errors_total

logger = structlog.get_logger()

ResponseT = TypeVar("ResponseT", bound=BaseModel)

# Token rejected by the vendor
AUTH_REJECTED_STATUSES = (401, 403)


def encode_payload(payload: BaseModel | Mapping[str, Any]) -> bytes:
    """Serialize a request body to JSON bytes."""
    try:
        if isinstance(payload, BaseModel):
            return payload.model_dump_json(by_alias=True).encode()
        return json.dumps(payload).encode()
    except (TypeError, ValueError) as exc:
        raise EncodingError(str(exc)) from exc


def decode_response(
    body: bytes, response_model: type[ResponseT], http_status: int | None = None
) -> ResponseT:
    """Decode a body into response_model, falling back to the vendor error envelope.

    A 401/403 always raises ApiError, whatever the body looks like, so the
    caller can drop the rejected token.
    """
    if http_status in AUTH_REJECTED_STATUSES:
        try:
            envelope = ApiErrorEnvelope.model_validate_json(body)
        except ValidationError:
            raise ApiError(http_status=http_status) from None
        raise ApiError(
            status=envelope.status,
            vendor_message=envelope.error.message,
            http_status=http_status,
        )

    try:
        return response_model.model_validate_json(body)
    except ValidationError:
        pass

    try:
        envelope = ApiErrorEnvelope.model_validate_json(body)
    except ValidationError as exc:
        raise DecodingError(f"{response_model.__name__}: {exc.error_count()} error(s)") from exc

    raise ApiError(
        status=envelope.status,
        vendor_message=envelope.error.message,
        http_status=http_status,
    )


class LibreTransport:
    """Executes JSON requests against a fixed LibreLinkUp base URL."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.libre_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self._transport = transport

    def headers(self, token: str | None = None) -> dict[str, str]:
        headers = {
            "content-type": "application/json",
            "product": settings.libre_product,
            "version": settings.libre_app_version,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def get(
        self,
        endpoint: str,
        response_model: type[ResponseT],
        token: str | None = None,
        operation: str = "",
    ) -> ResponseT:
        return await self.execute(
            "GET", endpoint, response_model, token=token, operation=operation
        )

    async def post(
        self,
        endpoint: str,
        payload: BaseModel | Mapping[str, Any],
        response_model: type[ResponseT],
        token: str | None = None,
        operation: str = "",
    ) -> ResponseT:
        return await self.execute(
            "POST", endpoint, response_model, token=token, payload=payload, operation=operation
        )

    async def execute(
        self,
        method: str,
        endpoint: str,
        response_model: type[ResponseT],
        token: str | None = None,
        payload: BaseModel | Mapping[str, Any] | None = None,
        operation: str = "",
    ) -> ResponseT:
        label = operation or endpoint
        content = encode_payload(payload) if payload is not None else None
        url = f"{self.base_url}{endpoint}"

        try:
            with vendor_api_duration_seconds.labels(endpoint=label).time():
                response = await self._send(method, url, token, content)
            return decode_response(response.content, response_model, response.status_code)
        except LibreApiError as exc:
            vendor_api_errors_total.labels(endpoint=label, kind=exc.kind.value).inc()
            logger.warning(
                "libre_call_failed",
                operation=label,
                method=method,
                kind=exc.kind.value,
                error=str(exc),
            )
            raise

    async def _send(
        self, method: str, url: str, token: str | None, content: bytes | None
    ) -> httpx.Response:
        async with httpx.AsyncClient(
            headers=self.headers(token),
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            try:
                return await client.request(method, url, content=content)
            except httpx.RequestError as exc:
                raise ApiError() from exc
