"""LibreLinkUp live service: talks to the vendor API over LibreTransport.

Each operation is a single transport call with a fixed endpoint and shape.
Bad credentials (vendor status 2 on login) are remapped to LoginApiError so
callers can tell them apart from server or network trouble.
"""

import structlog

from glucose.adapters.http_client import LibreTransport
from glucose.adapters.libre_objects import (
    AuthTicket,
    ConnectionsResponse,
    GraphData,
    GraphResponse,
    LoginRequest,
    LoginResponse,
    Patient,
    UpdateAccountRequest,
    UpdateAccountResponse,
)
from glucose.errors import ApiError, LoginApiError

logger = structlog.get_logger()

LOGIN_ENDPOINT = "/llu/auth/login"
UPDATE_ACCOUNT_ENDPOINT = "/llu/user/updateaccount"
CONNECTIONS_ENDPOINT = "/llu/connections"

# Vendor envelope status for rejected credentials
STATUS_BAD_CREDENTIALS = 2


class NetworkLibreApiService:
    """Live-mode service: every call goes to the LibreLinkUp API."""

    source_name = "librelinkup"

    def __init__(self, transport: LibreTransport | None = None) -> None:
        self._transport = transport or LibreTransport()

    async def sign_in(self, email: str, password: str) -> AuthTicket:
        try:
            response = await self._transport.post(
                LOGIN_ENDPOINT,
                LoginRequest(email=email, password=password),
                LoginResponse,
                operation="login",
            )
        except ApiError as exc:
            if exc.status == STATUS_BAD_CREDENTIALS:
                raise LoginApiError(exc.vendor_message) from exc
            raise
        return response.data.authTicket

    async def refresh_ticket(self, token: str) -> AuthTicket:
        response = await self._transport.post(
            UPDATE_ACCOUNT_ENDPOINT,
            UpdateAccountRequest(),
            UpdateAccountResponse,
            token=token,
            operation="update_account",
        )
        return response.ticket

    async def list_patients(self, token: str) -> list[Patient]:
        response = await self._transport.get(
            CONNECTIONS_ENDPOINT, ConnectionsResponse, token=token, operation="connections"
        )
        logger.debug("libre_connections_listed", count=len(response.data))
        return response.data

    async def fetch_graph(self, token: str, patient_id: str) -> GraphData:
        response = await self._transport.get(
            f"{CONNECTIONS_ENDPOINT}/{patient_id}/graph",
            GraphResponse,
            token=token,
            operation="graph",
        )
        return response.data
