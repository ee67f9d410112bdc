"""LibreLinkUp fixture service: serves canned vendor payloads (no HTTP).

Payloads go through the same decoding as live responses, so an error
envelope in a fixture behaves exactly like one from the vendor. Calls are
recorded in order and individual operations can be made to fail.
"""

import json
from pathlib import Path
from typing import Any

from glucose.adapters.http_client import decode_response
from glucose.adapters.libre_live import STATUS_BAD_CREDENTIALS
from glucose.adapters.libre_objects import (
    AuthTicket,
    ConnectionsResponse,
    GraphData,
    GraphResponse,
    LoginResponse,
    Patient,
    UpdateAccountResponse,
)
from glucose.errors import ApiError, LibreApiError, LoginApiError

FIXTURE_FILES = {
    "login": "login_response.json",
    "update_account": "update_account_response.json",
    "connections": "connections_response.json",
    "graph": "graph_response.json",
}


class FixtureLibreApiService:
    """Fixture-mode service: answers from in-memory payloads."""

    source_name = "librelinkup"

    def __init__(self, payloads: dict[str, Any], failures: dict[str, LibreApiError] | None = None):
        self.payloads = payloads
        self.failures = failures or {}
        self.calls: list[tuple[str, ...]] = []

    @classmethod
    def from_directory(cls, directory: str | Path) -> "FixtureLibreApiService":
        root = Path(directory)
        payloads = {
            name: json.loads((root / filename).read_text())
            for name, filename in FIXTURE_FILES.items()
            if (root / filename).exists()
        }
        return cls(payloads)

    def _answer(self, operation: str, model):
        failure = self.failures.get(operation)
        if failure is not None:
            raise failure
        if operation not in self.payloads:
            raise ApiError()
        return decode_response(json.dumps(self.payloads[operation]).encode(), model)

    async def sign_in(self, email: str, password: str) -> AuthTicket:
        self.calls.append(("sign_in", email))
        try:
            response = self._answer("login", LoginResponse)
        except ApiError as exc:
            if exc.status == STATUS_BAD_CREDENTIALS:
                raise LoginApiError(exc.vendor_message) from exc
            raise
        return response.data.authTicket

    async def refresh_ticket(self, token: str) -> AuthTicket:
        self.calls.append(("refresh_ticket", token))
        return self._answer("update_account", UpdateAccountResponse).ticket

    async def list_patients(self, token: str) -> list[Patient]:
        self.calls.append(("list_patients", token))
        return self._answer("connections", ConnectionsResponse).data

    async def fetch_graph(self, token: str, patient_id: str) -> GraphData:
        self.calls.append(("fetch_graph", token, patient_id))
        return self._answer("graph", GraphResponse).data
