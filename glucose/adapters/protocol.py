"""Service protocol for the LibreLinkUp session API.

Both the live HTTP service and the fixture double implement this interface.
The session manager depends only on the protocol, never on concrete services.
"""

from typing import Protocol, runtime_checkable

from glucose.adapters.libre_objects import AuthTicket, GraphData, Patient


@runtime_checkable
class LibreApiService(Protocol):
    """The four vendor operations the session manager needs."""

    source_name: str

    async def sign_in(self, email: str, password: str) -> AuthTicket:
        """Exchange account credentials for a raw auth ticket.

        Raises:
            LoginApiError: the vendor rejected the credentials (status 2).
        """
        ...

    async def refresh_ticket(self, token: str) -> AuthTicket:
        """Exchange the raw login ticket for the session ticket."""
        ...

    async def list_patients(self, token: str) -> list[Patient]:
        """List linked patients. An empty list is a valid response."""
        ...

    async def fetch_graph(self, token: str, patient_id: str) -> GraphData:
        """Fetch a patient's recent history plus the current snapshot."""
        ...
