"""Session manager: the authenticate → resolve patient → fetch pipeline.

State machine:
    UNAUTHENTICATED → AUTHENTICATING → READY
    READY → UNAUTHENTICATED on reset() or an auth-rejected graph fetch

Authentication is the vendor's two-step handshake (login ticket, then the
account-update exchange for the real session ticket) followed by patient
resolution. The chain short-circuits on the first failure and commits the
session only when every step succeeded.

Session establishment runs under an asyncio.Lock, so concurrent fetches
share a single authentication instead of racing each other.
"""

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum

import structlog

from glucose.adapters.libre_mapper import LibreMapper
from glucose.adapters.libre_objects import AuthTicket
from glucose.adapters.protocol import LibreApiService
from glucose.domain.models import ShareGlucose
from glucose.errors import (
    ApiError,
    LibreApiError,
    LoginApiError,
    NoActivePatientError,
    NoTokenError,
)
from shared.metrics import authentications_total

logger = structlog.get_logger()


class SessionState(StrEnum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    READY = "ready"


@dataclass(frozen=True)
class Session:
    """Ephemeral vendor session. Held in memory only."""

    token: str
    patient_id: str
    expires: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires is None:
            return False
        return (now or datetime.now(UTC)) >= self.expires


def ticket_expiry(ticket: AuthTicket) -> datetime | None:
    """Absolute expiry of a ticket; the vendor sends epoch seconds."""
    if ticket.expires <= 0:
        return None
    try:
        return datetime.fromtimestamp(ticket.expires, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None


def take_last(readings: list[ShareGlucose], n: int) -> list[ShareGlucose]:
    """Keep the most recent n readings by position (dropping from the front)."""
    if n < 0:
        raise ValueError(f"n must be >= 0, got {n}")
    if n >= len(readings):
        return list(readings)
    return readings[len(readings) - n :]


class SessionManager:
    """Owns the session and runs every data call through ensure_session()."""

    def __init__(
        self,
        username: str,
        password: str,
        api_service: LibreApiService,
        reauth_on_expiry: bool = True,
    ) -> None:
        self.username = username
        self._password = password
        self._api = api_service
        self._mapper = LibreMapper()
        self._reauth_on_expiry = reauth_on_expiry
        self._session: Session | None = None
        self._state = SessionState.UNAUTHENTICATED
        self._lock = asyncio.Lock()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Session | None:
        return self._session

    def reset(self) -> None:
        """Drop the cached session; the next call authenticates from scratch."""
        self._session = None
        self._state = SessionState.UNAUTHENTICATED

    def _usable(self) -> Session | None:
        session = self._session
        if session is None:
            return None
        if self._reauth_on_expiry and session.is_expired():
            return None
        return session

    async def ensure_session(self) -> Session:
        """Return the READY session, authenticating first if needed."""
        session = self._usable()
        if session is not None:
            return session

        async with self._lock:
            # Another task may have finished authenticating while we waited
            session = self._usable()
            if session is not None:
                return session
            if self._session is not None:
                logger.info("libre_session_expired", expires=self._session.expires.isoformat())
                self.reset()

            self._state = SessionState.AUTHENTICATING
            try:
                session = await self._authenticate()
            except BaseException:
                # Includes cancellation: never leave a half-built session behind
                self.reset()
                raise

            self._session = session
            self._state = SessionState.READY
            return session

    async def _authenticate(self) -> Session:
        try:
            login_ticket = await self._api.sign_in(self.username, self._password)
            ticket = await self._api.refresh_ticket(login_ticket.token)
            if not ticket.token:
                raise NoTokenError()

            patients = await self._api.list_patients(ticket.token)
            if not patients:
                raise NoActivePatientError()
        except LoginApiError:
            authentications_total.labels(outcome="login_failed").inc()
            logger.warning("libre_login_rejected", username=self.username)
            raise
        except NoActivePatientError:
            authentications_total.labels(outcome="no_patient").inc()
            logger.warning("libre_no_active_patient", username=self.username)
            raise
        except LibreApiError as exc:
            authentications_total.labels(outcome="error").inc()
            logger.warning("libre_authentication_failed", kind=exc.kind.value, error=str(exc))
            raise

        # Multiple linked patients: the first one wins
        patient = patients[0]
        authentications_total.labels(outcome="success").inc()
        logger.info(
            "libre_session_established",
            patient_count=len(patients),
            expires=ticket.expires,
        )
        return Session(
            token=ticket.token,
            patient_id=patient.patientId,
            expires=ticket_expiry(ticket),
        )

    async def fetch_readings(self, n: int) -> list[ShareGlucose]:
        """Fetch the most recent n readings, current snapshot last.

        One pass: credential check, patient resolution, graph fetch. Failures
        propagate; the caller decides whether to try again.
        """
        if n < 0:
            raise ValueError(f"n must be >= 0, got {n}")

        session = await self.ensure_session()
        try:
            graph = await self._api.fetch_graph(session.token, session.patient_id)
        except ApiError as exc:
            if exc.is_auth_failure:
                logger.info("libre_session_rejected", http_status=exc.http_status)
                self.reset()
            raise

        readings = self._mapper.parse(graph)
        result = take_last(readings, n)
        logger.debug("libre_readings_fetched", available=len(readings), returned=len(result))
        return result
