"""ShareClient: the surface a host application consumes.

Wraps SessionManager and translates internal LibreApiError failures into
the public ShareError vocabulary (HttpError, LoginError, FetchError,
DataError, DateError).
"""

from datetime import datetime

import structlog

from glucose.adapters.http_client import LibreTransport
from glucose.adapters.libre_live import NetworkLibreApiService
from glucose.adapters.protocol import LibreApiService
from glucose.domain.models import KnownShareServers, ShareGlucose
from glucose.errors import DateError, LibreApiError, to_share_error
from glucose.session import SessionManager
from shared.config import settings
from shared.metrics import readings_returned_total

logger = structlog.get_logger()


class ShareClient:
    def __init__(
        self,
        username: str,
        password: str,
        share_server: KnownShareServers | str = KnownShareServers.US,
        api_service: LibreApiService | None = None,
    ) -> None:
        self.username = username
        self.share_server = str(share_server)
        self._sessions = SessionManager(
            username,
            password,
            api_service or NetworkLibreApiService(LibreTransport(base_url=self.share_server)),
            reauth_on_expiry=settings.reauth_on_expiry,
        )

    @property
    def session_manager(self) -> SessionManager:
        return self._sessions

    def reset(self) -> None:
        self._sessions.reset()

    async def fetch_last(self, n: int) -> list[ShareGlucose]:
        """Return up to the n most recent readings, oldest first.

        Raises:
            ShareError: any failure, re-expressed in the public vocabulary.
        """
        try:
            readings = await self._sessions.fetch_readings(n)
        except LibreApiError as exc:
            share_error = to_share_error(exc)
            logger.warning(
                "share_fetch_failed",
                kind=exc.kind.value,
                share_error=type(share_error).__name__,
            )
            raise share_error from exc

        readings_returned_total.inc(len(readings))
        return readings

    async def fetch_since(self, since: datetime, n: int | None = None) -> list[ShareGlucose]:
        """Return readings strictly newer than `since` (at most n of them).

        Raises:
            DateError: `since` carries no UTC offset.
        """
        if since.tzinfo is None or since.utcoffset() is None:
            raise DateError(f"'since' must be timezone-aware, got {since.isoformat()}")

        limit = n if n is not None else settings.max_reading_count
        readings = await self.fetch_last(limit)
        return [r for r in readings if r.is_newer_than(since)]
