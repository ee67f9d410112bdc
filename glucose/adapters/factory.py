"""Service factory: returns the fixture or live LibreLinkUp service based on config.

In fixture mode, the service answers from canned payloads on disk.
In live mode, the service calls the vendor API.
Both implement the same LibreApiService protocol.
"""

from pathlib import Path

from glucose.adapters.protocol import LibreApiService
from shared.config import settings

DEFAULT_FIXTURE_DIR = Path(__file__).parent / "fixtures"


def get_api_service(base_url: str | None = None) -> LibreApiService:
    """Return the LibreLinkUp service for the configured adapter_mode.

    - fixture mode: canned payloads from settings.fixture_dir (or the bundled set)
    - live mode: HTTP service against base_url (or settings.libre_base_url)
    """
    if settings.adapter_mode == "live":
        return _get_live_service(base_url)
    if settings.adapter_mode == "fixture":
        return _get_fixture_service()
    raise ValueError(
        f"Unsupported adapter_mode: {settings.adapter_mode}. Must be one of: ['fixture', 'live']"
    )


def _get_fixture_service() -> LibreApiService:
    from glucose.adapters.libre_fixture import FixtureLibreApiService

    return FixtureLibreApiService.from_directory(settings.fixture_dir or DEFAULT_FIXTURE_DIR)


def _get_live_service(base_url: str | None) -> LibreApiService:
    from glucose.adapters.http_client import LibreTransport
    from glucose.adapters.libre_live import NetworkLibreApiService

    return NetworkLibreApiService(LibreTransport(base_url=base_url))
