"""Caller-side retry for ShareClient fetches.

The client itself never retries. Hosts that want retries wrap the call here:
- Retry on HttpError (network/timeout) and FetchError (vendor trouble)
- Do NOT retry on LoginError (bad credentials) or DataError (bad payload)
- Exponential backoff with jitter, attempts from settings
"""

import logging

import structlog
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from glucose.client import ShareClient
from glucose.domain.models import ShareGlucose
from glucose.errors import FetchError, HttpError
from shared.config import settings

logger = structlog.get_logger()


@retry(
    retry=retry_if_exception_type((HttpError, FetchError)),
    wait=wait_exponential_jitter(initial=1, max=settings.retry_max_wait_seconds, jitter=2),
    stop=stop_after_attempt(settings.retry_max_attempts),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def fetch_last_with_retry(client: ShareClient, n: int) -> list[ShareGlucose]:
    """Fetch the last n readings, retrying transient failures."""
    return await client.fetch_last(n)
