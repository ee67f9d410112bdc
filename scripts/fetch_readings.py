#!/usr/bin/env python3
"""Fetch and print the latest LibreLinkUp readings for an account.

Credentials default to GS_LIBRE_USERNAME / GS_LIBRE_PASSWORD.

Usage:
    python scripts/fetch_readings.py                       # last 12 readings, US region
    python scripts/fetch_readings.py --count 3 --region eu
    python scripts/fetch_readings.py --retry --json        # retry transient failures, JSON output
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from glucose.adapters.protocol import LibreApiService  # noqa: E402
from glucose.client import ShareClient  # noqa: E402
from glucose.domain.models import KnownShareServers  # noqa: E402
from glucose.errors import LoginError, ShareError  # noqa: E402
from glucose.retry import fetch_last_with_retry  # noqa: E402
from shared.config import settings  # noqa: E402
from shared.logging import configure_logging  # noqa: E402


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch recent LibreLinkUp glucose readings")
    parser.add_argument("--username", default=settings.libre_username, help="Account email")
    parser.add_argument("--password", default=settings.libre_password, help="Account password")
    parser.add_argument(
        "--region",
        choices=[s.name.lower() for s in KnownShareServers],
        default=None,
        help="LibreView region (default: GS_LIBRE_BASE_URL)",
    )
    parser.add_argument(
        "--count",
        type=int,
        default=settings.default_reading_count,
        help=f"Number of readings (default: {settings.default_reading_count})",
    )
    parser.add_argument("--retry", action="store_true", help="Retry transient failures")
    parser.add_argument("--json", action="store_true", help="Print readings as JSON lines")
    parser.add_argument("--verbose", action="store_true", help="Log client activity to stderr")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace, api_service: LibreApiService | None = None) -> int:
    server = KnownShareServers[args.region.upper()] if args.region else settings.libre_base_url
    client = ShareClient(
        args.username, args.password, share_server=server, api_service=api_service
    )

    try:
        if args.retry:
            readings = await fetch_last_with_retry(client, args.count)
        else:
            readings = await client.fetch_last(args.count)
    except LoginError as exc:
        print(f"ERROR: {exc} (check username/password)", file=sys.stderr)
        return 2
    except ShareError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    for reading in readings:
        if args.json:
            print(reading.model_dump_json())
        else:
            print(f"{reading.timestamp.isoformat()}  {reading.glucose:>3} mg/dL  trend={reading.trend}")
    return 0


def main() -> None:
    args = parse_args()
    configure_logging(json_output=False, level=logging.DEBUG if args.verbose else logging.WARNING)
    if not args.username or not args.password:
        print("ERROR: --username and --password (or GS_LIBRE_*) are required", file=sys.stderr)
        sys.exit(2)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
