"""Tests for the fetch_readings CLI.

run() is driven with parsed arguments and, where noted, an injected
fixture service in place of the live vendor API.
"""

import json
from functools import partial

import httpx

from glucose.adapters.http_client import LibreTransport
from glucose.adapters.libre_fixture import FixtureLibreApiService
from glucose.errors import ApiError
from scripts.fetch_readings import parse_args, run
from tests.conftest import PASSWORD, USERNAME, bad_credentials_envelope


def _args(*extra: str):
    return parse_args(["--username", USERNAME, "--password", PASSWORD, *extra])


class TestParseArgs:
    def test_defaults(self):
        args = _args()
        assert args.count == 12
        assert args.region is None
        assert not args.retry
        assert not args.json

    def test_region_and_count(self):
        args = _args("--region", "eu", "--count", "3")
        assert args.region == "eu"
        assert args.count == 3


class TestRun:
    async def test_prints_readings_oldest_first(self, fixture_service, capsys):
        assert await run(_args("--count", "2"), api_service=fixture_service) == 0

        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 2
        assert lines[0].startswith("2024-03-15T13:55:00+00:00")
        assert "112 mg/dL" in lines[0]
        assert lines[1].endswith("118 mg/dL  trend=3")

    async def test_json_output(self, fixture_service, capsys):
        assert await run(_args("--count", "4", "--json"), api_service=fixture_service) == 0

        rows = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
        assert [row["glucose"] for row in rows] == [104, 109, 112, 118]
        assert rows[-1]["trend"] == 3

    async def test_bad_credentials_exit_code(self, payloads, capsys):
        payloads["login"] = bad_credentials_envelope()
        service = FixtureLibreApiService(payloads)

        assert await run(_args(), api_service=service) == 2
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "check username/password" in captured.err

    async def test_fetch_failure_exit_code(self, payloads, capsys):
        service = FixtureLibreApiService(payloads, failures={"graph": ApiError()})

        assert await run(_args(), api_service=service) == 1
        assert capsys.readouterr().err.startswith("ERROR:")

    async def test_region_selects_vendor_host(self, monkeypatch):
        requests: list[httpx.Request] = []

        def unreachable(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        monkeypatch.setattr(
            "glucose.client.LibreTransport",
            partial(LibreTransport, transport=httpx.MockTransport(unreachable)),
        )

        assert await run(_args("--region", "eu")) == 1
        assert requests[0].url.host == "api-eu.libreview.io"
