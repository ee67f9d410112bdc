"""Tests for the LibreLinkUp mapper, fixture service and service factory."""

from datetime import UTC, datetime
from unittest.mock import patch

import pytest

from glucose.adapters.factory import get_api_service
from glucose.adapters.libre_fixture import FixtureLibreApiService
from glucose.adapters.libre_mapper import LibreMapper, parse_vendor_timestamp
from glucose.adapters.libre_objects import GraphData
from glucose.errors import ApiError, LoginApiError
from tests.conftest import FIXTURES_DIR, bad_credentials_envelope, measurement


def _graph(history: list[dict], current: dict, graph_response: dict) -> GraphData:
    data = graph_response["data"]
    data["graphData"] = history
    data["connection"]["glucoseMeasurement"] = current
    return GraphData.model_validate(data)


class TestParseVendorTimestamp:
    def test_afternoon(self):
        assert parse_vendor_timestamp("3/15/2024 2:15:00 PM") == datetime(
            2024, 3, 15, 14, 15, tzinfo=UTC
        )

    def test_zero_padded(self):
        assert parse_vendor_timestamp("03/05/2024 09:07:30 AM") == datetime(
            2024, 3, 5, 9, 7, 30, tzinfo=UTC
        )

    def test_midnight_is_hour_zero(self):
        assert parse_vendor_timestamp("3/15/2024 12:05:00 AM").hour == 0

    def test_noon_is_hour_twelve(self):
        assert parse_vendor_timestamp("3/15/2024 12:05:00 PM").hour == 12

    def test_result_is_utc(self):
        assert parse_vendor_timestamp("3/15/2024 2:15:00 PM").tzinfo == UTC

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "2024-03-15T14:15:00Z",
            "3/15/2024 14:15:00 PM",
            "3/15/2024 2:15:00",
            "13/15/2024 2:15:00 PM",
            "3/15/2024 2:15:00 XM",
        ],
    )
    def test_malformed_returns_none(self, value):
        assert parse_vendor_timestamp(value) is None


class TestLibreMapper:
    def test_bundled_graph(self, graph_response):
        graph = GraphData.model_validate(graph_response["data"])
        readings = LibreMapper().parse(graph)

        assert [r.glucose for r in readings] == [104, 109, 112, 118]
        assert readings[-1].timestamp == datetime(2024, 3, 15, 14, 15, tzinfo=UTC)

    def test_snapshot_appended_last(self, graph_response):
        graph = _graph(
            [measurement("3/15/2024 2:20:00 PM", 90)],
            measurement("3/15/2024 2:10:00 PM", 150),
            graph_response,
        )
        readings = LibreMapper().parse(graph)
        # Position, not timestamp, decides order
        assert [r.glucose for r in readings] == [90, 150]

    def test_malformed_timestamp_dropped_without_affecting_siblings(self, graph_response):
        graph = _graph(
            [
                measurement("3/15/2024 1:45:00 PM", 101),
                measurement("not a timestamp", 999),
                measurement("3/15/2024 1:55:00 PM", 103),
            ],
            measurement("3/15/2024 2:00:00 PM", 104),
            graph_response,
        )
        readings = LibreMapper().parse(graph)
        assert [r.glucose for r in readings] == [101, 103, 104]

    def test_malformed_snapshot_dropped(self, graph_response):
        graph = _graph(
            [measurement("3/15/2024 1:45:00 PM", 101)],
            measurement("", 150),
            graph_response,
        )
        assert [r.glucose for r in LibreMapper().parse(graph)] == [101]

    def test_out_of_range_value_dropped_without_affecting_siblings(self, graph_response):
        graph = _graph(
            [
                measurement("3/15/2024 1:45:00 PM", 101),
                measurement("3/15/2024 1:50:00 PM", -1),
                measurement("3/15/2024 1:55:00 PM", 0x10000),
            ],
            measurement("3/15/2024 2:00:00 PM", 104),
            graph_response,
        )
        assert [r.glucose for r in LibreMapper().parse(graph)] == [101, 104]

    def test_out_of_range_trend_dropped(self, graph_response):
        graph = _graph(
            [measurement("3/15/2024 1:45:00 PM", 101)],
            measurement("3/15/2024 2:00:00 PM", 150, trend=256),
            graph_response,
        )
        assert [r.glucose for r in LibreMapper().parse(graph)] == [101]

    def test_trend_passed_through(self, graph_response):
        graph = GraphData.model_validate(graph_response["data"])
        readings = LibreMapper().parse(graph)
        assert readings[-1].trend == 3
        # History records carry no TrendArrow
        assert all(r.trend == 0 for r in readings[:-1])

    def test_empty_history(self, graph_response):
        graph = _graph([], measurement("3/15/2024 2:00:00 PM", 104), graph_response)
        assert [r.glucose for r in LibreMapper().parse(graph)] == [104]


class TestFixtureService:
    async def test_full_handshake(self, fixture_service):
        ticket = await fixture_service.sign_in("a@example.com", "pw")
        assert ticket.token == "login-ticket-token"

        refreshed = await fixture_service.refresh_ticket(ticket.token)
        assert refreshed.token == "session-ticket-token"

        patients = await fixture_service.list_patients(refreshed.token)
        assert [p.patientId for p in patients] == ["P1"]

        graph = await fixture_service.fetch_graph(refreshed.token, "P1")
        assert len(graph.graphData) == 3

    async def test_records_calls_in_order(self, fixture_service):
        await fixture_service.sign_in("a@example.com", "pw")
        await fixture_service.refresh_ticket("login-ticket-token")
        assert fixture_service.calls == [
            ("sign_in", "a@example.com"),
            ("refresh_ticket", "login-ticket-token"),
        ]

    async def test_status_two_envelope_is_login_error(self, payloads):
        payloads["login"] = bad_credentials_envelope()
        service = FixtureLibreApiService(payloads)
        with pytest.raises(LoginApiError):
            await service.sign_in("a@example.com", "wrong")

    async def test_injected_failure(self, payloads):
        service = FixtureLibreApiService(payloads, failures={"graph": ApiError()})
        with pytest.raises(ApiError):
            await service.fetch_graph("t", "P1")

    async def test_missing_payload_is_api_error_without_payload(self):
        service = FixtureLibreApiService({})
        with pytest.raises(ApiError) as exc_info:
            await service.list_patients("t")
        assert not exc_info.value.has_payload

    def test_from_directory_loads_bundled_payloads(self):
        service = FixtureLibreApiService.from_directory(FIXTURES_DIR)
        assert set(service.payloads) == {"login", "update_account", "connections", "graph"}


class TestServiceFactory:
    def test_fixture_mode_returns_fixture_service(self):
        with patch("glucose.adapters.factory.settings") as mock_settings:
            mock_settings.adapter_mode = "fixture"
            mock_settings.fixture_dir = ""
            service = get_api_service()
            assert isinstance(service, FixtureLibreApiService)

    def test_live_mode_returns_live_service(self):
        with patch("glucose.adapters.factory.settings") as mock_settings:
            mock_settings.adapter_mode = "live"
            service = get_api_service(base_url="https://api-eu.libreview.io")
            from glucose.adapters.libre_live import NetworkLibreApiService

            assert isinstance(service, NetworkLibreApiService)
            assert service._transport.base_url == "https://api-eu.libreview.io"

    def test_unsupported_mode_raises(self):
        with patch("glucose.adapters.factory.settings") as mock_settings:
            mock_settings.adapter_mode = "replay"
            with pytest.raises(ValueError, match="Unsupported adapter_mode"):
                get_api_service()

    def test_services_implement_protocol(self):
        """Both services satisfy the LibreApiService protocol."""
        from glucose.adapters.protocol import LibreApiService

        for mode in ("fixture", "live"):
            with patch("glucose.adapters.factory.settings") as mock_settings:
                mock_settings.adapter_mode = mode
                mock_settings.fixture_dir = ""
                assert isinstance(get_api_service(), LibreApiService)
