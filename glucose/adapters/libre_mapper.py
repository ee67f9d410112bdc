"""LibreLinkUp measurement → canonical ShareGlucose mapper.

Inbound anti-corruption layer: translates the vendor's measurement records
into ShareGlucose readings.

- Timestamps are "MM/dd/yyyy hh:mm:ss a" strings in UTC (FactoryTimestamp).
- A record whose timestamp does not parse, or whose value or trend falls
  outside the reading ranges, is dropped; siblings are kept.
- TrendArrow is passed through when present, otherwise trend is 0.
- History comes first, the live snapshot is appended last.
"""

from datetime import UTC, datetime

import structlog
from pydantic import ValidationError

from glucose.adapters.libre_objects import GlucoseMeasurement, GraphData
from glucose.domain.models import ShareGlucose

logger = structlog.get_logger()

VENDOR_TIMESTAMP_FORMAT = "%m/%d/%Y %I:%M:%S %p"

# strptime's %p honours the process locale; the vendor always sends English AM/PM
_MERIDIEM = {"AM": 0, "PM": 12}


def parse_vendor_timestamp(value: str) -> datetime | None:
    """Parse a vendor timestamp as a UTC instant. None when it does not parse."""
    try:
        clock, meridiem = value.strip().rsplit(" ", 1)
        naive = datetime.strptime(clock, "%m/%d/%Y %I:%M:%S")
        offset = _MERIDIEM[meridiem.upper()]
    except (ValueError, KeyError):
        return None
    hour = naive.hour % 12 + offset
    return naive.replace(hour=hour, tzinfo=UTC)


class LibreMapper:
    source_name = "librelinkup"

    def to_reading(self, measurement: GlucoseMeasurement) -> ShareGlucose | None:
        created = parse_vendor_timestamp(measurement.factory_timestamp)
        if created is None:
            logger.debug(
                "measurement_dropped",
                reason="unparseable_timestamp",
                factory_timestamp=measurement.factory_timestamp,
            )
            return None
        try:
            return ShareGlucose(
                glucose=measurement.value_in_mg_per_dl,
                trend=measurement.trend_arrow or 0,
                timestamp=created,
            )
        except ValidationError as exc:
            logger.debug(
                "measurement_dropped",
                reason="value_out_of_range",
                value=measurement.value_in_mg_per_dl,
                trend=measurement.trend_arrow,
                errors=exc.error_count(),
            )
            return None

    def parse(self, graph: GraphData) -> list[ShareGlucose]:
        """Map graph history plus the current snapshot, oldest first."""
        measurements = [*graph.graphData, graph.connection.glucoseMeasurement]
        results: list[ShareGlucose] = []
        for measurement in measurements:
            reading = self.to_reading(measurement)
            if reading is not None:
                results.append(reading)
        return results
