"""Canonical glucose reading model.

One CGM sample normalized from the vendor's measurement record.
Readings are immutable once constructed and are produced only by the
LibreLinkUp mapper.
"""

from datetime import datetime
from enum import StrEnum

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field


class KnownShareServers(StrEnum):
    """LibreView regional API bases."""

    US = "https://api-us.libreview.io"
    EU = "https://api-eu.libreview.io"


class ShareGlucose(BaseModel):
    """One glucose sample: value in mg/dL, vendor trend code, UTC instant."""

    model_config = ConfigDict(frozen=True)

    glucose: int = Field(..., ge=0, le=0xFFFF)
    trend: int = Field(0, ge=0, le=0xFF)
    timestamp: AwareDatetime

    def is_newer_than(self, moment: datetime) -> bool:
        return self.timestamp > moment
