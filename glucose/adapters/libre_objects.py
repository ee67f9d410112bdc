"""LibreLinkUp wire records.

Pydantic models for the request and response bodies of the four vendor
endpoints, plus the generic error envelope. Field names follow the vendor's
JSON exactly; unknown fields are ignored.
"""

from pydantic import BaseModel, ConfigDict, Field

from shared.config import settings


class _VendorModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# --- Requests ---


class LoginRequest(_VendorModel):
    email: str
    password: str


class UpdateAccountRequest(_VendorModel):
    appVersion: str = Field(default_factory=lambda: settings.libre_app_version)
    phoneLanguage: str = Field(default_factory=lambda: settings.libre_locale)
    uiLanguage: str = Field(default_factory=lambda: settings.libre_locale)
    communicationLanguage: str = Field(default_factory=lambda: settings.libre_locale)


# --- Auth ---


class AuthTicket(_VendorModel):
    token: str
    expires: int
    duration: int


class LoginData(_VendorModel):
    user: dict = Field(default_factory=dict)
    authTicket: AuthTicket


class LoginResponse(_VendorModel):
    status: int
    data: LoginData


class UpdateAccountResponse(_VendorModel):
    ticket: AuthTicket


# --- Connections / graph ---


class Sensor(_VendorModel):
    deviceId: str
    sn: str
    a: int


class GlucoseMeasurement(_VendorModel):
    factory_timestamp: str = Field(..., alias="FactoryTimestamp")
    timestamp: str = Field(..., alias="Timestamp")
    value_in_mg_per_dl: int = Field(..., alias="ValueInMgPerDl")
    trend_arrow: int | None = Field(None, alias="TrendArrow")


class Patient(_VendorModel):
    patientId: str
    firstName: str
    lastName: str
    sensor: Sensor
    targetHigh: int
    targetLow: int
    glucoseMeasurement: GlucoseMeasurement


class ConnectionsResponse(_VendorModel):
    status: int
    data: list[Patient]


class GraphData(_VendorModel):
    connection: Patient
    graphData: list[GlucoseMeasurement]


class GraphResponse(_VendorModel):
    status: int
    data: GraphData


# --- Errors ---


class ApiErrorPayload(_VendorModel):
    message: str


class ApiErrorEnvelope(_VendorModel):
    status: int
    error: ApiErrorPayload
