"""Error taxonomy for the LibreLinkUp client.

Two vocabularies:
- LibreApiError: closed set of internal failure kinds raised by the transport,
  the session API and the session manager.
- ShareError: the narrower public vocabulary ShareClient callers see. It hides
  transport detail from consumers that only need "did it work".

to_share_error() is the single translation point between the two.
"""

from enum import StrEnum


class LibreApiErrorKind(StrEnum):
    DEFAULT = "default"
    ENCODING = "encoding"
    DECODING = "decoding"
    API = "api"
    LOGIN_FAILED = "login_failed"
    NO_ACTIVE_PATIENT = "no_active_patient"
    NO_TOKEN = "no_token"


class LibreApiError(Exception):
    kind = LibreApiErrorKind.DEFAULT
    message = "An unknown error occurred"

    def __init__(self, detail: str | None = None):
        self.detail = detail
        super().__init__(self.describe())

    def describe(self) -> str:
        return self.message


class EncodingError(LibreApiError):
    kind = LibreApiErrorKind.ENCODING
    message = "Unable to encode the API data"


class DecodingError(LibreApiError):
    kind = LibreApiErrorKind.DECODING
    message = "Unable to decode the API data"


class ApiError(LibreApiError):
    """Vendor-reported or transport-level failure.

    status is the vendor envelope's status code; None means no payload was
    returned at all (network failure, timeout).
    """

    kind = LibreApiErrorKind.API
    message = "API Error"

    def __init__(
        self,
        status: int | None = None,
        vendor_message: str | None = None,
        http_status: int | None = None,
    ):
        self.status = status
        self.vendor_message = vendor_message
        self.http_status = http_status
        super().__init__(vendor_message)

    @property
    def has_payload(self) -> bool:
        return self.status is not None

    @property
    def is_auth_failure(self) -> bool:
        return self.http_status in (401, 403)

    def describe(self) -> str:
        if self.vendor_message:
            return f"{self.message}: {self.vendor_message}"
        return self.message


class LoginApiError(LibreApiError):
    kind = LibreApiErrorKind.LOGIN_FAILED
    message = "Could not login, incorrect email or password"


class NoActivePatientError(LibreApiError):
    kind = LibreApiErrorKind.NO_ACTIVE_PATIENT
    message = "No active patient saved"


class NoTokenError(LibreApiError):
    kind = LibreApiErrorKind.NO_TOKEN
    message = "No token found for login session"


# --- Public vocabulary ---


class ShareError(Exception):
    """Base class for everything ShareClient raises."""


class HttpError(ShareError):
    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"HTTP error: {cause}")


class LoginError(ShareError):
    # Known codes: SSO_AuthenticateAccountNotFound, SSO_AuthenticatePasswordInvalid,
    # SSO_AuthenticateMaxAttemptsExceeed
    def __init__(self, error_code: str):
        self.error_code = error_code
        super().__init__(f"Login failed: {error_code}")


class FetchError(ShareError):
    def __init__(self, detail: str = "Unable to fetch readings"):
        super().__init__(detail)


class DataError(ShareError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Data error: {reason}")


class DateError(ShareError):
    def __init__(self, detail: str = "Invalid date"):
        super().__init__(detail)


PASSWORD_INVALID = "SSO_AuthenticatePasswordInvalid"


def to_share_error(exc: LibreApiError) -> ShareError:
    """Re-express an internal failure in the public ShareError vocabulary."""
    match exc.kind:
        case LibreApiErrorKind.LOGIN_FAILED:
            return LoginError(PASSWORD_INVALID)
        case LibreApiErrorKind.API if not exc.has_payload:
            return HttpError(exc)
        case LibreApiErrorKind.ENCODING | LibreApiErrorKind.DECODING:
            return DataError(str(exc))
        case _:
            return FetchError(str(exc))
