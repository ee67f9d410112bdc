"""RFC 9457 Problem Details exception hierarchy.

All API errors extend ProblemDetailError and are converted to
application/problem+json responses by the exception handler middleware.
"""

PROBLEM_BASE = "https://api.glucose-share.dev/problems"


class ProblemDetailError(Exception):
    def __init__(
        self,
        type_uri: str,
        title: str,
        status: int,
        detail: str,
        violations: list[dict] | None = None,
    ):
        self.type_uri = type_uri
        self.title = title
        self.status = status
        self.detail = detail
        self.violations = violations
        super().__init__(detail)


class UpstreamLoginError(ProblemDetailError):
    def __init__(self, error_code: str):
        super().__init__(
            type_uri=f"{PROBLEM_BASE}/upstream-login-failed",
            title="Upstream Login Failed",
            status=401,
            detail=(
                f"LibreLinkUp rejected the configured credentials ({error_code}). "
                "Retrying with the same credentials will not succeed."
            ),
        )


class UpstreamUnavailableError(ProblemDetailError):
    def __init__(self, detail: str):
        super().__init__(
            type_uri=f"{PROBLEM_BASE}/upstream-unavailable",
            title="Upstream Unavailable",
            status=503,
            detail=detail,
        )


class UpstreamFetchError(ProblemDetailError):
    def __init__(self, detail: str):
        super().__init__(
            type_uri=f"{PROBLEM_BASE}/upstream-fetch-failed",
            title="Upstream Fetch Failed",
            status=502,
            detail=detail,
        )


class UpstreamDataError(ProblemDetailError):
    def __init__(self, reason: str):
        super().__init__(
            type_uri=f"{PROBLEM_BASE}/upstream-data-error",
            title="Upstream Data Error",
            status=502,
            detail=f"LibreLinkUp returned data that could not be processed: {reason}",
        )


class InvalidTimestampError(ProblemDetailError):
    def __init__(self, value: str):
        super().__init__(
            type_uri=f"{PROBLEM_BASE}/invalid-timestamp",
            title="Invalid Timestamp",
            status=400,
            detail=f"Parameter 'since' ({value}) must include a UTC offset",
        )
