from __future__ import annotations


class NewsdeskError(RuntimeError):
    """Base error. ``str(exc)`` reads ``"KIND: detail"``."""

    kind = "NEWSDESK_ERROR"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"{self.kind}: {detail}")


class UpstreamUnavailableError(NewsdeskError):
    kind = "UPSTREAM_UNAVAILABLE"


class MalformedResponseError(NewsdeskError):
    kind = "MALFORMED_RESPONSE"


class AuthRequiredError(NewsdeskError):
    kind = "AUTH_REQUIRED"


class NotPrivilegedError(NewsdeskError):
    kind = "NOT_PRIVILEGED"


class RateStoreUnavailableError(NewsdeskError):
    kind = "LOCAL_STORAGE_UNAVAILABLE"


RETRYABLE_ERRORS = (UpstreamUnavailableError, MalformedResponseError)
