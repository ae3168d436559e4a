"""
Error taxonomy for page fetching.

Every kind is terminal for the request that raised it; nothing here is retried.
Each exception carries a ``user_message`` suitable for showing as-is.
"""
from typing import Optional

GENERIC_ERROR_MESSAGE = (
    "An unexpected error occurred. Please try again and if the issue persists, contact support."
)
CORS_HINT = (
    " This may be due to CORS restrictions. "
    "Please ensure the target website allows cross-origin requests."
)


class AdvisorError(Exception):
    """Base class for errors surfaced to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def user_message(self) -> str:
        return self.message


class InputError(AdvisorError):
    """Missing or malformed URL/keyword, rejected before any network call."""
    pass


class UpstreamHTTPError(AdvisorError):
    """The proxy or the target answered with a status >= 400."""

    def __init__(self, status: int, reason: Optional[str] = None):
        self.status = status
        self.reason = reason or ""
        message = f"Server responded with status {status}"
        if self.reason:
            message += f": {self.reason}"
        super().__init__(message)

    @property
    def user_message(self) -> str:
        if self.status in (0, 403):
            return self.message + CORS_HINT
        return self.message


class NetworkError(AdvisorError):
    """No response was received at all."""

    def __init__(self, message: str = None):
        super().__init__(
            message or "Network error: No response received. "
                       "Please check your internet connection and try again."
        )


class NetworkTimeoutError(NetworkError):
    """The request was sent but timed out."""

    def __init__(self, message: str = None):
        super().__init__(message or "Request timed out. The server took too long to respond.")


class ParseError(AdvisorError):
    """The fetch succeeded but the body is empty or not text."""

    def __init__(self, message: str = None):
        super().__init__(message or "Received empty or invalid HTML from the proxy server")


def describe_error(exc: BaseException) -> str:
    """Map any exception to the message shown to the user."""
    if isinstance(exc, AdvisorError):
        return exc.user_message
    return GENERIC_ERROR_MESSAGE
