"""Custom exception hierarchy for the forwarding proxy."""


class ForwarderError(Exception):
    """Base exception for all forwarding errors.

    Attributes:
        error: Short label returned to the caller in the ``error`` field
        status_code: HTTP status returned to the caller
    """

    error = "Failed to forward request"
    status_code = 500


class InvalidTarget(ForwarderError):
    """Raised when the inbound path does not resolve to a usable URL."""

    error = "Invalid target URL"


class UpstreamError(ForwarderError):
    """Raised when the outbound call fails at the network level.

    Attributes:
        message: Error message
        cause: Underlying transport exception (optional)
    """

    error = "Upstream connection error"

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class UpstreamTimeout(UpstreamError):
    """Raised when the outbound call exceeds the forwarding timeout."""

    error = "Upstream timeout"

    def __init__(self, timeout: float, cause: Exception | None = None) -> None:
        super().__init__(f"No response from upstream within {timeout:g}s", cause)
        self.timeout = timeout


class InvalidUpstreamBody(ForwarderError):
    """Upstream declared a JSON content type but the body does not parse."""

    error = "Invalid upstream body"


class MalformedOverride(ForwarderError):
    """Header override matches neither the JSON nor the Name:Value syntax.

    Never surfaced to the caller; the override is dropped.
    """

    error = "Malformed override"
    status_code = 400


class RequestTooLarge(ForwarderError):
    """Request body exceeds size limit."""

    error = "Request body too large"
    status_code = 413
