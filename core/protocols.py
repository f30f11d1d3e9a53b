"""Shared protocol definitions."""

from typing import Protocol


class RequestLogger(Protocol):
    """Protocol for request logging (Dashboard).

    Implementations receive URLs that are already redacted.
    """

    def log_forward(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None = None,
    ) -> None: ...
    def log_response(self, method: str, url: str, status: int) -> None: ...
    def log_error(self, route: str, status: int, message: str) -> None: ...
