"""Shared request data types."""

from dataclasses import dataclass, field

import httpx

BODY_METHODS = frozenset({"POST", "PUT"})


@dataclass(frozen=True)
class InboundRequest:
    """Framework-independent view of a request received by the proxy."""

    method: str
    path_segments: tuple[str, ...]
    query_params: dict[str, str] = field(default_factory=dict)
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: bytes | None = None

    @property
    def carries_body(self) -> bool:
        return self.method in BODY_METHODS


@dataclass(frozen=True)
class PreparedRequest:
    """Prepared data for an upstream request."""

    method: str
    target_url: str
    headers: httpx.Headers
    body: bytes | None = None


@dataclass(frozen=True)
class OutboundResponse:
    """Response handed back to the original caller."""

    status_code: int
    headers: dict[str, str]
    content: bytes = b""
