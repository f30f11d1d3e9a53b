"""Header construction for upstream requests."""

import json
from collections.abc import Iterable
from typing import Any
from urllib.parse import unquote

import httpx

from core.exceptions import MalformedOverride


def parse_header_override(raw: str) -> dict[str, str]:
    """Parse a ``headers`` query value.

    Accepts a JSON object (``{"Accept": "application/json"}``) or a single
    ``Name:Value`` pair split on the first colon.

    Raises:
        MalformedOverride: Neither syntax matches.
    """
    decoded = unquote(raw)
    try:
        parsed = json.loads(decoded)
    except json.JSONDecodeError:
        parsed = None

    if isinstance(parsed, dict):
        return {str(name): _header_value(value) for name, value in parsed.items()}

    name, sep, value = decoded.partition(":")
    name = name.strip()
    if not sep or not name:
        raise MalformedOverride("Header override is neither a JSON object nor Name:Value")
    return {name: value.strip()}


def _header_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)


class HeaderBuilder:
    """Build upstream headers from the inbound request."""

    def __init__(self, stripped_headers: Iterable[str] = ("accept-encoding",)) -> None:
        self._stripped = frozenset(name.lower() for name in stripped_headers)

    def build_forward_headers(
        self,
        inbound_headers: Iterable[tuple[str, str]],
        overrides: dict[str, str] | None = None,
    ) -> httpx.Headers:
        """Copy inbound headers minus hop-by-hop ones, then apply overrides.

        Inbound values arrive latin-1 decoded and are re-encoded the same way;
        override values are sent as UTF-8.
        """
        overrides = overrides or {}
        replaced = {key.lower() for key in overrides} | self._stripped
        raw = [
            (key.encode("latin-1"), value.encode("latin-1"))
            for key, value in inbound_headers
            if key.lower() not in replaced
        ]
        raw.extend((key.encode(), value.encode()) for key, value in overrides.items())
        return httpx.Headers(raw)
