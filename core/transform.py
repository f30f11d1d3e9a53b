"""Request and response body transformations."""

import json
from typing import Any
from urllib.parse import unquote

from core.exceptions import InvalidUpstreamBody


def dump_json(data: Any) -> bytes:
    """Serialize to compact JSON, keeping key order and non-ASCII text."""
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode()


def resolve_body(d_param: str | None, raw_body: bytes | None) -> bytes | None:
    """Pick the outbound body.

    The ``d`` query value wins: canonical JSON when it parses, the decoded
    string otherwise. Without it the inbound body is passed through untouched.
    """
    if d_param:
        decoded = unquote(d_param)
        try:
            return dump_json(json.loads(decoded))
        except json.JSONDecodeError:
            return decoded.encode()

    if raw_body:
        return raw_body
    return None


def reserialize_json(content: bytes) -> bytes:
    """Parse an upstream JSON body and serialize it again.

    Raises:
        InvalidUpstreamBody: The body is not well-formed JSON.
    """
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidUpstreamBody(f"Upstream declared JSON but sent malformed body: {e}") from e
    return dump_json(data)


def try_reserialize_json(content: bytes) -> bytes | None:
    """Like reserialize_json, but return None for non-JSON bodies."""
    try:
        return reserialize_json(content)
    except InvalidUpstreamBody:
        return None
