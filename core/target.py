"""Target URL resolution from the inbound path."""

import re
from collections.abc import Iterable, Mapping

import httpx

from core.exceptions import InvalidTarget

KEY_PARAM = "key"
RESERVED_PARAMS = frozenset({"headers", "d", KEY_PARAM})

# Some intermediaries collapse "https://" in a path to "https:/"
_SCHEME_PREFIX = re.compile(r"^(https?):/+", re.IGNORECASE)


def join_target_path(path_segments: Iterable[str]) -> str:
    """Join path segments and make sure the result carries an http(s) scheme."""
    joined = "/".join(path_segments)
    if _SCHEME_PREFIX.match(joined):
        return _SCHEME_PREFIX.sub(lambda m: f"{m.group(1).lower()}://", joined, count=1)
    return f"https://{joined}"


def resolve_target(
    path_segments: Iterable[str],
    query_params: Mapping[str, str],
) -> str:
    """Build the upstream URL from the inbound path and query.

    Every non-reserved query parameter overwrites a same-named parameter of the
    target. ``key`` is moved onto the target URL last.

    Raises:
        InvalidTarget: The joined path is not an http(s) URL with a host.
    """
    raw = join_target_path(path_segments)
    try:
        url = httpx.URL(raw)
    except httpx.InvalidURL as e:
        raise InvalidTarget(f"Cannot parse target URL {raw!r}: {e}") from e

    if url.scheme not in ("http", "https") or not url.host:
        raise InvalidTarget(f"Target URL {raw!r} has no host")

    for name, value in query_params.items():
        if name in RESERVED_PARAMS:
            continue
        url = url.copy_set_param(name, value)

    api_key = query_params.get(KEY_PARAM)
    if api_key is not None:
        url = url.copy_set_param(KEY_PARAM, api_key)

    return str(url)
