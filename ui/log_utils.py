"""Shared logging utilities."""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from urllib.parse import quote, quote_plus
from uuid import uuid4

import httpx

LOG_ROOT = Path.cwd() / "logs"
CLI_LOG_FILE = LOG_ROOT / "proxy.log"
MASK = "****"
BODY_PREVIEW_CHARS = 500


def redact_secret(text: str, secret: str | None) -> str:
    """Replace every plain or URL-encoded occurrence of secret in text."""
    if not secret:
        return text
    for variant in {secret, quote(secret, safe=""), quote_plus(secret)}:
        text = text.replace(variant, MASK)
    return text


def body_preview(body: bytes | None, limit: int = BODY_PREVIEW_CHARS) -> str:
    """Decode the start of a body for logging."""
    if not body:
        return ""
    text = body[:limit].decode("utf-8", errors="replace")
    if len(body) > limit:
        text += "..."
    return text


def write_forward_log(
    method: str,
    url: str,
    headers: dict[str, str],
    body: bytes | None,
    *,
    log_root: Path = LOG_ROOT,
) -> Path:
    """Write a single forwarded request log entry.

    ``url`` must already be redacted.
    """
    payload = {
        "timestamp": _utc_now(),
        "method": method,
        "url": url,
        "headers": _redact_headers(headers),
        "body": body_preview(body),
    }
    return _write_json(_host_folder(log_root / "forward", url), payload)


def write_cli_log(
    level: str,
    message: str,
    **extra: Any,
) -> None:
    """Append a line to the rolling CLI log file."""
    CLI_LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
    extra_str = " ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""
    line = f"[{timestamp}] {level}: {message}"
    if extra_str:
        line += f" {extra_str}"
    line += "\n"
    with CLI_LOG_FILE.open("a") as f:
        f.write(line)


def clear_logs(log_root: Path = LOG_ROOT) -> int:
    """Remove per-request log files from a previous run."""
    folder = log_root / "forward"
    if not folder.exists():
        return 0

    deleted = 0
    for old_file in folder.rglob("*.json"):
        try:
            old_file.unlink()
            deleted += 1
        except OSError:
            pass
    return deleted


def _write_json(folder: Path, payload: dict[str, Any]) -> Path:
    """Write payload to a unique JSON file in the given folder."""
    folder.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S.%fZ")
    file_path = folder / f"{timestamp}_{uuid4().hex}.json"
    file_path.write_text(json.dumps(payload, indent=2, default=str))
    return file_path


def _host_folder(base: Path, url: str) -> Path:
    try:
        host = httpx.URL(url).host
    except httpx.InvalidURL:
        return base
    # Only keep characters that are safe in a folder name
    safe = "".join(c for c in host if c.isalnum() or c in ".-")
    return base / safe if safe.strip(".") else base


def _redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Redact sensitive headers."""
    redacted = {}
    for key, value in headers.items():
        if "key" in key.lower() or "authorization" in key.lower():
            redacted[key] = _mask(value)
        else:
            redacted[key] = value
    return redacted


def _mask(value: str) -> str:
    if len(value) <= 10:
        return "***"
    return value[:6] + "..." + value[-4:]


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()
