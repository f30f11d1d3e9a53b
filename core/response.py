"""Shape upstream responses for the original caller."""

import httpx

from core.config import CorsSettings
from core.exceptions import ForwarderError
from core.request_types import OutboundResponse
from core.transform import dump_json, reserialize_json, try_reserialize_json

JSON_MEDIA_TYPE = "application/json"


class ResponseShaper:
    """Attach CORS headers and normalize bodies on every exit path."""

    def __init__(self, cors: CorsSettings) -> None:
        self._cors = cors

    def cors_headers(self) -> dict[str, str]:
        return {
            "Access-Control-Allow-Origin": self._cors.allow_origin,
            "Access-Control-Allow-Methods": ", ".join(self._cors.allow_methods),
            "Access-Control-Allow-Headers": self._cors.allow_headers,
        }

    def shape(self, response: httpx.Response) -> OutboundResponse:
        """Convert an upstream response, keeping its status code.

        Raises:
            InvalidUpstreamBody: Declared JSON that does not parse.
        """
        declared = response.headers.get("content-type")
        content_type = declared or JSON_MEDIA_TYPE
        content = response.content

        if content and declared and JSON_MEDIA_TYPE in declared.lower():
            content = reserialize_json(content)
            content_type = _utf8_content_type(content_type)
        elif content and response.status_code >= 400:
            # Error bodies are often JSON regardless of the declared type
            reserialized = try_reserialize_json(content)
            if reserialized is not None:
                content = reserialized
                content_type = _utf8_content_type(content_type)

        shaped = self._build(response.status_code, content, content_type)
        # Only seen when redirects are not followed
        location = response.headers.get("location")
        if location:
            shaped.headers["Location"] = location
        return shaped

    def error(self, exc: ForwarderError) -> OutboundResponse:
        payload = {"error": exc.error, "details": str(exc) or exc.error}
        return self._build(exc.status_code, dump_json(payload), JSON_MEDIA_TYPE)

    def preflight(self) -> OutboundResponse:
        return OutboundResponse(status_code=200, headers=self.cors_headers())

    def _build(self, status_code: int, content: bytes, content_type: str) -> OutboundResponse:
        headers = self.cors_headers()
        headers["Content-Type"] = content_type
        return OutboundResponse(status_code=status_code, headers=headers, content=content)


def _utf8_content_type(content_type: str) -> str:
    """Relabel a declared charset as utf-8 once the body has been re-encoded."""
    media_type, *params = [part.strip() for part in content_type.split(";")]
    if not any(param.lower().startswith("charset=") for param in params):
        return content_type
    params = [param for param in params if not param.lower().startswith("charset=")]
    return "; ".join([media_type, *params, "charset=utf-8"])
