"""FastAPI route handlers."""

from html import escape

from fastapi import Request, Response
from fastapi.responses import HTMLResponse

from core.config import Config
from core.exceptions import RequestTooLarge
from core.request_types import InboundRequest, OutboundResponse
from services.forwarder import Forwarder

USAGE_EXAMPLES = [
    ("JSON format", '/{target-api-url}?headers={"key":"value","another-key":"another-value"}'),
    ("Simple format", "/{target-api-url}?headers=Accept:application/json"),
    ("Direct request (original headers are forwarded)", "/{target-api-url}"),
    ("Request body", '/{target-api-url}?d={"a":1}'),
    ("JSON API request", '/icanhazdadjoke.com?headers={"Accept":"application/json"}'),
    (
        "Multiple headers",
        '/api.example.com/data?headers={"Authorization":"Bearer token","Accept":"application/json"}',
    ),
    ("Full URL", '/https://api.example.com/data?headers={"Accept":"application/json"}'),
    ("API key", "/generativelanguage.googleapis.com/v1/models?key={api-key}"),
]


async def _read_inbound(request: Request, path: str, config: Config) -> InboundRequest:
    """Map the framework request onto an InboundRequest.

    Raises:
        RequestTooLarge: Body exceeds ``limits.max_body_size``.
    """
    method = request.method.upper()
    body = None
    if method in ("POST", "PUT"):
        body = await request.body()
        if len(body) > config.limits.max_body_size:
            raise RequestTooLarge(
                f"Body of {len(body)} bytes exceeds limit of {config.limits.max_body_size}"
            )

    return InboundRequest(
        method=method,
        path_segments=tuple(path.split("/")),
        # Starlette resolves repeated parameters to the last value
        query_params=dict(request.query_params),
        headers=request.headers.items(),
        body=body,
    )


def to_response(outbound: OutboundResponse) -> Response:
    return Response(
        content=outbound.content,
        status_code=outbound.status_code,
        headers=outbound.headers,
    )


async def handle_forward(request: Request, path: str, config: Config) -> Response:
    """Forward any verb on a catch-all route to the target in its path."""
    forwarder: Forwarder = request.app.state.forwarder
    try:
        inbound = await _read_inbound(request, path, config)
    except RequestTooLarge as e:
        return to_response(forwarder.shaper.error(e))

    return to_response(await forwarder.handle(inbound))


async def handle_usage(request: Request, config: Config) -> Response:
    """Describe how to address targets through the proxy."""
    forwarder: Forwarder = request.app.state.forwarder
    sections = "\n".join(
        f"<h3>{escape(title)}</h3>\n<pre>{escape(example)}</pre>"
        for title, example in USAGE_EXAMPLES
    )
    body = (
        "<!doctype html>\n<html><head><title>CORS Relay</title></head><body>\n"
        "<h1>CORS Relay</h1>\n"
        "<p>Send GET, POST, PUT or DELETE requests to "
        f"<code>http://localhost:{config.proxy.port}/{{target-api-url}}</code>. "
        "Targets without a scheme are fetched over HTTPS.</p>\n"
        f"{sections}\n</body></html>\n"
    )
    return HTMLResponse(body, headers=forwarder.shaper.cors_headers())
