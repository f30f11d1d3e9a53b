"""FastAPI application factory."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request

from api.handlers import handle_forward, handle_usage, to_response
from core.config import Config
from core.exceptions import ForwarderError
from core.headers import HeaderBuilder
from core.protocols import RequestLogger
from core.response import ResponseShaper
from core.target import KEY_PARAM
from services.forwarder import Forwarder
from services.upstream import UpstreamClient
from ui.log_utils import redact_secret

FORWARD_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]


def create_app(
    config: Config,
    logger: RequestLogger,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        limits = httpx.Limits(max_connections=100, max_keepalive_connections=20)
        client = httpx.AsyncClient(
            timeout=config.forward.timeout,
            limits=limits,
            transport=transport,
        )
        app.state.forwarder = Forwarder(
            upstream=UpstreamClient(
                client,
                timeout=config.forward.timeout,
                follow_redirects=config.forward.follow_redirects,
            ),
            logger=logger,
            header_builder=HeaderBuilder(config.forward.stripped_headers),
            shaper=ResponseShaper(config.cors),
        )
        try:
            yield
        finally:
            await client.aclose()

    # No docs routes: every path belongs to the catch-all
    app = FastAPI(
        title="CORS Relay",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    async def usage(request: Request):
        return await handle_usage(request, config)

    # Ahead of the catch-all, which would treat "/" as an empty target
    app.add_api_route("/", usage, methods=["GET"], include_in_schema=False)

    async def proxy_forward(request: Request, path: str):
        return await handle_forward(request, path, config)

    for mount in config.proxy.mount_paths:
        app.add_api_route(
            f"{mount.rstrip('/')}/{{path:path}}",
            proxy_forward,
            methods=FORWARD_METHODS,
            include_in_schema=False,
        )

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        api_key = request.query_params.get(KEY_PARAM)
        logger.log_error(request.method, 500, redact_secret(repr(exc), api_key))
        error = ForwarderError(redact_secret(str(exc), api_key))
        return to_response(ResponseShaper(config.cors).error(error))

    return app
