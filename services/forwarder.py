"""Forwarding pipeline: inbound request in, shaped response out."""

from core.exceptions import ForwarderError, MalformedOverride
from core.headers import HeaderBuilder, parse_header_override
from core.protocols import RequestLogger
from core.request_types import InboundRequest, OutboundResponse, PreparedRequest
from core.response import ResponseShaper
from core.target import KEY_PARAM, resolve_target
from core.transform import resolve_body
from services.upstream import UpstreamClient
from ui.log_utils import redact_secret

HEADERS_PARAM = "headers"
BODY_PARAM = "d"


class Forwarder:
    """Relay one inbound request to the target encoded in its path."""

    def __init__(
        self,
        upstream: UpstreamClient,
        logger: RequestLogger,
        header_builder: HeaderBuilder,
        shaper: ResponseShaper,
    ) -> None:
        self._upstream = upstream
        self._logger = logger
        self._headers = header_builder
        self._shaper = shaper

    @property
    def shaper(self) -> ResponseShaper:
        return self._shaper

    def prepare(self, inbound: InboundRequest) -> PreparedRequest:
        """Resolve target, headers and body for the outbound call.

        Raises:
            InvalidTarget: The path does not encode a usable URL.
        """
        target_url = resolve_target(inbound.path_segments, inbound.query_params)
        overrides = self._parse_overrides(inbound)
        headers = self._headers.build_forward_headers(inbound.headers, overrides)

        body = None
        if inbound.carries_body:
            body = resolve_body(inbound.query_params.get(BODY_PARAM), inbound.body)

        return PreparedRequest(inbound.method, target_url, headers, body)

    async def handle(self, inbound: InboundRequest) -> OutboundResponse:
        """Run the whole pipeline; forwarding failures become error responses."""
        if inbound.method == "OPTIONS":
            return self._shaper.preflight()

        api_key = inbound.query_params.get(KEY_PARAM)
        try:
            prepared = self.prepare(inbound)
            url = redact_secret(prepared.target_url, api_key)
            self._logger.log_forward(
                prepared.method,
                url,
                dict(prepared.headers),
                prepared.body,
            )
            response = await self._upstream.dispatch(prepared)
            shaped = self._shaper.shape(response)
        except ForwarderError as e:
            message = redact_secret(f"{e.error}: {e}", api_key)
            self._logger.log_error(inbound.method, e.status_code, message)
            return self._shaper.error(e)

        self._logger.log_response(prepared.method, url, response.status_code)
        if response.status_code >= 400:
            self._logger.log_error(
                prepared.method,
                response.status_code,
                redact_secret(response.text, api_key),
            )
        return shaped

    def _parse_overrides(self, inbound: InboundRequest) -> dict[str, str]:
        raw = inbound.query_params.get(HEADERS_PARAM)
        if not raw:
            return {}
        try:
            return parse_header_override(raw)
        except MalformedOverride as e:
            self._logger.log_error(inbound.method, e.status_code, str(e))
            return {}
