import httpx
import pytest

from core.config import Config
from core.headers import HeaderBuilder
from core.response import ResponseShaper
from services.forwarder import Forwarder
from services.upstream import UpstreamClient


class RecordingLogger:
    """Collect everything the proxy would log, in place of the Dashboard."""

    def __init__(self):
        self.forwarded = []
        self.responses = []
        self.errors = []

    def log_forward(self, method, url, headers, body=None):
        self.forwarded.append((method, url, headers, body))

    def log_response(self, method, url, status):
        self.responses.append((method, url, status))

    def log_error(self, route, status, message):
        self.errors.append((route, status, message))

    def all_text(self) -> str:
        return repr((self.forwarded, self.responses, self.errors))


@pytest.fixture(autouse=True)
def no_port_env(monkeypatch):
    monkeypatch.delenv("PORT", raising=False)


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def make_forwarder(config, logger):
    """Build a Forwarder whose upstream is an httpx.MockTransport handler."""

    def _make(handler, timeout=None):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        upstream = UpstreamClient(client, timeout=timeout or config.forward.timeout)
        return Forwarder(
            upstream=upstream,
            logger=logger,
            header_builder=HeaderBuilder(config.forward.stripped_headers),
            shaper=ResponseShaper(config.cors),
        )

    return _make
