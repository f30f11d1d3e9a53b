import pytest

from core.exceptions import InvalidUpstreamBody
from core.transform import reserialize_json, resolve_body, try_reserialize_json


class TestResolveBody:
    def test_json_d_param_is_canonicalized(self):
        assert resolve_body('{ "a" : 1 }', None) == b'{"a":1}'

    def test_url_encoded_d_param(self):
        assert resolve_body("%7B%22a%22%3A1%7D", None) == b'{"a":1}'

    def test_plain_d_param_used_verbatim(self):
        assert resolve_body("plain-text", None) == b"plain-text"

    def test_d_param_wins_over_raw_body(self):
        assert resolve_body('{"a":1}', b'{"b":2}') == b'{"a":1}'

    def test_empty_d_param_keeps_raw_body(self):
        assert resolve_body("", b'{"raw":1}') == b'{"raw":1}'

    def test_non_ascii_text_is_kept(self):
        assert resolve_body('{"name":"Zoë"}', None) == '{"name":"Zoë"}'.encode()

    @pytest.mark.parametrize("raw", [b'{ "x": 1 }', b"not json", b"\x00\xff"])
    def test_raw_body_passes_through_unchanged(self, raw):
        assert resolve_body(None, raw) == raw

    @pytest.mark.parametrize("raw", [None, b""])
    def test_no_body(self, raw):
        assert resolve_body(None, raw) is None


class TestReserializeJson:
    def test_compacts_whitespace(self):
        assert reserialize_json(b'{\n  "ok": true,\n  "n": [1, 2]\n}') == b'{"ok":true,"n":[1,2]}'

    def test_malformed_raises(self):
        with pytest.raises(InvalidUpstreamBody):
            reserialize_json(b"{not json")

    def test_try_variant_returns_none(self):
        assert try_reserialize_json(b"<html>") is None
