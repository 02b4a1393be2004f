"""Tests for header handling and response finalization."""

import httpx
import pytest

from core.config import ProxyHooks
from core.exceptions import HookError
from core.finalize import finalize_server_response, prepare_modified_content_response
from core.headers import (
    HeaderBuilder,
    is_compressed_encoding,
    parse_set_cookie,
    remove_empty_analytics_cookie,
)
from core.response import OutgoingResponse
from tests.helpers import make_config, make_request


class TestAnalyticsCookie:
    """Test remove_empty_analytics_cookie."""

    def test_empty_value_is_removed(self):
        cookies = ["a=1; Path=/", "SC_ANALYTICS_GLOBAL_COOKIE=; expires=Thu, 01 Jan 1970 00:00:00 GMT", "b=2"]

        assert remove_empty_analytics_cookie(cookies) == ["a=1; Path=/", "b=2"]

    def test_non_empty_value_is_kept(self):
        cookies = ["SC_ANALYTICS_GLOBAL_COOKIE=abc123; Path=/"]

        assert remove_empty_analytics_cookie(cookies) == cookies

    def test_no_cookies(self):
        assert remove_empty_analytics_cookie([]) == []


def test_parse_set_cookie():
    assert parse_set_cookie("name=value; HttpOnly") == ("name", "value")
    assert parse_set_cookie("empty=; Path=/") == ("empty", "")


def test_is_compressed_encoding():
    assert is_compressed_encoding("gzip")
    assert is_compressed_encoding("Deflate")
    assert not is_compressed_encoding("br")
    assert not is_compressed_encoding(None)


class TestHeaderBuilder:
    """Test HeaderBuilder."""

    def test_upstream_headers_drop_hop_by_hop(self):
        headers = {
            "host": "www.example.com",
            "connection": "keep-alive, x-private",
            "x-private": "1",
            "keep-alive": "timeout=5",
            "content-length": "12",
            "accept": "text/html",
            "cookie": "a=1",
        }

        assert HeaderBuilder().build_upstream_headers(headers) == {"accept": "text/html", "cookie": "a=1"}

    def test_response_headers_keep_multiple_cookies(self):
        upstream = httpx.Headers(
            [
                ("content-type", "text/html"),
                ("transfer-encoding", "chunked"),
                ("set-cookie", "dropped=1"),
            ]
        )

        headers = HeaderBuilder().build_response_headers(upstream, ["a=1", "b=2"])

        assert headers.get_list("set-cookie") == ["a=1", "b=2"]
        assert "transfer-encoding" not in headers
        assert headers["content-type"] == "text/html"


class TestOutgoingResponse:
    """Test OutgoingResponse."""

    def test_set_header_replaces_values(self):
        response = OutgoingResponse(headers=httpx.Headers([("x-a", "1"), ("x-a", "2")]))

        response.set_header("X-A", "3")

        assert response.headers.get_list("x-a") == ["3"]

    def test_set_header_list(self):
        response = OutgoingResponse()

        response.set_header("set-cookie", ["a=1", "b=2"])

        assert response.raw_headers() == [(b"set-cookie", b"a=1"), (b"set-cookie", b"b=2")]

    def test_response_written_once(self):
        response = OutgoingResponse()
        response.to_response("ok")

        with pytest.raises(RuntimeError):
            response.to_response("again")


class TestPrepareModifiedContentResponse:
    """Test prepare_modified_content_response."""

    def test_content_length_counts_bytes(self):
        response = OutgoingResponse(headers=httpx.Headers({"content-length": "999"}))

        prepare_modified_content_response("héllo", response)

        assert response.get_header("content-length") == "6"

    def test_compression_encoding_removed(self):
        response = OutgoingResponse(headers=httpx.Headers({"content-encoding": "gzip"}))

        prepare_modified_content_response("{}", response)

        assert response.get_header("content-encoding") is None

    def test_other_encoding_kept(self):
        response = OutgoingResponse(headers=httpx.Headers({"content-encoding": "br"}))

        prepare_modified_content_response("{}", response)

        assert response.get_header("content-encoding") == "br"

    def test_extra_headers_applied(self):
        response = OutgoingResponse(headers=httpx.Headers({"content-type": "application/json"}))

        prepare_modified_content_response("<p/>", response, {"content-type": "text/html; charset=utf-8"})

        assert response.get_header("content-type") == "text/html; charset=utf-8"


class TestFinalizeServerResponse:
    """Test finalize_server_response."""

    def test_server_header_removed(self, proxy_response, logger):
        response = OutgoingResponse(headers=httpx.Headers({"server": "Microsoft-IIS/10.0", "x-a": "1"}))

        finalize_server_response(response, proxy_response, make_request("/"), make_config(), logger)

        assert "server" not in response.headers
        assert response.get_header("x-a") == "1"

    def test_set_headers_hook_can_change_response(self, proxy_response, logger):
        def set_headers(request, server_response, proxy_response):
            server_response.set_header("cache-control", "no-store")
            server_response.status_code = 203

        config = make_config(hooks=ProxyHooks(set_headers=set_headers))
        response = OutgoingResponse()

        finalize_server_response(response, proxy_response, make_request("/"), config, logger)

        assert response.get_header("cache-control") == "no-store"
        assert response.status_code == 203

    def test_set_headers_error_is_wrapped(self, proxy_response, logger):
        def set_headers(request, server_response, proxy_response):
            raise ValueError("bad header")

        config = make_config(hooks=ProxyHooks(set_headers=set_headers))

        with pytest.raises(HookError, match="set_headers"):
            finalize_server_response(OutgoingResponse(), proxy_response, make_request("/"), config, logger)
