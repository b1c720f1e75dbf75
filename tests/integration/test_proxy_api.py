"""Integration tests for the proxy endpoint."""

from urllib.parse import quote

import httpx
import pytest
from fastapi.testclient import TestClient

from hlstrackproxy.api.app import create_app
from hlstrackproxy.core.urls import build_proxied_url

PROXY_BASE = "http://127.0.0.1:8080"
MASTER_URL = "http://cdn.example.com/hls/movie/master.m3u8"
MEDIA_URL = "http://cdn.example.com/hls/movie/audio/1/index.m3u8"
SEGMENT_URL = "http://cdn.example.com/hls/movie/audio/1/seg_0001.ts"
SEGMENT_BYTES = bytes(range(256)) * 4


def proxy_path(origin):
    return f"/hls?url={quote(origin, safe='')}"


@pytest.fixture
def origin(master_playlist, media_playlist):
    """Fake origin server, recording the requests it receives."""
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        url = str(request.url)
        if url == MASTER_URL:
            return httpx.Response(
                200,
                content=master_playlist.encode(),
                headers={"Content-Type": "application/vnd.apple.mpegurl"},
            )
        if url == MEDIA_URL:
            return httpx.Response(
                200,
                content=media_playlist.encode(),
                headers={"Content-Type": "application/x-mpegURL"},
            )
        if url == SEGMENT_URL:
            return httpx.Response(200, content=SEGMENT_BYTES, headers={"Content-Type": "video/mp2t"})
        if url.endswith("/empty.m3u8"):
            return httpx.Response(200, content=b"")
        if url.endswith("/down.m3u8"):
            raise httpx.ConnectError("Connection refused", request=request)
        return httpx.Response(500, text="Internal Server Error")

    return handler, requests


@pytest.fixture
def test_client(default_config, registry, origin):
    """Create a test client for the FastAPI app."""
    handler, _ = origin
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    app = create_app(default_config, registry, PROXY_BASE, http_client)
    return TestClient(app)


class TestProxyEndpoint:
    """Tests for GET /hls."""

    def test_master_playlist_is_rewritten(self, test_client, registry, studio_tracks):
        registry.register(studio_tracks)

        response = test_client.get(proxy_path(MASTER_URL))

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/vnd.apple.mpegurl"
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["connection"] == "close"
        assert int(response.headers["content-length"]) == len(response.content)
        assert 'NAME="01. Studio A (dub)"' in response.text
        assert 'NAME="02. Studio B (multi)"' in response.text
        assert build_proxied_url(PROXY_BASE, MEDIA_URL) in response.text

    def test_master_playlist_without_tracks(self, test_client, master_playlist):
        """Should only proxy nested URLs when nothing is registered."""
        response = test_client.get(proxy_path(MASTER_URL))

        assert response.status_code == 200
        assert 'NAME="Track 1"' in response.text
        assert 'NAME="Track 2"' in response.text
        assert response.text != master_playlist

    def test_media_playlist_passes_through(self, test_client, registry, russian_tracks, media_playlist):
        registry.register(russian_tracks)

        response = test_client.get(proxy_path(MEDIA_URL))

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/x-mpegURL"
        assert response.text == media_playlist

    def test_segment_is_forwarded_byte_for_byte(self, test_client):
        response = test_client.get(proxy_path(SEGMENT_URL))

        assert response.status_code == 200
        assert response.headers["content-type"] == "video/mp2t"
        assert response.content == SEGMENT_BYTES

    def test_origin_is_fetched_without_cache(self, test_client, origin):
        _, requests = origin

        test_client.get(proxy_path(MASTER_URL))

        assert requests[-1].method == "GET"
        assert requests[-1].headers["cache-control"] == "no-cache"

    def test_registry_is_read_per_request(self, test_client, registry, studio_tracks, russian_tracks):
        """Should use whatever session is registered at fetch time."""
        registry.register(studio_tracks)
        first = test_client.get(proxy_path(MASTER_URL)).text

        registry.register(russian_tracks)
        second = test_client.get(proxy_path(MASTER_URL)).text

        assert "Studio A" in first
        assert "LostFilm" in second


class TestProxyErrors:
    """Tests for error responses."""

    def test_upstream_error_status_is_502(self, test_client):
        response = test_client.get(proxy_path("http://cdn.example.com/broken.m3u8"))

        assert response.status_code == 502
        assert response.headers["connection"] == "close"
        assert response.text == "Upstream returned HTTP 500"

    def test_upstream_transport_failure_is_502(self, test_client):
        response = test_client.get(proxy_path("http://cdn.example.com/down.m3u8"))

        assert response.status_code == 502
        assert "Connection refused" in response.text

    def test_empty_upstream_body_is_502(self, test_client):
        response = test_client.get(proxy_path("http://cdn.example.com/empty.m3u8"))

        assert response.status_code == 502
        assert response.text

    def test_missing_url_is_400(self, test_client):
        response = test_client.get("/hls")

        assert response.status_code == 400
        assert response.headers["content-type"].startswith("text/plain")
        assert response.headers["connection"] == "close"

    @pytest.mark.parametrize("url", ["", "not-a-url", "ftp://cdn/x.m3u8", "/relative.m3u8"])
    def test_invalid_url_is_400(self, test_client, url):
        response = test_client.get(proxy_path(url))

        assert response.status_code == 400

    def test_unknown_path_is_400(self, test_client):
        response = test_client.get("/other?url=x")

        assert response.status_code == 400

    @pytest.mark.parametrize("method", ["POST", "PUT", "DELETE"])
    def test_non_get_is_405(self, test_client, method):
        response = test_client.request(method, proxy_path(MASTER_URL))

        assert response.status_code == 405
        assert response.headers["connection"] == "close"

    def test_non_get_on_unknown_path_is_405(self, test_client):
        assert test_client.post("/other").status_code == 405
