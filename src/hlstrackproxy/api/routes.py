"""Proxy endpoint routes."""

from typing import Optional
from urllib.parse import urlsplit

from fastapi import APIRouter, Query, Request
from fastapi.responses import PlainTextResponse, Response

from hlstrackproxy.core.upstream import DEFAULT_PLAYLIST_CONTENT_TYPE, UpstreamError
from hlstrackproxy.core.urls import PROXY_PATH, is_absolute_http_url
from hlstrackproxy.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}


def error_response(status_code: int, message: str) -> PlainTextResponse:
    """Plain-text error that closes the connection.

    Args:
        status_code: HTTP status code
        message: Body text

    Returns:
        PlainTextResponse
    """
    return PlainTextResponse(
        message,
        status_code=status_code,
        headers={"Connection": "close", **CORS_HEADERS},
    )


def is_playlist(url: str, content_type: Optional[str]) -> bool:
    """Whether a fetched resource is an HLS playlist."""
    if urlsplit(url).path.lower().endswith(".m3u8"):
        return True
    return "mpegurl" in (content_type or "").lower()


@router.get(PROXY_PATH)
async def proxy_hls(request: Request, url: Optional[str] = Query(default=None)):
    """Fetch an origin resource and return it, rewriting HLS playlists.

    Args:
        request: FastAPI request
        url: Percent-encoded absolute origin URL

    Returns:
        Upstream body (rewritten for playlists) or a plain-text error
    """
    if not url or not is_absolute_http_url(url):
        logger.warning("Rejected proxy request without valid url", url=url)
        return error_response(400, "Missing or invalid URL parameter")

    state = request.app.state.hlstrackproxy

    try:
        upstream = await state.fetcher.fetch(url)
    except UpstreamError as e:
        return error_response(502, e.message)

    content_type = upstream.content_type or DEFAULT_PLAYLIST_CONTENT_TYPE
    body = upstream.content

    if is_playlist(url, upstream.content_type):
        body = rewrite_playlist(state, url, body)
    else:
        logger.debug("Passing through non-playlist resource", url=url, size=len(body))

    return Response(
        content=body,
        status_code=200,
        headers={"Content-Type": content_type, "Connection": "close", **CORS_HEADERS},
    )


def rewrite_playlist(state, url: str, body: bytes) -> bytes:
    """Run a fetched playlist through the manifest rewriter.

    Args:
        state: Application state
        url: Origin URL of the playlist
        body: Playlist bytes from the origin

    Returns:
        Rewritten bytes, or the original bytes if they are not UTF-8
    """
    try:
        manifest = body.decode("utf-8")
    except UnicodeDecodeError:
        logger.warning("Playlist is not valid UTF-8, passing through", url=url)
        return body

    tracks = state.registry.current()
    rewritten = state.rewriter.rewrite(manifest, url, tracks).encode("utf-8")

    logger.info(
        "Playlist processed",
        url=url,
        registered_tracks=len(tracks),
        original_size=len(body),
        rewritten_size=len(rewritten),
        modified=rewritten != body,
    )
    return rewritten
