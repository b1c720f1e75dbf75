"""Proxied URL construction and playlist reference rewriting."""

import re
from typing import Optional
from urllib.parse import parse_qs, quote, urljoin, urlsplit

from hlstrackproxy.core.parser import join_lines, parse_tag, replace_attributes, split_lines
from hlstrackproxy.utils.logger import get_logger

logger = get_logger(__name__)

PROXY_PATH = "/hls"
URL_PARAM = "url"

_PLAYLIST_REFERENCE = re.compile(r"\.m3u8(?:\?[^#]*)?(?:#.*)?$", re.IGNORECASE)


def build_proxy_base(host: str, port: int) -> str:
    """Return the scheme/host/port prefix of proxied URLs."""
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    return f"http://{host}:{port}"


def build_proxied_url(proxy_base: str, origin_url: str) -> str:
    """Wrap an origin URL into a URL served by the proxy.

    The origin is fully percent-encoded so that its own query string
    survives as a single `url` parameter.

    Args:
        proxy_base: e.g. "http://127.0.0.1:54321"
        origin_url: Absolute origin URL

    Returns:
        "<proxy_base>/hls?url=<percent-encoded origin>"
    """
    return f"{proxy_base}{PROXY_PATH}?{URL_PARAM}={quote(origin_url, safe='')}"


def extract_origin_url(proxied_url: str) -> Optional[str]:
    """Recover the origin URL from a proxied URL, or None if it has none."""
    parts = urlsplit(proxied_url)
    if parts.path != PROXY_PATH:
        return None
    values = parse_qs(parts.query, keep_blank_values=True).get(URL_PARAM)
    return values[0] if values else None


def is_absolute_http_url(url: str) -> bool:
    parts = urlsplit(url)
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def is_playlist_reference(reference: str) -> bool:
    """Whether a playlist reference points at another playlist (vs a segment)."""
    return bool(_PLAYLIST_REFERENCE.search(reference))


class PlaylistURLRewriter:
    """Routes nested playlist references back through the proxy.

    Segment references are left untouched so that media bytes go straight
    from the origin to the player.
    """

    def __init__(self, proxy_base: str):
        self.proxy_base = proxy_base.rstrip("/")
        self._proxied_prefix = f"{self.proxy_base}{PROXY_PATH}?{URL_PARAM}="

    def proxy_reference(self, reference: str, base_url: str) -> Optional[str]:
        """Return the proxied form of a playlist reference.

        Args:
            reference: URI as written in the playlist, absolute or relative
            base_url: URL the playlist was fetched from

        Returns:
            Proxied absolute URL, or None if the reference is not to be
            rewritten (segment, or already proxied)
        """
        if reference.startswith(self._proxied_prefix):
            return None
        if not is_playlist_reference(reference):
            return None
        absolute = urljoin(base_url, reference)
        if not is_absolute_http_url(absolute):
            logger.debug("Cannot resolve playlist reference", reference=reference, base_url=base_url)
            return None
        return build_proxied_url(self.proxy_base, absolute)

    def rewrite_line(self, line: str, base_url: str) -> str:
        """Rewrite the playlist reference(s) carried by one line."""
        stripped = line.strip()
        if not stripped:
            return line

        if stripped.startswith("#"):
            if not stripped.startswith("#EXT-X-MEDIA"):
                return line
            tag = parse_tag(line)
            uri = tag.get("URI") if tag else None
            if not uri:
                return line
            proxied = self.proxy_reference(uri, base_url)
            if proxied is None:
                return line
            return replace_attributes(tag, {"URI": proxied})

        proxied = self.proxy_reference(stripped, base_url)
        if proxied is None:
            return line
        leading = line[: len(line) - len(line.lstrip())]
        trailing = line[len(line.rstrip()) :]
        return f"{leading}{proxied}{trailing}"

    def rewrite(self, text: str, base_url: str) -> str:
        """Rewrite every nested playlist reference in a playlist.

        Args:
            text: Playlist text
            base_url: URL the playlist was fetched from

        Returns:
            Playlist text with playlist references proxied
        """
        lines = split_lines(text)
        rewritten = [(self.rewrite_line(content, base_url), ending) for content, ending in lines]
        changed = sum(1 for old, new in zip(lines, rewritten) if old[0] != new[0])
        if changed:
            logger.debug("Proxied playlist references", count=changed, base_url=base_url)
        return join_lines(rewritten)
