"""Manifest rewriting: proxied playlist URLs and enriched audio track names."""

from typing import Optional

from hlstrackproxy.core.enricher import build_name
from hlstrackproxy.core.matcher import AudioTrackMatcher
from hlstrackproxy.core.parser import (
    classify_playlist,
    extract_audio_renditions,
    join_lines,
    parse_tag,
    replace_attributes,
    split_lines,
)
from hlstrackproxy.core.urls import PlaylistURLRewriter
from hlstrackproxy.models.playlist import MatchedPair, PlaylistKind
from hlstrackproxy.models.track import AudioTrackDescriptor
from hlstrackproxy.utils.logger import get_logger

logger = get_logger(__name__)


class ManifestRewriter:
    """Transforms fetched manifests before they reach the player."""

    def __init__(self, proxy_base: str, matcher: Optional[AudioTrackMatcher] = None):
        """Initialize manifest rewriter.

        Args:
            proxy_base: Scheme/host/port prefix of proxied URLs
            matcher: Rendition matcher (defaults to AudioTrackMatcher)
        """
        self.url_rewriter = PlaylistURLRewriter(proxy_base)
        self.matcher = matcher or AudioTrackMatcher()

    def rewrite(
        self,
        manifest: str,
        base_url: str,
        tracks: list[AudioTrackDescriptor],
    ) -> str:
        """Rewrite a manifest. Never raises.

        Nested playlist references are proxied in every playlist. Audio
        rendition names are rewritten only in master playlists and only when
        tracks are registered.

        Args:
            manifest: Playlist text as fetched
            base_url: URL the playlist was fetched from
            tracks: Registered descriptors for the current session

        Returns:
            Rewritten playlist text; at worst the input unchanged
        """
        try:
            kind = classify_playlist(manifest)
            result = self.url_rewriter.rewrite(manifest, base_url)
        except Exception:
            logger.exception("Playlist URL rewriting failed", base_url=base_url)
            return manifest

        if kind is not PlaylistKind.MASTER:
            logger.debug("Skipping track names for non-master playlist", kind=kind.value)
            return result

        if not tracks:
            logger.warning(
                "Master playlist fetched with no audio tracks registered",
                base_url=base_url,
            )
            return result

        try:
            return self.rewrite_track_names(result, tracks)
        except Exception:
            logger.exception("Audio track name rewriting failed", base_url=base_url)
            return result

    def rewrite_track_names(self, manifest: str, tracks: list[AudioTrackDescriptor]) -> str:
        """Replace NAME and LANGUAGE of matched audio renditions.

        Args:
            manifest: Master playlist text
            tracks: Registered descriptors

        Returns:
            Playlist text with enriched names
        """
        lines = split_lines(manifest)
        renditions = extract_audio_renditions(lines)
        if not renditions:
            logger.info("No audio renditions found in master playlist")
            return manifest

        pairs = self.matcher.match(renditions, tracks)
        logger.info(
            "Matched audio renditions",
            rendition_count=len(renditions),
            track_count=len(tracks),
            matched_count=len(pairs),
        )

        changed = 0
        for pair in pairs:
            try:
                new_line = self._rewrite_rendition(pair)
            except Exception:
                logger.exception("Skipping audio rendition", line=pair.rendition.raw_line)
                continue
            if new_line is None:
                continue
            number = pair.rendition.line_number
            lines[number] = (new_line, lines[number][1])
            changed += 1

        logger.info("Rewrote audio track names", changed_count=changed)
        return join_lines(lines)

    def _rewrite_rendition(self, pair: MatchedPair) -> Optional[str]:
        rendition = pair.rendition
        new_name = build_name(pair.descriptor, rendition, pair.display_index)

        if new_name == rendition.current_name:
            logger.debug("Track name unchanged", name=new_name)
            return None

        tag = parse_tag(rendition.raw_line)
        values = {"NAME": new_name}
        if pair.descriptor.unique_language:
            values["LANGUAGE"] = pair.descriptor.unique_language
        new_line = replace_attributes(tag, values)

        logger.debug(
            "Track name rewritten",
            old_name=rendition.current_name,
            new_name=new_name,
            language=values.get("LANGUAGE"),
            track_position=pair.list_position,
        )
        return new_line
