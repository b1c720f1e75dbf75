"""Process-wide audio track registry for the active playback session."""

import threading
from typing import Iterable

from hlstrackproxy.models.track import AudioTrackDescriptor
from hlstrackproxy.utils.language import unique_language_tags
from hlstrackproxy.utils.logger import get_logger

logger = get_logger(__name__)


class TrackRegistry:
    """Single-slot holder of the current asset's audio track descriptors.

    Only one playback session is tracked at a time: the player does not tell
    the proxy which session a manifest fetch belongs to, so a register() for
    a new asset is also seen by sub-playlist fetches still in flight for the
    previous one.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._tracks: tuple[AudioTrackDescriptor, ...] = ()

    def register(self, tracks: Iterable[AudioTrackDescriptor]) -> list[AudioTrackDescriptor]:
        """Replace the current session's tracks.

        Each descriptor is stamped with a unique language tag before storing.

        Args:
            tracks: Descriptors in API presentation order

        Returns:
            The stamped descriptors as stored
        """
        tracks = list(tracks)
        tags = unique_language_tags([t.language_code for t in tracks])
        stamped = tuple(t.with_unique_language(tag) for t, tag in zip(tracks, tags))

        with self._lock:
            self._tracks = stamped

        logger.info(
            "Registered audio tracks for current session",
            track_count=len(stamped),
            languages=[t.unique_language or t.language for t in stamped],
        )
        for position, track in enumerate(stamped):
            logger.debug("Registered track", position=position, track=str(track))
        return list(stamped)

    def current(self) -> list[AudioTrackDescriptor]:
        """Return a copy of the current session's tracks."""
        with self._lock:
            return list(self._tracks)

    def clear(self) -> None:
        """Forget the current session's tracks."""
        with self._lock:
            self._tracks = ()
        logger.info("Cleared audio tracks for current session")

    def __len__(self) -> int:
        with self._lock:
            return len(self._tracks)
