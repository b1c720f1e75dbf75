"""Audio track descriptor models."""

from dataclasses import dataclass, replace
from typing import Any, Optional


def _title(value: Any) -> Optional[str]:
    """Extract a label from the API's `{"id": .., "title": ..}` objects."""
    if isinstance(value, dict):
        value = value.get("title")
    if value is None:
        return None
    text = str(value).strip()
    # "?" is what the API sends for unknown authors
    if not text or text == "?":
        return None
    return text


@dataclass(frozen=True)
class AudioTrackDescriptor:
    """Content API metadata for one audio track of the playing asset."""

    id: Optional[Any] = None  # Opaque API identifier
    global_index: Optional[int] = None  # 1-based display ordinal
    codec: Optional[str] = None  # e.g. "aac", "ac3"
    language_code: Optional[str] = None  # 2/3-letter code, None means "und"
    audio_type: Optional[str] = None  # e.g. "Dubbed", "Multi-voice"
    author: Optional[str] = None  # Studio or translator name
    unique_language: Optional[str] = None  # Set by the registry

    @classmethod
    def from_api(cls, data: dict) -> "AudioTrackDescriptor":
        """Build a descriptor from a content API audio track object.

        Args:
            data: Dict with optional keys id, index, codec, lang, type, author

        Returns:
            AudioTrackDescriptor instance
        """
        index = data.get("index")
        return cls(
            id=data.get("id"),
            global_index=int(index) if index is not None else None,
            codec=_title(data.get("codec")),
            language_code=_title(data.get("lang")),
            audio_type=_title(data.get("type")),
            author=_title(data.get("author")),
        )

    @property
    def language(self) -> str:
        """Natural language code, 'und' when unknown."""
        return self.language_code or "und"

    def display_index(self, position: int) -> int:
        """Ordinal shown in the track name.

        Args:
            position: 0-based position in the registered track list

        Returns:
            The API's index when present, else position + 1
        """
        if self.global_index is not None:
            return self.global_index
        return position + 1

    def with_unique_language(self, tag: Optional[str]) -> "AudioTrackDescriptor":
        """Return a copy stamped with a disambiguated language tag."""
        return replace(self, unique_language=tag)

    def __str__(self) -> str:
        """Human-readable representation."""
        author = self.author or "?"
        audio_type = self.audio_type or "?"
        return f"{audio_type} - {author} ({self.language}, {self.codec or '?'})"


def descriptors_from_api(payload: Any) -> list[AudioTrackDescriptor]:
    """Parse the content API's audio track list.

    Accepts the list itself, or an object carrying it under `audios`,
    `audio_tracks` or `tracks`.

    Args:
        payload: Decoded JSON

    Returns:
        Descriptors in API order

    Raises:
        ValueError: If no track list can be found
    """
    if isinstance(payload, dict):
        for key in ("audios", "audio_tracks", "tracks"):
            if isinstance(payload.get(key), list):
                payload = payload[key]
                break
    if not isinstance(payload, list):
        raise ValueError("Expected a list of audio tracks")
    return [AudioTrackDescriptor.from_api(item) for item in payload if isinstance(item, dict)]
