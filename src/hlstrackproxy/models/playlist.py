"""HLS playlist data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from hlstrackproxy.models.track import AudioTrackDescriptor


class PlaylistKind(Enum):
    """Role of a fetched playlist."""

    MASTER = "master"
    MEDIA = "media"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class TagAttribute:
    """One `NAME=value` pair of a tag line and where it sits in the line."""

    name: str
    value: str  # Unquoted value
    quoted: bool
    start: int  # Offset of the attribute name
    end: int  # Offset just past the value (including closing quote)
    value_start: int  # Offset of the unquoted value
    value_end: int


@dataclass(frozen=True)
class PlaylistTag:
    """A parsed `#EXT...` line."""

    line: str
    name: str  # Tag name without '#', e.g. "EXT-X-MEDIA"
    attributes: dict[str, TagAttribute] = field(default_factory=dict)

    def get(self, name: str) -> Optional[str]:
        """Return an attribute value, or None if absent."""
        attribute = self.attributes.get(name)
        return attribute.value if attribute else None


@dataclass(frozen=True)
class HLSAudioRendition:
    """An `#EXT-X-MEDIA:TYPE=AUDIO` declaration in a master playlist."""

    raw_line: str
    current_name: str
    name_range: tuple[int, int]  # Span of NAME="..." within raw_line
    language: str  # Lower-cased LANGUAGE value, "und" if absent
    channels: Optional[str] = None
    group_id: Optional[str] = None
    is_default: bool = False
    is_autoselect: bool = False
    line_number: int = 0  # Index of the line in the playlist


@dataclass(frozen=True)
class MatchedPair:
    """A rendition paired with the descriptor that describes it."""

    rendition: HLSAudioRendition
    descriptor: AudioTrackDescriptor
    group_position: int  # 0-based position within the descriptor's language group
    list_position: int  # 0-based position within the registered track list

    @property
    def display_index(self) -> int:
        return self.descriptor.display_index(self.list_position)
