"""Construction of rich audio rendition names."""

import re
from typing import Optional

from hlstrackproxy.models.playlist import HLSAudioRendition
from hlstrackproxy.models.track import AudioTrackDescriptor
from hlstrackproxy.utils.language import language_display_name

# "01. Studio Name (RUS)" -> "Studio Name"
_NUMBERED_LABEL = re.compile(r"^\d+\.\s*(.+?)\s*\([A-Z]{3}\)")
# "Studio Name (RUS)" -> "Studio Name"
_PLAIN_LABEL = re.compile(r"^(.+?)\s*\([A-Z]{3}\)")
# "01. Studio Name (AC3)", a name this module built earlier -> "Studio Name"
_ENRICHED_LABEL = re.compile(r"^\d+\.\s*(.+?)(?:\s*\((?:Default|[A-Z0-9-]+)\))*$")
_GENERIC_LABEL = re.compile(r"^(?:Track|Audio)\b\s*\d*$", re.IGNORECASE)


def detect_codec(descriptor: AudioTrackDescriptor, rendition: HLSAudioRendition) -> Optional[str]:
    """Codec label to show, or None when it is AAC or unknown.

    The API's codec wins. Otherwise the rendition's current name is searched
    for codec names, and 6-channel renditions are taken to be AC3.
    """
    if descriptor.codec:
        codec = descriptor.codec.upper()
        return None if codec == "AAC" else codec

    name = rendition.current_name.lower()
    if "eac3" in name or "e-ac-3" in name:
        return "EAC3"
    if "ac3" in name or "ac-3" in name:
        return "AC3"
    if "aac" in name:
        return None

    if rendition.channels and rendition.channels.startswith("6"):
        return "AC3"
    return None


def _label_from_name(name: str, language: str) -> Optional[str]:
    """Recover a human label from a rendition name.

    Origin names carry a language marker such as "(RUS)". Names written by
    build_name() on an earlier pass carry only the ordinal and optional codec
    or "(Default)" suffixes; their language display name is not a label.
    """
    match = _NUMBERED_LABEL.match(name) or _PLAIN_LABEL.match(name)
    if match is None:
        match = _ENRICHED_LABEL.match(name)
        if match is None or match.group(1).strip() == language_display_name(language):
            return None
    label = match.group(1).strip()
    if not label or _GENERIC_LABEL.match(label):
        return None
    return label


def build_name(
    descriptor: AudioTrackDescriptor,
    rendition: HLSAudioRendition,
    display_index: int,
) -> str:
    """Build the NAME shown in the player's audio menu.

    Examples:
        author + type:  "01. LostFilm (dubbed)"
        type only:      "02. Multi-voice (AC3)"
        neither:        "03. Russian (Default)"

    Args:
        descriptor: API metadata for the track
        rendition: Rendition as declared by the origin
        display_index: Ordinal to prefix the name with

    Returns:
        The new NAME value
    """
    parts = [f"{display_index:02d}."]

    if descriptor.author:
        parts.append(descriptor.author)

    if descriptor.audio_type:
        if descriptor.author:
            parts.append(f"({descriptor.audio_type.lower()})")
        else:
            parts.append(descriptor.audio_type)

    if not descriptor.author and not descriptor.audio_type:
        label = _label_from_name(rendition.current_name, rendition.language)
        if label:
            parts.append(label)
        else:
            parts.append(language_display_name(rendition.language))
            if rendition.is_default:
                parts.append("(Default)")

    codec = detect_codec(descriptor, rendition)
    if codec:
        parts.append(f"({codec})")

    return " ".join(parts)

