"""Playlist line, tag attribute and playlist kind parsing."""

import re
from typing import Iterator, Optional

from hlstrackproxy.models.playlist import (
    HLSAudioRendition,
    PlaylistKind,
    PlaylistTag,
    TagAttribute,
)
from hlstrackproxy.utils.logger import get_logger

logger = get_logger(__name__)

_LINE = re.compile(r"([^\r\n]*)(\r\n|\r|\n|$)")
_ATTRIBUTE = re.compile(r'\s*([A-Z0-9-]+)=("([^"]*)"|[^,"]*)\s*(,|$)')


def split_lines(text: str) -> list[tuple[str, str]]:
    """Split playlist text into (content, line ending) pairs.

    Joining ``content + ending`` for every pair reproduces the input exactly.

    Args:
        text: Playlist text

    Returns:
        List of (content, ending) tuples; ending is '' for the last line
    """
    lines = []
    for match in _LINE.finditer(text):
        content, ending = match.group(1), match.group(2)
        if not content and not ending:
            if match.start() == len(text):
                break
            continue
        lines.append((content, ending))
    return lines


def join_lines(lines: list[tuple[str, str]]) -> str:
    return "".join(content + ending for content, ending in lines)


def parse_tag(line: str) -> Optional[PlaylistTag]:
    """Parse a `#TAG:ATTR=value,...` line.

    Parsing of the attribute list stops at the first malformed attribute;
    attributes before it are still returned. Leading whitespace is allowed
    and attribute offsets always index into the line as given.

    Args:
        line: One playlist line without its line ending

    Returns:
        PlaylistTag, or None if the line is not a tag
    """
    if not line.lstrip().startswith("#"):
        return None

    name, colon, _ = line.partition(":")
    tag_name = name.strip()[1:].strip()
    if not colon:
        return PlaylistTag(line=line, name=tag_name)

    attributes: dict[str, TagAttribute] = {}
    position = len(name) + 1
    while position < len(line):
        match = _ATTRIBUTE.match(line, position)
        if not match:
            break
        attr_name = match.group(1)
        raw = match.group(2)
        quoted = match.group(3) is not None
        if quoted:
            value_start, value_end = match.start(3), match.end(3)
        else:
            value_start, value_end = match.start(2), match.start(2) + len(raw.rstrip())
        attributes.setdefault(
            attr_name,
            TagAttribute(
                name=attr_name,
                value=line[value_start:value_end],
                quoted=quoted,
                start=match.start(1),
                end=match.end(2) if quoted else value_end,
                value_start=value_start,
                value_end=value_end,
            ),
        )
        if not match.group(4):
            break
        position = match.end()

    return PlaylistTag(line=line, name=tag_name, attributes=attributes)


def _quote(value: str) -> str:
    # Quoted-string values cannot carry double quotes or line breaks
    return '"' + value.replace('"', "'").replace("\r", " ").replace("\n", " ") + '"'


def replace_attributes(tag: PlaylistTag, values: dict[str, str]) -> str:
    """Build a new tag line with some attribute values substituted.

    Attributes not already present on the line are not added. The rest of
    the line is preserved byte for byte.

    Args:
        tag: Parsed tag
        values: Attribute name -> new (unquoted) value

    Returns:
        The new line
    """
    line = tag.line
    present = [tag.attributes[name] for name in values if name in tag.attributes]
    for attribute in sorted(present, key=lambda a: a.start, reverse=True):
        replacement = f"{attribute.name}={_quote(values[attribute.name])}"
        line = line[: attribute.start] + replacement + line[attribute.end :]
    return line


def iter_tags(lines: list[tuple[str, str]]) -> Iterator[tuple[int, PlaylistTag]]:
    for number, (content, _) in enumerate(lines):
        tag = parse_tag(content)
        if tag is not None:
            yield number, tag


def _is_audio_media(tag: PlaylistTag) -> bool:
    return tag.name == "EXT-X-MEDIA" and (tag.get("TYPE") or "").upper() == "AUDIO"


def classify_playlist(text: str) -> PlaylistKind:
    """Determine whether a playlist is a master or a media playlist.

    A playlist declaring variant streams or audio renditions is a master
    playlist, even if it also carries segments.

    Args:
        text: Playlist text

    Returns:
        PlaylistKind
    """
    has_segments = False
    for _, tag in iter_tags(split_lines(text)):
        if tag.name == "EXT-X-STREAM-INF" or _is_audio_media(tag):
            return PlaylistKind.MASTER
        if tag.name == "EXTINF":
            has_segments = True
    return PlaylistKind.MEDIA if has_segments else PlaylistKind.UNKNOWN


def extract_audio_renditions(lines: list[tuple[str, str]]) -> list[HLSAudioRendition]:
    """Collect the audio renditions declared in a master playlist.

    Lines without a NAME attribute are skipped.

    Args:
        lines: Output of split_lines()

    Returns:
        Renditions in playlist order
    """
    renditions = []
    for number, tag in iter_tags(lines):
        if not _is_audio_media(tag):
            continue
        content = tag.line

        name = tag.attributes.get("NAME")
        if name is None:
            logger.debug("Skipping audio rendition without NAME", line=content)
            continue

        renditions.append(
            HLSAudioRendition(
                raw_line=content,
                current_name=name.value,
                name_range=(name.start, name.end),
                language=(tag.get("LANGUAGE") or "und").lower(),
                channels=tag.get("CHANNELS"),
                group_id=tag.get("GROUP-ID"),
                is_default=(tag.get("DEFAULT") or "").upper() == "YES",
                is_autoselect=(tag.get("AUTOSELECT") or "").upper() == "YES",
                line_number=number,
            )
        )
    return renditions
