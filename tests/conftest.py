"""Shared pytest fixtures for hlstrackproxy tests."""

import pytest

from hlstrackproxy.config import Config, LoggingConfig, ServerConfig
from hlstrackproxy.core.registry import TrackRegistry
from hlstrackproxy.models.playlist import HLSAudioRendition
from hlstrackproxy.models.track import AudioTrackDescriptor

MASTER_PLAYLIST = (
    "#EXTM3U\n"
    "#EXT-X-VERSION:4\n"
    '#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID="audio",NAME="Track 1",LANGUAGE="rus",'
    'DEFAULT=YES,AUTOSELECT=YES,URI="audio/1/index.m3u8"\n'
    '#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID="audio",NAME="Track 2",LANGUAGE="rus",'
    'DEFAULT=NO,AUTOSELECT=YES,URI="audio/2/index.m3u8"\n'
    '#EXT-X-STREAM-INF:BANDWIDTH=2500000,RESOLUTION=1280x720,AUDIO="audio"\n'
    "video/720p/index.m3u8\n"
)

MEDIA_PLAYLIST = (
    "#EXTM3U\n"
    "#EXT-X-TARGETDURATION:6\n"
    "#EXTINF:6.0,\n"
    "seg_0001.ts\n"
    "#EXTINF:6.0,\n"
    "seg_0002.ts\n"
    "#EXT-X-ENDLIST\n"
)


def make_rendition(name, language="rus", channels=None, is_default=False, line_number=0):
    """Build a rendition as the parser would for a minimal tag line."""
    line = f'#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID="audio",NAME="{name}",LANGUAGE="{language}"'
    start = line.index("NAME=")
    return HLSAudioRendition(
        raw_line=line,
        current_name=name,
        name_range=(start, start + len(f'NAME="{name}"')),
        language=language.lower(),
        channels=channels,
        group_id="audio",
        is_default=is_default,
        line_number=line_number,
    )


@pytest.fixture
def rendition_factory():
    """Factory for renditions, see make_rendition()."""
    return make_rendition


@pytest.fixture
def master_playlist():
    """Master playlist with two Russian renditions named "Track N"."""
    return MASTER_PLAYLIST


@pytest.fixture
def media_playlist():
    """Media playlist with two segments."""
    return MEDIA_PLAYLIST


@pytest.fixture
def default_config():
    """Create a default configuration for testing."""
    return Config(
        server=ServerConfig(host="127.0.0.1", port=0),
        logging=LoggingConfig(format="text", level="debug"),
    )


@pytest.fixture
def registry():
    """Create an empty track registry."""
    return TrackRegistry()


@pytest.fixture
def studio_tracks():
    """Two studio tracks without language information."""
    return [
        AudioTrackDescriptor(id=1, author="Studio A", audio_type="Dub"),
        AudioTrackDescriptor(id=2, author="Studio B", audio_type="Multi"),
    ]


@pytest.fixture
def russian_tracks():
    """Russian tracks as the content API describes them."""
    return [
        AudioTrackDescriptor(
            id=10, global_index=1, codec="aac", language_code="rus",
            audio_type="Dubbed", author="LostFilm",
        ),
        AudioTrackDescriptor(
            id=11, global_index=2, codec="ac3", language_code="rus",
            audio_type="Multi-voice", author="Kubik",
        ),
    ]


@pytest.fixture
def mixed_api_payload():
    """Content API audio track objects for a two-language asset."""
    return [
        {"id": 1, "index": 1, "codec": "aac", "lang": "eng",
         "type": {"id": 6, "title": "Original"}, "author": None},
        {"id": 2, "index": 2, "codec": "aac", "lang": "rus",
         "type": {"id": 1, "title": "Dubbed"}, "author": {"id": 5, "title": "LostFilm"}},
        {"id": 3, "index": 3, "codec": "ac3", "lang": "rus",
         "type": {"id": 2, "title": "Multi-voice"}, "author": {"id": 9, "title": "?"}},
    ]
