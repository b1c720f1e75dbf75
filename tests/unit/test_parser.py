"""Unit tests for playlist line, tag and kind parsing."""

from hlstrackproxy.core.parser import (
    classify_playlist,
    extract_audio_renditions,
    join_lines,
    parse_tag,
    replace_attributes,
    split_lines,
)
from hlstrackproxy.models.playlist import PlaylistKind

AUDIO_LINE = (
    '#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID="aac",NAME="01. Studio (RUS)",'
    'LANGUAGE="rus",CHANNELS="6",DEFAULT=YES,AUTOSELECT=NO'
)


class TestSplitLines:
    """Test line splitting."""

    def test_round_trip_preserves_line_endings(self):
        """Should reproduce mixed line endings exactly."""
        text = "#EXTM3U\r\n#EXT-X-VERSION:3\n\nindex.m3u8"
        lines = split_lines(text)

        assert lines == [
            ("#EXTM3U", "\r\n"),
            ("#EXT-X-VERSION:3", "\n"),
            ("", "\n"),
            ("index.m3u8", ""),
        ]
        assert join_lines(lines) == text

    def test_trailing_newline(self):
        """Should not invent an empty last line."""
        lines = split_lines("#EXTM3U\n")

        assert lines == [("#EXTM3U", "\n")]

    def test_empty_text(self):
        """Should return no lines for empty input."""
        assert split_lines("") == []


class TestParseTag:
    """Test attribute parsing."""

    def test_parses_quoted_and_plain_attributes(self):
        """Should parse every attribute of an audio rendition line."""
        tag = parse_tag(AUDIO_LINE)

        assert tag.name == "EXT-X-MEDIA"
        assert tag.get("TYPE") == "AUDIO"
        assert tag.get("NAME") == "01. Studio (RUS)"
        assert tag.get("LANGUAGE") == "rus"
        assert tag.get("CHANNELS") == "6"
        assert tag.get("DEFAULT") == "YES"
        assert tag.get("AUTOSELECT") == "NO"
        assert tag.get("URI") is None

    def test_attribute_ranges_point_into_line(self):
        """Should record the exact source range of each attribute."""
        tag = parse_tag(AUDIO_LINE)
        name = tag.attributes["NAME"]

        assert AUDIO_LINE[name.start : name.end] == 'NAME="01. Studio (RUS)"'
        assert AUDIO_LINE[name.value_start : name.value_end] == "01. Studio (RUS)"

    def test_commas_inside_quoted_values(self):
        """Should not split on commas inside quotes."""
        tag = parse_tag('#EXT-X-STREAM-INF:BANDWIDTH=1000,CODECS="avc1.4d401f,mp4a.40.2"')

        assert tag.get("CODECS") == "avc1.4d401f,mp4a.40.2"
        assert tag.get("BANDWIDTH") == "1000"

    def test_tag_without_attributes(self):
        """Should parse tags that carry no attribute list."""
        tag = parse_tag("#EXTM3U")

        assert tag.name == "EXTM3U"
        assert tag.attributes == {}

    def test_non_tag_line(self):
        """Should return None for URI lines."""
        assert parse_tag("index.m3u8") is None

    def test_malformed_attribute_stops_parsing(self):
        """Should keep attributes parsed before a malformed one."""
        tag = parse_tag('#EXT-X-MEDIA:TYPE=AUDIO,NAME="broken,LANGUAGE="rus"')

        assert tag.get("TYPE") == "AUDIO"
        assert tag.get("LANGUAGE") is None

    def test_leading_whitespace_keeps_offsets(self):
        line = '  #EXT-X-MEDIA:TYPE=AUDIO,NAME="x"'

        tag = parse_tag(line)

        assert tag.name == "EXT-X-MEDIA"
        assert replace_attributes(tag, {"NAME": "y"}) == '  #EXT-X-MEDIA:TYPE=AUDIO,NAME="y"'


class TestReplaceAttributes:
    """Test functional attribute replacement."""

    def test_replaces_only_given_attributes(self):
        """Should leave the rest of the line byte-identical."""
        tag = parse_tag(AUDIO_LINE)

        line = replace_attributes(tag, {"NAME": "01. LostFilm (dubbed)", "LANGUAGE": "rus-x-1"})

        assert line == AUDIO_LINE.replace('"01. Studio (RUS)"', '"01. LostFilm (dubbed)"').replace(
            'LANGUAGE="rus"', 'LANGUAGE="rus-x-1"'
        )

    def test_missing_attribute_is_not_added(self):
        """Should not add attributes the line does not carry."""
        line = '#EXT-X-MEDIA:TYPE=AUDIO,NAME="Track 1"'

        assert replace_attributes(parse_tag(line), {"LANGUAGE": "en"}) == line

    def test_quotes_in_value_are_neutralized(self):
        """Should never produce an unbalanced quoted-string."""
        tag = parse_tag('#EXT-X-MEDIA:TYPE=AUDIO,NAME="x"')

        assert replace_attributes(tag, {"NAME": 'The "Best"'}) == (
            "#EXT-X-MEDIA:TYPE=AUDIO,NAME=\"The 'Best'\""
        )


class TestClassifyPlaylist:
    """Test master/media classification."""

    def test_master_playlist(self, master_playlist):
        assert classify_playlist(master_playlist) is PlaylistKind.MASTER

    def test_media_playlist(self, media_playlist):
        assert classify_playlist(media_playlist) is PlaylistKind.MEDIA

    def test_stream_inf_only_is_master(self):
        """Should treat a variant-only playlist as master."""
        text = "#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1\nv.m3u8\n"

        assert classify_playlist(text) is PlaylistKind.MASTER

    def test_unknown_playlist(self):
        assert classify_playlist("#EXTM3U\n") is PlaylistKind.UNKNOWN


class TestExtractAudioRenditions:
    """Test rendition extraction."""

    def test_extracts_audio_renditions(self, master_playlist):
        """Should extract every audio rendition with its attributes."""
        renditions = extract_audio_renditions(split_lines(master_playlist))

        assert [r.current_name for r in renditions] == ["Track 1", "Track 2"]
        first = renditions[0]
        assert first.language == "rus"
        assert first.group_id == "audio"
        assert first.is_default is True
        assert first.is_autoselect is True
        assert first.line_number == 2
        assert first.raw_line[first.name_range[0] : first.name_range[1]] == 'NAME="Track 1"'

    def test_skips_rendition_without_name(self):
        """Should skip audio lines that lack a NAME."""
        lines = split_lines(
            '#EXT-X-MEDIA:TYPE=AUDIO,LANGUAGE="eng"\n'
            '#EXT-X-MEDIA:TYPE=AUDIO,NAME="English",LANGUAGE="ENG"\n'
        )

        renditions = extract_audio_renditions(lines)

        assert len(renditions) == 1
        assert renditions[0].language == "eng"

    def test_ignores_subtitle_renditions(self):
        """Should only extract audio renditions."""
        lines = split_lines('#EXT-X-MEDIA:TYPE=SUBTITLES,NAME="English",LANGUAGE="eng"\n')

        assert extract_audio_renditions(lines) == []

    def test_missing_language_is_und(self):
        lines = split_lines('#EXT-X-MEDIA:TYPE=AUDIO,NAME="Main"\n')

        assert extract_audio_renditions(lines)[0].language == "und"

    def test_indented_rendition_is_extracted(self):
        """Should treat an indented tag like classify_playlist() does."""
        text = '#EXTM3U\n\t#EXT-X-MEDIA:TYPE=AUDIO,NAME="Main",LANGUAGE="rus"\n'

        renditions = extract_audio_renditions(split_lines(text))

        assert classify_playlist(text) is PlaylistKind.MASTER
        assert [r.current_name for r in renditions] == ["Main"]
        rendition = renditions[0]
        assert rendition.raw_line.startswith("\t#EXT-X-MEDIA")
        assert rendition.raw_line[rendition.name_range[0] : rendition.name_range[1]] == 'NAME="Main"'
