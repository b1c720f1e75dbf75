"""Language code normalization and display utilities."""

import re
from typing import Optional

UNDETERMINED = "und"

# ISO 639-2 (3-letter, B and T forms) to ISO 639-1 (2-letter)
# Playlists usually carry 639-2 codes, the content API mixes both
ISO_639_2_TO_639_1 = {
    "eng": "en",  # English
    "rus": "ru",  # Russian
    "ukr": "uk",  # Ukrainian
    "spa": "es",  # Spanish
    "fre": "fr",  # French
    "fra": "fr",
    "ger": "de",  # German
    "deu": "de",
    "ita": "it",  # Italian
    "por": "pt",  # Portuguese
    "jpn": "ja",  # Japanese
    "kor": "ko",  # Korean
    "chi": "zh",  # Chinese
    "zho": "zh",
    "ara": "ar",  # Arabic
    "hin": "hi",  # Hindi
    "dut": "nl",  # Dutch
    "nld": "nl",
    "pol": "pl",  # Polish
    "tur": "tr",  # Turkish
    "swe": "sv",  # Swedish
    "dan": "da",  # Danish
    "nor": "no",  # Norwegian
    "fin": "fi",  # Finnish
    "cze": "cs",  # Czech
    "ces": "cs",
    "hun": "hu",  # Hungarian
    "rum": "ro",  # Romanian
    "ron": "ro",
    "tha": "th",  # Thai
    "vie": "vi",  # Vietnamese
    "ind": "id",  # Indonesian
    "heb": "he",  # Hebrew
    "gre": "el",  # Greek
    "ell": "el",
    "cat": "ca",  # Catalan
    "slo": "sk",  # Slovak
    "slk": "sk",
    "hrv": "hr",  # Croatian
    "srp": "sr",  # Serbian
    "bul": "bg",  # Bulgarian
    "lit": "lt",  # Lithuanian
    "lav": "lv",  # Latvian
    "est": "et",  # Estonian
    "slv": "sl",  # Slovenian
    "per": "fa",  # Persian
    "fas": "fa",
    "bel": "be",  # Belarusian
    "kaz": "kk",  # Kazakh
    "geo": "ka",  # Georgian
    "kat": "ka",
    "arm": "hy",  # Armenian
    "hye": "hy",
}

# ISO 639-1 to English display name, used for the audio menu fallback label
LANGUAGE_NAMES = {
    "ru": "Russian",
    "en": "English",
    "uk": "Ukrainian",
    "ja": "Japanese",
    "de": "German",
    "fr": "French",
    "es": "Spanish",
    "it": "Italian",
    "pt": "Portuguese",
    "zh": "Chinese",
    "ko": "Korean",
    "ar": "Arabic",
    "hi": "Hindi",
    "nl": "Dutch",
    "pl": "Polish",
    "tr": "Turkish",
    "sv": "Swedish",
    "da": "Danish",
    "no": "Norwegian",
    "fi": "Finnish",
    "cs": "Czech",
    "hu": "Hungarian",
    "ro": "Romanian",
    "th": "Thai",
    "vi": "Vietnamese",
    "id": "Indonesian",
    "he": "Hebrew",
    "el": "Greek",
    "ca": "Catalan",
    "sk": "Slovak",
    "hr": "Croatian",
    "sr": "Serbian",
    "bg": "Bulgarian",
    "lt": "Lithuanian",
    "lv": "Latvian",
    "et": "Estonian",
    "sl": "Slovenian",
    "fa": "Persian",
    "be": "Belarusian",
    "kk": "Kazakh",
    "ka": "Georgian",
    "hy": "Armenian",
}

_SUBTAG_SEPARATOR = re.compile(r"[-_]")


def primary_subtag(code: Optional[str]) -> str:
    """Return the lower-cased primary subtag of a language tag.

    Args:
        code: Language tag (e.g. 'rus', 'en-US', 'rus-x-2'), may be empty

    Returns:
        Primary subtag (e.g. 'rus', 'en'), or 'und' if nothing is left
    """
    if not code:
        return UNDETERMINED
    primary = _SUBTAG_SEPARATOR.split(code.strip().lower(), maxsplit=1)[0]
    return primary or UNDETERMINED


def normalize_language(code: Optional[str]) -> str:
    """Normalize a language code to the key used for grouping audio tracks.

    ru/rus, en/eng and uk/ukr are folded to their 2-letter form, as is every
    other known ISO 639-2 code. Unknown codes keep their first two characters.

    Args:
        code: Language code (2 or 3 letters, optionally with subtags)

    Returns:
        2-letter grouping key
    """
    primary = primary_subtag(code)
    if primary in ISO_639_2_TO_639_1:
        return ISO_639_2_TO_639_1[primary]
    return primary[:2]


def language_display_name(code: Optional[str]) -> str:
    """Get a human-readable language name.

    Args:
        code: Language code as found in the playlist

    Returns:
        English language name, or the code upper-cased if unknown
    """
    name = LANGUAGE_NAMES.get(normalize_language(code))
    if name:
        return name
    return (code or UNDETERMINED).upper()


def _is_known(code: Optional[str]) -> bool:
    return primary_subtag(code) != UNDETERMINED


def unique_language_tags(codes: list[Optional[str]]) -> list[Optional[str]]:
    """Assign a distinguishable language tag to each track.

    Tracks sharing a normalized language get a private-use subtag carrying
    their 1-based position within that language ('rus-x-1', 'rus-x-2'), so
    players that key audio menus by language list them separately. A language
    used by a single track keeps its code.
    Tracks without a code (or tagged "und") get None.

    Args:
        codes: Language codes in track order

    Returns:
        Tags in the same order
    """
    group_sizes: dict[str, int] = {}
    for code in codes:
        if _is_known(code):
            key = normalize_language(code)
            group_sizes[key] = group_sizes.get(key, 0) + 1

    seen: dict[str, int] = {}
    tags: list[Optional[str]] = []
    for code in codes:
        if not _is_known(code):
            tags.append(None)
            continue
        key = normalize_language(code)
        base = primary_subtag(code)
        if group_sizes[key] == 1:
            tags.append(base)
            continue
        seen[key] = seen.get(key, 0) + 1
        tags.append(f"{base}-x-{seen[key]}")
    return tags
