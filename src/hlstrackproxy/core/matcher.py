"""Pairing of playlist audio renditions with API track descriptors."""

import re
from typing import Optional

from hlstrackproxy.core.enricher import build_name
from hlstrackproxy.models.playlist import HLSAudioRendition, MatchedPair
from hlstrackproxy.models.track import AudioTrackDescriptor
from hlstrackproxy.utils.language import normalize_language
from hlstrackproxy.utils.logger import get_logger

logger = get_logger(__name__)

# "01. Studio (RUS)", "01 - Studio (RUS)", "1 Studio"
_TRACK_NUMBER = re.compile(r"^(\d+)[.\s-]")


def extract_track_number(name: str) -> Optional[int]:
    """Return the explicit 1-based number a rendition NAME starts with."""
    match = _TRACK_NUMBER.match(name)
    if not match:
        return None
    return int(match.group(1))


class AudioTrackMatcher:
    """Match HLS audio renditions to API track descriptors.

    Matching is done within language groups:

    0. Renditions whose NAME is already the name built for a descriptor of
       their language keep that descriptor, so rewriting twice is stable.
    1. Renditions whose NAME starts with a number N take the N-th descriptor
       of their language. The playlist's own numbering wins over list order.
    2. Remaining renditions take the first unused descriptor of their
       language, wrapping around when the language runs out.
    3. If no rendition matched by language at all, renditions and
       descriptors are paired by position.
    """

    def match(
        self,
        renditions: list[HLSAudioRendition],
        descriptors: list[AudioTrackDescriptor],
    ) -> list[MatchedPair]:
        """Pair renditions with descriptors.

        Args:
            renditions: Audio renditions in playlist order
            descriptors: Registered descriptors in API order

        Returns:
            Matched pairs in rendition order; renditions whose language has
            no descriptor are absent
        """
        if not renditions or not descriptors:
            return []

        # language -> [(list_position, descriptor)] in API order
        groups: dict[str, list[tuple[int, AudioTrackDescriptor]]] = {}
        for position, descriptor in enumerate(descriptors):
            groups.setdefault(normalize_language(descriptor.language), []).append(
                (position, descriptor)
            )

        languages = [normalize_language(r.language) for r in renditions]
        used: dict[str, set[int]] = {}

        assigned: dict[int, int] = {}  # rendition index -> index within group
        for index, rendition in enumerate(renditions):
            group_position = self._already_named(
                rendition, groups.get(languages[index], []), used.setdefault(languages[index], set())
            )
            if group_position is not None:
                assigned[index] = group_position
        named = {language: set(positions) for language, positions in used.items()}

        for index, rendition in enumerate(renditions):
            if index in assigned:
                continue
            group = groups.get(languages[index], [])
            number = extract_track_number(rendition.current_name)
            if number is not None and 0 < number <= len(group):
                if number - 1 in named[languages[index]]:
                    continue
                assigned[index] = number - 1
                used[languages[index]].add(number - 1)

        pairs = []
        for index, rendition in enumerate(renditions):
            language = languages[index]
            group = groups.get(language, [])
            if not group:
                logger.debug(
                    "No API tracks for rendition language",
                    rendition=rendition.current_name,
                    language=language,
                )
                continue

            if index in assigned:
                group_position = assigned[index]
            else:
                group_position = self._next_unused(group, used.setdefault(language, set()))
                if group_position is None:
                    # Language exhausted: wrap around deterministically
                    seen = languages[: index + 1].count(language)
                    group_position = (seen - 1) % len(group)

            list_position, descriptor = group[group_position]
            pairs.append(
                MatchedPair(
                    rendition=rendition,
                    descriptor=descriptor,
                    group_position=group_position,
                    list_position=list_position,
                )
            )

        if not pairs:
            logger.debug(
                "No language matches, pairing renditions by position",
                rendition_count=len(renditions),
                track_count=len(descriptors),
            )
            pairs = [
                MatchedPair(
                    rendition=rendition,
                    descriptor=descriptor,
                    group_position=position,
                    list_position=position,
                )
                for position, (rendition, descriptor) in enumerate(zip(renditions, descriptors))
            ]

        return pairs

    @staticmethod
    def _already_named(
        rendition: HLSAudioRendition,
        group: list[tuple[int, AudioTrackDescriptor]],
        used: set[int],
    ) -> Optional[int]:
        for group_position, (list_position, descriptor) in enumerate(group):
            if group_position in used:
                continue
            display_index = descriptor.display_index(list_position)
            if build_name(descriptor, rendition, display_index) == rendition.current_name:
                used.add(group_position)
                return group_position
        return None

    @staticmethod
    def _next_unused(
        group: list[tuple[int, AudioTrackDescriptor]], used: set[int]
    ) -> Optional[int]:
        for group_position in range(len(group)):
            if group_position not in used:
                used.add(group_position)
                return group_position
        return None
