"""Beatmap link parsing.

Turns a link such as ``https://osu.ppy.sh/beatmapsets/12345#osu/67890`` into
the mapset id (second path segment) and the beatmap id (second fragment
segment). The lookup is positional: a link of the same shape whose segments
mean something else yields valid-looking but wrong ids.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import urlsplit

from loguru import logger

from utils.errors import (
    InvalidUrl,
    MissingFragment,
    MissingFragmentSegment,
    MissingPathSegment,
    NotANumber,
)

U32_MAX = 2**32 - 1
_DIGITS = re.compile(r"\d+", re.ASCII)


@dataclass(frozen=True)
class IdentifierPair:
    mapset_id: int
    beatmap_id: int


def _to_u32(raw: str, what: str) -> int:
    if not _DIGITS.fullmatch(raw):
        raise NotANumber(f"{what} {raw!r} is not a number")
    value = int(raw)
    if value > U32_MAX:
        raise NotANumber(f"{what} {raw!r} does not fit in 32 bits")
    return value


def parse_identifiers(link: str) -> IdentifierPair:
    """Extract ``(mapset_id, beatmap_id)`` from a beatmapset link.

    Raises:
        InvalidUrl: ``link`` is not an absolute URL with a host.
        MissingPathSegment: the path has fewer than two segments.
        MissingFragment: there is no ``#`` fragment.
        MissingFragmentSegment: the fragment has fewer than two segments.
        NotANumber: either id is not an unsigned 32-bit integer.
    """
    try:
        parts = urlsplit(link.strip())
        parts.port  # ValueError for a non-numeric or out-of-range port
    except ValueError as e:
        raise InvalidUrl(f"could not parse {link!r}: {e}") from e
    if not parts.scheme or not parts.netloc:
        raise InvalidUrl(f"{link!r} is not an absolute URL")

    path_segments = parts.path.removeprefix("/").split("/")
    if len(path_segments) < 2:
        raise MissingPathSegment(f"no mapset id segment in path {parts.path!r}")
    mapset_raw = path_segments[1]

    # urlsplit reports "" for both "no fragment" and "empty fragment"
    if "#" not in link:
        raise MissingFragment(f"{link!r} has no fragment")
    fragment_segments = parts.fragment.split("/")
    if len(fragment_segments) < 2:
        raise MissingFragmentSegment(f"no beatmap id segment in fragment {parts.fragment!r}")
    beatmap_raw = fragment_segments[1]

    logger.debug(f"[BeatmapLink] mapset={mapset_raw!r} beatmap={beatmap_raw!r}")
    return IdentifierPair(
        mapset_id=_to_u32(mapset_raw, "mapset id"),
        beatmap_id=_to_u32(beatmap_raw, "beatmap id"),
    )
