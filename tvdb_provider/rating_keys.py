#!/usr/bin/env python3
"""
TVDB Provider Rating Keys

Builds and parses the opaque identifiers ("ratingKey") the media client uses to
refer back to our entities, and the URIs derived from them.

Rating key shapes:
    tvdb-show-{seriesId}
    tvdb-season-{seriesId}-{seasonNumber}[-{seasonType}]
    tvdb-episode-{seriesId}-{seasonNumber}-{episodeNumber}[-{seasonType}]

The optional trailing season type (lowercase letters only, e.g. "dvd" or
"absolute") selects an alternate episode ordering. Without it the default
ordering applies. The default ordering is never spelled out, so "default" and
"official" are not accepted as tags and every entity has exactly one key.

Project: TVDB Provider
Version: 1.0.0
License: MIT
"""

import re
from dataclasses import dataclass
from typing import Optional, Union

RATING_KEY_PREFIX = "tvdb"
DEFAULT_SEASON_TYPE = "default"
METADATA_PATH = "/library/metadata"

# One alternative per entity type. The type word, the segment count and the
# letters-only tag make the alternatives mutually exclusive.
_RATING_KEY_PATTERN = re.compile(
    r"tvdb-(?:"
    r"(?P<show>show)-(?P<show_series>[0-9]+)"
    r"|(?P<season>season)-(?P<season_series>[0-9]+)-(?P<season_number>[0-9]+)"
    r"(?:-(?P<season_tag>[a-z]+))?"
    r"|(?P<episode>episode)-(?P<episode_series>[0-9]+)-(?P<episode_season>[0-9]+)"
    r"-(?P<episode_number>[0-9]+)(?:-(?P<episode_tag>[a-z]+))?"
    r")"
)
_SEASON_TYPE_PATTERN = re.compile(r"[a-z]+")

# Tags naming the default ordering
UNTAGGED_SEASON_TYPES = (DEFAULT_SEASON_TYPE, "official")


class InvalidRatingKeyError(ValueError):
    """Rating key does not match any supported shape."""

    def __init__(self, rating_key: str, reason: Optional[str] = None):
        message = f"Invalid ratingKey format: {rating_key}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.rating_key = rating_key


@dataclass(frozen=True)
class ParsedRatingKey:
    """Decoded components of a rating key."""

    type: str
    series_id: int
    season_number: Optional[int] = None
    episode_number: Optional[int] = None
    season_type: Optional[str] = None

    @property
    def ordering(self) -> str:
        """Season type to query upstream with, falling back to the default ordering."""
        return self.season_type or DEFAULT_SEASON_TYPE


def _check_number(rating_key: str, value: int, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidRatingKeyError(rating_key, f"{name} must be a non-negative integer")


def _with_season_type(rating_key: str, season_type: Optional[str]) -> str:
    if season_type is None:
        return rating_key
    if not _SEASON_TYPE_PATTERN.fullmatch(season_type):
        raise InvalidRatingKeyError(rating_key, f"unsupported season type '{season_type}'")
    if season_type in UNTAGGED_SEASON_TYPES:
        raise InvalidRatingKeyError(rating_key, f"default ordering takes no tag, got '{season_type}'")
    return f"{rating_key}-{season_type}"


def encode_show(series_id: int) -> str:
    rating_key = f"{RATING_KEY_PREFIX}-show-{series_id}"
    _check_number(rating_key, series_id, "series id")
    return rating_key


def encode_season(series_id: int, season_number: int, season_type: Optional[str] = None) -> str:
    rating_key = f"{RATING_KEY_PREFIX}-season-{series_id}-{season_number}"
    _check_number(rating_key, series_id, "series id")
    _check_number(rating_key, season_number, "season number")
    return _with_season_type(rating_key, season_type)


def encode_episode(
    series_id: int,
    season_number: int,
    episode_number: int,
    season_type: Optional[str] = None,
) -> str:
    rating_key = f"{RATING_KEY_PREFIX}-episode-{series_id}-{season_number}-{episode_number}"
    _check_number(rating_key, series_id, "series id")
    _check_number(rating_key, season_number, "season number")
    _check_number(rating_key, episode_number, "episode number")
    return _with_season_type(rating_key, season_type)


def decode(rating_key: str) -> ParsedRatingKey:
    """
    Parse a rating key into its components.

    Args:
        rating_key: Key such as "tvdb-episode-15260-1-5-dvd"

    Returns:
        ParsedRatingKey with the entity type and upstream numbers

    Raises:
        InvalidRatingKeyError: If the key matches none of the supported shapes
    """
    if not isinstance(rating_key, str):
        raise InvalidRatingKeyError(repr(rating_key))

    match = _RATING_KEY_PATTERN.fullmatch(rating_key)
    if match is None:
        raise InvalidRatingKeyError(rating_key)

    tag = match.group("season_tag") or match.group("episode_tag")
    if tag in UNTAGGED_SEASON_TYPES:
        raise InvalidRatingKeyError(rating_key, f"default ordering takes no tag, got '{tag}'")

    if match.group("show"):
        return ParsedRatingKey(type="show", series_id=int(match.group("show_series")))

    if match.group("season"):
        return ParsedRatingKey(
            type="season",
            series_id=int(match.group("season_series")),
            season_number=int(match.group("season_number")),
            season_type=match.group("season_tag"),
        )

    return ParsedRatingKey(
        type="episode",
        series_id=int(match.group("episode_series")),
        season_number=int(match.group("episode_season")),
        episode_number=int(match.group("episode_number")),
        season_type=match.group("episode_tag"),
    )


def encode(parsed: ParsedRatingKey) -> str:
    """Inverse of decode()."""
    if parsed.type == "show":
        return encode_show(parsed.series_id)
    if parsed.type == "season":
        return encode_season(parsed.series_id, parsed.season_number, parsed.season_type)
    if parsed.type == "episode":
        return encode_episode(
            parsed.series_id, parsed.season_number, parsed.episode_number, parsed.season_type
        )
    raise InvalidRatingKeyError(str(parsed), f"unsupported type '{parsed.type}'")


def build_guid(scheme: str, type_word: str, rating_key: str) -> str:
    """Composite URI identifying an entity in the provider's namespace."""
    return f"{scheme}://{type_word}/{rating_key}"


def guid_rating_key(guid: str) -> str:
    """
    Rating key carried by a guid from build_guid().

    Raises:
        InvalidRatingKeyError: If the last path segment is not a rating key
    """
    rating_key = guid.rpartition("/")[2]
    decode(rating_key)
    return rating_key


def metadata_key(rating_key: str, children: bool = False) -> str:
    """Client-facing path of an entity, optionally pointing at its children."""
    key = f"{METADATA_PATH}/{rating_key}"
    return f"{key}/children" if children else key


def external_guid(source: str, external_id: Union[int, str]) -> str:
    """Guid of the same entity in another catalog, e.g. "imdb://tt1305826"."""
    return f"{source}://{external_id}"
