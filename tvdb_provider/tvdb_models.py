#!/usr/bin/env python3
"""
TheTVDB v4 Data Models

Dataclasses for the records TheTVDB API v4 returns, as parsed by the client in
`metadata_tvdb`. The mapper reads these and never modifies them.

TheTVDB keys several record kinds by integer type codes. Those codes are spelled
out here as enums so the rest of the code never compares against bare numbers.

Project: TVDB Provider
Version: 1.0.0
License: MIT
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional


# Type Codes

class TVDBArtworkType(IntEnum):
    """Artwork type codes."""

    BANNER = 1
    POSTER = 2
    BACKGROUND = 3
    ICON = 5
    CLEARART = 6
    CLEARLOGO = 7
    ACTOR = 8
    CINEMAGRAPH = 9


class TVDBRemoteIdType(IntEnum):
    """Remote ID source codes."""

    OFFICIAL_WEBSITE = 1
    IMDB = 2
    FANSITE = 4
    FACEBOOK = 10
    TWITTER = 11
    TMDB = 12
    INSTAGRAM = 13
    REDDIT = 14
    TIKTOK = 15


class TVDBCharacterType(IntEnum):
    """
    People type codes carried on character records.

    TheTVDB uses the character list for both cast and crew, telling them apart
    only by this code.
    """

    DIRECTOR = 1
    WRITER = 2
    ACTOR = 3
    PRODUCER = 4

    @classmethod
    def from_code(cls, code: Optional[int]) -> Optional[TVDBCharacterType]:
        """Return the member for `code`, or None for codes we do not map."""
        try:
            return cls(code)
        except ValueError:
            return None


# Records

@dataclass
class TVDBArtwork:
    """TVDB artwork metadata."""

    id: Optional[int] = None
    image: Optional[str] = None
    thumbnail: Optional[str] = None
    type: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    includes_text: Optional[bool] = None
    language: Optional[str] = None
    score: Optional[float] = None


@dataclass
class TVDBCharacter:
    """TVDB character information (cast and crew)."""

    id: Optional[int] = None
    name: Optional[str] = None
    people_id: Optional[int] = None
    type: Optional[int] = None
    sort: Optional[int] = None
    person_name: Optional[str] = None
    person_image: Optional[str] = None
    image: Optional[str] = None
    series_id: Optional[int] = None
    episode_id: Optional[int] = None
    is_featured: Optional[bool] = None


@dataclass
class TVDBCompany:
    """TVDB company/network information."""

    id: Optional[int] = None
    name: Optional[str] = None
    slug: Optional[str] = None
    country: Optional[str] = None
    primary_company_type: Optional[int] = None


@dataclass
class TVDBGenre:
    id: Optional[int] = None
    name: Optional[str] = None
    slug: Optional[str] = None


@dataclass
class TVDBRemoteId:
    """TVDB remote ID mappings."""

    id: Optional[str] = None
    type: Optional[int] = None
    source_name: Optional[str] = None


@dataclass
class TVDBContentRating:
    """Per-country content rating."""

    id: Optional[int] = None
    name: Optional[str] = None
    country: Optional[str] = None
    description: Optional[str] = None
    content_type: Optional[str] = None
    order: Optional[int] = None
    full_name: Optional[str] = None


@dataclass
class TVDBSeasonType:
    """TVDB season type (episode ordering) information."""

    id: Optional[int] = None
    name: Optional[str] = None
    type: Optional[str] = None
    alternate_name: Optional[str] = None


@dataclass
class TVDBEpisode:
    """
    TVDB episode record.

    The base record from series episode listings leaves the extended fields
    (characters, remote ids, content ratings) empty; `/episodes/{id}/extended`
    fills them.
    """

    id: Optional[int] = None
    series_id: Optional[int] = None
    name: Optional[str] = None
    overview: Optional[str] = None
    aired: Optional[str] = None
    runtime: Optional[int] = None
    image: Optional[str] = None
    image_type: Optional[int] = None
    number: Optional[int] = None
    season_number: Optional[int] = None
    absolute_number: Optional[int] = None
    is_movie: Optional[bool] = None
    finale_type: Optional[str] = None
    year: Optional[str] = None
    last_updated: Optional[str] = None
    production_code: Optional[str] = None
    characters: List[TVDBCharacter] = field(default_factory=list)
    remote_ids: List[TVDBRemoteId] = field(default_factory=list)
    content_ratings: List[TVDBContentRating] = field(default_factory=list)


@dataclass
class TVDBSeason:
    """
    TVDB season record.

    `artworks` and `episodes` stay None on the short record embedded in a series
    and are only populated by `/seasons/{id}/extended`.
    """

    id: Optional[int] = None
    series_id: Optional[int] = None
    number: Optional[int] = None
    name: Optional[str] = None
    image: Optional[str] = None
    image_type: Optional[int] = None
    season_type: Optional[TVDBSeasonType] = None
    year: Optional[str] = None
    last_updated: Optional[str] = None
    artworks: Optional[List[TVDBArtwork]] = None
    episodes: Optional[List[TVDBEpisode]] = None


@dataclass
class TVDBSeries:
    """TVDB series record as returned by `/series/{id}/extended`."""

    id: Optional[int] = None
    name: Optional[str] = None
    slug: Optional[str] = None
    image: Optional[str] = None
    overview: Optional[str] = None
    first_aired: Optional[str] = None
    last_aired: Optional[str] = None
    next_aired: Optional[str] = None
    score: Optional[float] = None
    status: Optional[str] = None
    original_country: Optional[str] = None
    original_language: Optional[str] = None
    default_season_type: Optional[int] = None
    average_runtime: Optional[int] = None
    year: Optional[str] = None
    last_updated: Optional[str] = None
    original_network: Optional[TVDBCompany] = None
    latest_network: Optional[TVDBCompany] = None
    artworks: List[TVDBArtwork] = field(default_factory=list)
    companies: List[TVDBCompany] = field(default_factory=list)
    genres: List[TVDBGenre] = field(default_factory=list)
    remote_ids: List[TVDBRemoteId] = field(default_factory=list)
    characters: List[TVDBCharacter] = field(default_factory=list)
    seasons: List[TVDBSeason] = field(default_factory=list)
    content_ratings: List[TVDBContentRating] = field(default_factory=list)
    season_types: List[TVDBSeasonType] = field(default_factory=list)


@dataclass
class TVDBSearchResult:
    """One hit from `/search`."""

    tvdb_id: Optional[int] = None
    name: Optional[str] = None
    year: Optional[str] = None
    first_air_time: Optional[str] = None
    overview: Optional[str] = None
    image_url: Optional[str] = None
    network: Optional[str] = None
    country: Optional[str] = None
    primary_type: Optional[str] = None
    aliases: List[str] = field(default_factory=list)
    remote_ids: List[TVDBRemoteId] = field(default_factory=list)
