#!/usr/bin/env python3
"""
TVDB Provider Mapper

Converts TheTVDB v4 records (series, season, episode and their nested artwork,
cast/crew, rating and company lists) into the show/season/episode metadata
schema served to the media client.

The mapper holds no state besides the provider identifier used to build guids.
Given identical inputs, including the country used to resolve content ratings,
it always produces identical output. Missing optional upstream fields simply
leave the corresponding output field absent.

Project: TVDB Provider
Version: 1.0.0
License: MIT
"""

from datetime import date
from typing import Dict, Iterable, List, Optional

from .metadata_models import (
    ChildrenContainer,
    EpisodeMetadata,
    GuidTag,
    ImageTag,
    PersonTag,
    RatingTag,
    SeasonMetadata,
    SeasonTypeTag,
    ShowMetadata,
    TagItem,
)
from .provider import TV_PROVIDER_IDENTIFIER
from .rating_keys import (
    DEFAULT_SEASON_TYPE,
    build_guid,
    encode_episode,
    encode_season,
    encode_show,
    external_guid,
    guid_rating_key,
    metadata_key,
)
from .tvdb_models import (
    TVDBArtwork,
    TVDBArtworkType,
    TVDBCharacter,
    TVDBCharacterType,
    TVDBContentRating,
    TVDBEpisode,
    TVDBRemoteId,
    TVDBRemoteIdType,
    TVDBSeason,
    TVDBSeasonType,
    TVDBSeries,
)

MAX_CAST_MEMBERS = 1000
MS_PER_MINUTE = 60 * 1000
RATING_IMAGE = "thetvdb://image.rating"
DEFAULT_COUNTRY = "US"
US_COUNTRY_CODES = ("US", "USA")

# Season types that make up the official (aired) ordering
CANONICAL_SEASON_TYPES = ("default", "official")

SEASON_TYPE_TAGS: Dict[str, str] = {
    "default": DEFAULT_SEASON_TYPE,
    "official": DEFAULT_SEASON_TYPE,
    "dvd": "dvd",
    "absolute": "absolute",
    "alternate": "alternate",
    "regional": "regional",
}

# Image type emitted for each artwork code; banners stand in for backgrounds
ARTWORK_IMAGE_TYPES: Dict[int, str] = {
    TVDBArtworkType.POSTER: "coverPoster",
    TVDBArtworkType.BACKGROUND: "background",
    TVDBArtworkType.CLEARLOGO: "clearLogo",
    TVDBArtworkType.BANNER: "background",
}

CREW_BUCKETS: Dict[TVDBCharacterType, str] = {
    TVDBCharacterType.DIRECTOR: "directors",
    TVDBCharacterType.PRODUCER: "producers",
    TVDBCharacterType.WRITER: "writers",
}


def parse_year(value: Optional[str]) -> Optional[int]:
    """Calendar year of an ISO date ("2010-04-05") or bare year ("2010")."""
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10]).year
    except ValueError:
        pass
    try:
        return int(value[:4])
    except ValueError:
        return None


def minutes_to_ms(minutes: Optional[int]) -> Optional[int]:
    return minutes * MS_PER_MINUTE if minutes else None


def season_type_tag(season_type: Optional[TVDBSeasonType]) -> str:
    """Short ordering tag for a season type; unknown types pass through lowercased."""
    if season_type is None or not season_type.type:
        return DEFAULT_SEASON_TYPE
    type_word = season_type.type.lower()
    return SEASON_TYPE_TAGS.get(type_word, type_word)


def is_canonical_season(season: TVDBSeason) -> bool:
    return season.season_type is not None and season.season_type.type in CANONICAL_SEASON_TYPES


def display_season_title(season: TVDBSeason) -> str:
    return season.name or f"Season {season.number}"


def season_rating_key(series_id: int, season: TVDBSeason) -> str:
    """Rating key for a season; the default ordering carries no tag."""
    tag = season_type_tag(season.season_type)
    return encode_season(series_id, season.number, None if tag == DEFAULT_SEASON_TYPE else tag)


def _or_none(items: list) -> Optional[list]:
    return items if items else None


def _find_artwork(artworks: Iterable[TVDBArtwork], artwork_type: TVDBArtworkType) -> Optional[TVDBArtwork]:
    return next((a for a in artworks if a.type == artwork_type and a.image), None)


def _find_remote_id(remote_ids: Iterable[TVDBRemoteId], id_type: TVDBRemoteIdType) -> Optional[TVDBRemoteId]:
    return next((remote for remote in remote_ids if remote.type == id_type and remote.id), None)


class TVDBMapper:
    """
    Maps TheTVDB records to provider metadata.

    Args:
        identifier: Provider identifier used as the scheme of every entity guid
    """

    def __init__(self, identifier: str = TV_PROVIDER_IDENTIFIER):
        self.identifier = identifier

    # ==================== SHARED COLLECTIONS ====================

    def _map_images(self, artworks: Optional[List[TVDBArtwork]], title: str) -> Optional[List[ImageTag]]:
        """Pick at most one poster, one background and one clear logo."""
        if not artworks:
            return None

        images: List[ImageTag] = []

        poster = _find_artwork(artworks, TVDBArtworkType.POSTER)
        if poster:
            images.append(ImageTag(type="coverPoster", url=poster.image, alt=title))

        background = _find_artwork(artworks, TVDBArtworkType.BACKGROUND)
        if background:
            images.append(ImageTag(type="background", url=background.image, alt=title))

        clear_logo = _find_artwork(artworks, TVDBArtworkType.CLEARLOGO)
        if clear_logo:
            images.append(ImageTag(type="clearLogo", url=clear_logo.image, alt=title))

        if not background:
            banner = _find_artwork(artworks, TVDBArtworkType.BANNER)
            if banner:
                images.append(ImageTag(type="background", url=banner.image, alt=title))

        return _or_none(images)

    def _map_cast(self, characters: Optional[List[TVDBCharacter]]) -> Optional[List[PersonTag]]:
        """Actors ordered by TheTVDB sort value, re-numbered from 1."""
        if not characters:
            return None

        actors = [c for c in characters if TVDBCharacterType.from_code(c.type) is TVDBCharacterType.ACTOR]
        actors.sort(key=lambda c: c.sort or 0)

        return _or_none([
            PersonTag(
                tag=member.person_name or "",
                role=member.name or None,
                order=position,
                thumb=member.person_image or None,
            )
            for position, member in enumerate(actors[:MAX_CAST_MEMBERS], start=1)
        ])

    def _map_crew(self, characters: Optional[List[TVDBCharacter]]) -> Dict[str, Optional[List[PersonTag]]]:
        """
        Split crew members into director, producer and writer lists.

        Characters whose type code is not in CREW_BUCKETS (actors included) are
        not part of any crew list.
        """
        buckets: Dict[str, List[PersonTag]] = {name: [] for name in CREW_BUCKETS.values()}

        for member in characters or []:
            bucket = CREW_BUCKETS.get(TVDBCharacterType.from_code(member.type))
            if bucket is None:
                continue
            buckets[bucket].append(PersonTag(tag=member.person_name or "", thumb=member.person_image or None))

        return {name: _or_none(people) for name, people in buckets.items()}

    def _content_rating(
        self,
        content_ratings: Optional[List[TVDBContentRating]],
        country: Optional[str] = DEFAULT_COUNTRY,
    ) -> Optional[str]:
        """
        Content rating for `country`.

        "US" and "USA" are interchangeable. US ratings are returned bare
        ("TV-PG"), others are prefixed with the lowercase country ("gb/15").
        """
        if not content_ratings:
            return None

        requested = (country or DEFAULT_COUNTRY).upper()
        is_us = requested in US_COUNTRY_CODES

        for rating in content_ratings:
            rating_country = (rating.country or "").upper()
            if rating_country == requested or (is_us and rating_country in US_COUNTRY_CODES):
                if is_us:
                    return rating.name
                return f"{(rating.country or requested).lower()}/{rating.name}"

        return None

    # ==================== SERIES ====================

    def _series_guids(self, series: TVDBSeries) -> List[GuidTag]:
        guids = [GuidTag(id=external_guid("tvdb", series.id))]

        imdb = _find_remote_id(series.remote_ids, TVDBRemoteIdType.IMDB)
        if imdb:
            guids.append(GuidTag(id=external_guid("imdb", imdb.id)))

        tmdb = _find_remote_id(series.remote_ids, TVDBRemoteIdType.TMDB)
        if tmdb:
            guids.append(GuidTag(id=external_guid("tmdb", tmdb.id)))

        return guids

    def _series_ratings(self, series: TVDBSeries) -> Optional[List[RatingTag]]:
        if series.score and series.score > 0:
            return [RatingTag(image=RATING_IMAGE, type="audience", value=series.score)]
        return None

    def _series_networks(self, series: TVDBSeries) -> Optional[List[TagItem]]:
        networks: List[TagItem] = []
        original = series.original_network
        latest = series.latest_network

        if original and original.name:
            networks.append(TagItem(tag=original.name))

        if latest and latest.name and (original is None or latest.id != original.id):
            networks.append(TagItem(tag=latest.name))

        return _or_none(networks)

    def _series_season_types(self, series: TVDBSeries) -> Optional[List[SeasonTypeTag]]:
        return _or_none([
            SeasonTypeTag(
                id=str(season_type.id),
                source="tvdb",
                tag=season_type.name or "",
                title=season_type.alternate_name or season_type.name or "",
            )
            for season_type in series.season_types
        ])

    def map_series(
        self,
        series: TVDBSeries,
        include_children: bool = False,
        country: Optional[str] = DEFAULT_COUNTRY,
    ) -> ShowMetadata:
        """
        Map a TVDB series to show metadata.

        Args:
            series: Extended series record
            include_children: Attach the default-ordering seasons as Children
            country: Country whose content rating should be reported

        Returns:
            ShowMetadata for the series
        """
        rating_key = encode_show(series.id)
        title = series.name or ""
        crew = self._map_crew(series.characters)
        background = _find_artwork(series.artworks, TVDBArtworkType.BACKGROUND)

        show = ShowMetadata(
            rating_key=rating_key,
            key=metadata_key(rating_key, children=True),
            guid=build_guid(self.identifier, "show", rating_key),
            title=title,
            originally_available_at=series.first_aired or "",
            year=parse_year(series.first_aired),
            summary=series.overview or None,
            thumb=series.image or None,
            art=background.image if background else None,
            content_rating=self._content_rating(series.content_ratings, country),
            duration=minutes_to_ms(series.average_runtime),
            studio=series.original_network.name if series.original_network else None,
            images=self._map_images(series.artworks, title),
            genres=_or_none([TagItem(tag=genre.name) for genre in series.genres if genre.name]),
            guids=self._series_guids(series),
            countries=[TagItem(tag=series.original_country)] if series.original_country else None,
            roles=self._map_cast(series.characters),
            directors=crew["directors"],
            producers=crew["producers"],
            writers=crew["writers"],
            studios=_or_none([TagItem(tag=company.name) for company in series.companies if company.name]),
            ratings=self._series_ratings(series),
            networks=self._series_networks(series),
            season_types=self._series_season_types(series),
        )

        if include_children and series.seasons:
            seasons = [
                self.map_season(season, series.id, title, show.guid, series.image or None)
                for season in series.seasons
                if is_canonical_season(season) and season.number is not None
            ]
            show.children = ChildrenContainer(size=len(seasons), metadata=seasons)

        return show

    # ==================== SEASON ====================

    def map_season(
        self,
        season: TVDBSeason,
        series_id: int,
        show_title: str,
        show_guid: str,
        show_thumb: Optional[str] = None,
        include_children: bool = False,
    ) -> SeasonMetadata:
        """
        Map a TVDB season to season metadata.

        The default ordering is left out of the rating key, so aired-order seasons
        get "tvdb-season-{series}-{number}" while a DVD-order season gets
        "tvdb-season-{series}-{number}-dvd".
        """
        rating_key = season_rating_key(series_id, season)
        parent_rating_key = encode_show(series_id)
        title = display_season_title(season)

        metadata = SeasonMetadata(
            rating_key=rating_key,
            key=metadata_key(rating_key, children=True),
            guid=build_guid(self.identifier, "season", rating_key),
            title=title,
            originally_available_at="",
            index=season.number,
            parent_rating_key=parent_rating_key,
            parent_key=metadata_key(parent_rating_key),
            parent_guid=show_guid,
            parent_title=show_title,
            parent_thumb=show_thumb,
            thumb=season.image or None,
            guids=[GuidTag(id=external_guid("tvdb", season.id))],
        )

        if season.image:
            metadata.images = [ImageTag(type="coverPoster", url=season.image, alt=title)]

        if season.artworks:
            metadata.images = self._map_images(season.artworks, title)

        if include_children and season.episodes:
            episodes = [
                self.map_episode(
                    episode,
                    series_id,
                    show_title,
                    show_guid,
                    title,
                    metadata.guid,
                    show_thumb,
                    season.image or None,
                )
                for episode in season.episodes
            ]
            metadata.children = ChildrenContainer(size=len(episodes), metadata=episodes)

        return metadata

    # ==================== EPISODE ====================

    def map_episode(
        self,
        episode: TVDBEpisode,
        series_id: int,
        show_title: str,
        show_guid: str,
        season_title: str,
        season_guid: str,
        show_thumb: Optional[str] = None,
        season_thumb: Optional[str] = None,
    ) -> EpisodeMetadata:
        """
        Map a TVDB episode to episode metadata.

        The episode key is always built in the default ordering; callers serving
        an alternate ordering must encode their own keys. The parent season key
        is read from `season_guid`, so parentRatingKey, parentKey and parentGuid
        name the same season in any ordering.
        """
        rating_key = encode_episode(series_id, episode.season_number, episode.number)
        parent_rating_key = guid_rating_key(season_guid)
        grandparent_rating_key = encode_show(series_id)
        title = episode.name or f"Episode {episode.number}"
        crew = self._map_crew(episode.characters)

        guids = [GuidTag(id=external_guid("tvdb", episode.id))]
        imdb = _find_remote_id(episode.remote_ids, TVDBRemoteIdType.IMDB)
        if imdb:
            guids.append(GuidTag(id=external_guid("imdb", imdb.id)))

        return EpisodeMetadata(
            rating_key=rating_key,
            key=metadata_key(rating_key),
            guid=build_guid(self.identifier, "episode", rating_key),
            title=title,
            originally_available_at=episode.aired or "",
            year=parse_year(episode.aired),
            summary=episode.overview or None,
            thumb=episode.image or None,
            duration=minutes_to_ms(episode.runtime),
            index=episode.number,
            parent_index=episode.season_number,
            parent_rating_key=parent_rating_key,
            parent_key=metadata_key(parent_rating_key),
            parent_guid=season_guid,
            parent_title=season_title,
            parent_thumb=season_thumb,
            grandparent_rating_key=grandparent_rating_key,
            grandparent_key=metadata_key(grandparent_rating_key),
            grandparent_guid=show_guid,
            grandparent_title=show_title,
            grandparent_thumb=show_thumb,
            images=[ImageTag(type="snapshot", url=episode.image, alt=title)] if episode.image else None,
            guids=guids,
            roles=self._map_cast(episode.characters),
            directors=crew["directors"],
            producers=crew["producers"],
            writers=crew["writers"],
        )

    # ==================== IMAGES ====================

    def map_all_images(self, artworks: Optional[List[TVDBArtwork]], title: str) -> List[ImageTag]:
        """Every poster, background, clear logo and banner, in input order."""
        images: List[ImageTag] = []

        for artwork in artworks or []:
            image_type = ARTWORK_IMAGE_TYPES.get(artwork.type)
            if image_type is None or not artwork.image:
                continue
            images.append(ImageTag(type=image_type, url=artwork.image, alt=title))

        return images
