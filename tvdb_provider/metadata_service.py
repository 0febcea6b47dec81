#!/usr/bin/env python3
"""
TVDB Provider Metadata Service

Answers the media client's lookups by ratingKey. Each request decodes the key,
fetches the needed TheTVDB records through the client, maps them with
`TVDBMapper` and wraps the result in a `MediaContainer`.

Children and grandchildren listings are built in full and then windowed with
the client's 1-based paging parameters.

Classes:
    MetadataOptions, PagingOptions: Per-request inputs
    MetadataService: Lookup coordinator
    MetadataServiceError, MetadataNotFoundError, UnsupportedMetadataTypeError: Service errors

Project: TVDB Provider
Version: 1.0.0
License: MIT
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .metadata_models import (
    EpisodeMetadata,
    ImageTag,
    MediaContainer,
    MetadataResponse,
)
from .provider import TV_PROVIDER_IDENTIFIER
from .rating_keys import ParsedRatingKey, build_guid, decode, encode_season, encode_show
from .tvdb_mapper import (
    DEFAULT_COUNTRY,
    TVDBMapper,
    display_season_title,
    is_canonical_season,
    season_rating_key,
)
from .tvdb_models import TVDBSeason, TVDBSeries
from .utils import get_logger

DEFAULT_CONTAINER_SIZE = 20


class MetadataServiceError(Exception):
    """Base exception for lookup failures the service itself detects."""
    pass


class MetadataNotFoundError(MetadataServiceError):
    """A season or episode addressed by number does not exist upstream."""
    pass


class UnsupportedMetadataTypeError(MetadataServiceError):
    """The operation is not defined for the requested entity type."""
    pass


@dataclass
class MetadataOptions:
    """
    Request context for metadata lookups.

    `language` is accepted for the client's X-Plex-Language header but TheTVDB
    records are currently served in their original language.
    """

    language: Optional[str] = None
    country: Optional[str] = DEFAULT_COUNTRY
    include_children: bool = False


@dataclass
class PagingOptions:
    """1-based paging window from X-Plex-Container-Start/Size."""

    container_start: int = 1
    container_size: int = DEFAULT_CONTAINER_SIZE

    @property
    def offset(self) -> int:
        return max(self.container_start, 1) - 1

    def window(self, items: Sequence) -> list:
        """Slice `items` to the requested page."""
        return list(items[self.offset:self.offset + max(self.container_size, 0)])


class MetadataService:
    """
    Coordinates TheTVDB lookups and mapping for ratingKey requests.

    Args:
        client: TheTVDB client (see `metadata_tvdb.TVDB`)
        mapper: Mapper to use; a default `TVDBMapper` is created when omitted
        identifier: Provider identifier reported in every container
    """

    def __init__(self, client, mapper: Optional[TVDBMapper] = None, identifier: str = TV_PROVIDER_IDENTIFIER):
        self.client = client
        self.identifier = identifier
        self.mapper = mapper or TVDBMapper(identifier)
        self.logger = get_logger("tvdb_provider.metadata")

    def _container(
        self,
        items: List,
        total_size: Optional[int] = None,
        offset: int = 0,
        images: bool = False,
    ) -> MetadataResponse:
        container = MediaContainer(
            offset=offset,
            total_size=len(items) if total_size is None else total_size,
            identifier=self.identifier,
            size=len(items),
        )
        if images:
            container.images = items
        else:
            container.metadata = items
        return MetadataResponse(media_container=container)

    def _paged(self, items: List, paging: Optional[PagingOptions]) -> MetadataResponse:
        paging = paging or PagingOptions()
        return self._container(paging.window(items), total_size=len(items), offset=paging.offset)

    async def _require_season(self, parsed: ParsedRatingKey) -> TVDBSeason:
        season = await self.client.get_season_by_number(parsed.series_id, parsed.season_number, parsed.ordering)
        if season is None:
            raise MetadataNotFoundError(
                f"Season {parsed.season_number} not found for series {parsed.series_id}"
            )
        return season

    async def _require_episode(self, parsed: ParsedRatingKey):
        episode = await self.client.get_episode_by_number(
            parsed.series_id, parsed.season_number, parsed.episode_number, parsed.ordering
        )
        if episode is None:
            raise MetadataNotFoundError(
                f"Episode S{parsed.season_number}E{parsed.episode_number} not found for series {parsed.series_id}"
            )
        return episode

    def _show_guid(self, series_id: int) -> str:
        return build_guid(self.identifier, "show", encode_show(series_id))

    def _season_episodes(
        self,
        series_id: int,
        series: TVDBSeries,
        season: TVDBSeason,
        details: TVDBSeason,
    ) -> List[EpisodeMetadata]:
        season_guid = build_guid(self.identifier, "season", season_rating_key(series_id, season))
        return [
            self.mapper.map_episode(
                episode,
                series_id,
                series.name or "",
                self._show_guid(series_id),
                display_season_title(season),
                season_guid,
                series.image or None,
                season.image or None,
            )
            for episode in details.episodes or []
        ]

    # ==================== METADATA ====================

    async def get_metadata(self, rating_key: str, options: Optional[MetadataOptions] = None) -> MetadataResponse:
        """
        Fetch and map the single entity addressed by `rating_key`.

        Raises:
            InvalidRatingKeyError: If the key cannot be decoded
            MetadataNotFoundError: If the season or episode does not exist
        """
        options = options or MetadataOptions()
        parsed = decode(rating_key)
        self.logger.debug(f"Fetching metadata for {rating_key}")

        series = await self.client.get_series_details(parsed.series_id)

        if parsed.type == "show":
            item = self.mapper.map_series(series, include_children=options.include_children, country=options.country)

        elif parsed.type == "season":
            season = await self._require_season(parsed)
            if options.include_children:
                season = await self.client.get_season_details(season.id)
            item = self.mapper.map_season(
                season,
                parsed.series_id,
                series.name or "",
                self._show_guid(parsed.series_id),
                series.image or None,
                include_children=options.include_children,
            )

        else:
            episode = await self._require_episode(parsed)
            details = await self.client.get_episode_details(episode.id)
            item = self.mapper.map_episode(
                details,
                parsed.series_id,
                series.name or "",
                self._show_guid(parsed.series_id),
                f"Season {parsed.season_number}",
                build_guid(self.identifier, "season", encode_season(parsed.series_id, parsed.season_number)),
                series.image or None,
            )

        return self._container([item])

    # ==================== CHILDREN ====================

    async def get_children(
        self,
        rating_key: str,
        options: Optional[MetadataOptions] = None,
        paging: Optional[PagingOptions] = None,
    ) -> MetadataResponse:
        """
        List the seasons of a show or the episodes of a season.

        Seasons are limited to the default ordering (number 0 and up, so
        specials are included). Episodes follow the ordering carried by the
        season key.

        Raises:
            UnsupportedMetadataTypeError: For episode keys
        """
        parsed = decode(rating_key)

        if parsed.type == "episode":
            raise UnsupportedMetadataTypeError(f"Cannot get children for type: {parsed.type}")

        series = await self.client.get_series_details(parsed.series_id)

        if parsed.type == "show":
            show_guid = self._show_guid(parsed.series_id)
            children = [
                self.mapper.map_season(season, parsed.series_id, series.name or "", show_guid, series.image or None)
                for season in series.seasons
                if is_canonical_season(season) and season.number is not None and season.number >= 0
            ]
        else:
            season = await self._require_season(parsed)
            details = await self.client.get_season_details(season.id)
            children = self._season_episodes(parsed.series_id, series, season, details)

        self.logger.debug(f"{rating_key} has {len(children)} children")
        return self._paged(children, paging)

    async def get_grandchildren(
        self,
        rating_key: str,
        options: Optional[MetadataOptions] = None,
        paging: Optional[PagingOptions] = None,
    ) -> MetadataResponse:
        """
        List every episode of a show's regular seasons (number 1 and up).

        Seasons are fetched one after another in TheTVDB's order, so the
        concatenated episode list is stable across pages.

        Raises:
            UnsupportedMetadataTypeError: For season and episode keys
        """
        parsed = decode(rating_key)

        if parsed.type != "show":
            raise UnsupportedMetadataTypeError(f"Cannot get grandchildren for type: {parsed.type}")

        series = await self.client.get_series_details(parsed.series_id)

        episodes: List[EpisodeMetadata] = []
        for season in series.seasons:
            if not is_canonical_season(season) or season.number is None or season.number < 1:
                continue
            details = await self.client.get_season_details(season.id)
            episodes.extend(self._season_episodes(parsed.series_id, series, season, details))

        self.logger.debug(f"{rating_key} has {len(episodes)} grandchildren")
        return self._paged(episodes, paging)

    # ==================== IMAGES ====================

    async def get_images(self, rating_key: str, options: Optional[MetadataOptions] = None) -> MetadataResponse:
        """
        List every available image for the entity.

        Raises:
            MetadataNotFoundError: If the season or episode does not exist
        """
        parsed = decode(rating_key)
        series = await self.client.get_series_details(parsed.series_id)
        series_name = series.name or ""

        images: List[ImageTag]
        if parsed.type == "show":
            artworks = await self.client.get_series_artworks(parsed.series_id)
            images = self.mapper.map_all_images(artworks, series_name)

        elif parsed.type == "season":
            season = await self._require_season(parsed)
            artworks = await self.client.get_season_artworks(season.id)
            images = self.mapper.map_all_images(artworks, f"{series_name} - Season {parsed.season_number}")

        else:
            episode = await self._require_episode(parsed)
            images = []
            if episode.image:
                images.append(ImageTag(
                    type="snapshot",
                    url=episode.image,
                    alt=f"{series_name} - S{parsed.season_number}E{parsed.episode_number}",
                ))

        return self._container(images, images=True)
