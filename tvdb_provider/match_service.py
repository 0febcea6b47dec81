#!/usr/bin/env python3
"""
TVDB Provider Match Service

Resolves the media client's match hints (title, year, external guid, season and
episode indices) to TheTVDB entities and returns them mapped exactly like a
metadata lookup would.

Classes:
    MatchRequest: Body of POST /library/metadata/matches
    MatchService: Search and selection over TheTVDB

Project: TVDB Provider
Version: 1.0.0
License: MIT
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .metadata_models import MediaContainer, MetadataResponse
from .metadata_service import MetadataOptions, UnsupportedMetadataTypeError
from .metadata_tvdb import TVDBNotFoundError
from .provider import TV_PROVIDER_IDENTIFIER, MetadataType
from .rating_keys import build_guid, encode_season, encode_show
from .tvdb_mapper import TVDBMapper
from .utils import get_logger

MANUAL_MATCH_LIMIT = 5
SEARCH_LIMIT = 10
REMOTE_ID_SOURCES = ("imdb", "tmdb")


class MatchRequest(BaseModel):
    """
    Match hints sent by the media client.

    Only `type` is required. Unknown fields are ignored since clients send
    additional hints (filename, date, ...) we do not use.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: int
    title: Optional[str] = None
    year: Optional[int] = None
    guid: Optional[str] = None
    manual: int = 0
    index: Optional[int] = None
    parent_index: Optional[int] = Field(default=None, alias="parentIndex")
    parent_title: Optional[str] = Field(default=None, alias="parentTitle")
    parent_guid: Optional[str] = Field(default=None, alias="parentGuid")
    grandparent_title: Optional[str] = Field(default=None, alias="grandparentTitle")
    grandparent_guid: Optional[str] = Field(default=None, alias="grandparentGuid")


def split_guid(guid: Optional[str]):
    """Split "source://id" into (source, id); returns (None, None) otherwise."""
    if not guid or "://" not in guid:
        return None, None
    source, _, external_id = guid.partition("://")
    return source.lower(), external_id.strip("/")


class MatchService:
    """
    Finds TheTVDB entities for match requests.

    Args:
        client: TheTVDB client (see `metadata_tvdb.TVDB`)
        mapper: Mapper to use; a default `TVDBMapper` is created when omitted
        identifier: Provider identifier reported in every container
    """

    def __init__(self, client, mapper: Optional[TVDBMapper] = None, identifier: str = TV_PROVIDER_IDENTIFIER):
        self.client = client
        self.identifier = identifier
        self.mapper = mapper or TVDBMapper(identifier)
        self.logger = get_logger("tvdb_provider.match")

    def _container(self, items: List) -> MetadataResponse:
        return MetadataResponse(media_container=MediaContainer(
            offset=0,
            total_size=len(items),
            identifier=self.identifier,
            size=len(items),
            metadata=items,
        ))

    async def _find_series_ids(
        self,
        title: Optional[str],
        year: Optional[int] = None,
        guid: Optional[str] = None,
        limit: int = 1,
    ) -> List[int]:
        """
        Candidate TheTVDB series ids, best first.

        A tvdb guid names the series directly, imdb/tmdb guids go through the
        remote id search, and anything else falls back to a title search.
        """
        source, external_id = split_guid(guid)

        if source == "tvdb" and external_id and external_id.isdigit():
            return [int(external_id)]

        if source in REMOTE_ID_SOURCES and external_id:
            hits = await self.client.search_by_remote_id(external_id)
            return [hit.tvdb_id for hit in hits if hit.tvdb_id][:limit]

        if not title:
            return []

        hits = await self.client.search_series(title, year=year, limit=max(limit, SEARCH_LIMIT))
        return [hit.tvdb_id for hit in hits if hit.tvdb_id][:limit]

    async def match(self, request: MatchRequest, options: Optional[MetadataOptions] = None) -> MetadataResponse:
        """
        Match a show, season or episode.

        Returns:
            Container with the best hit, up to five hits for manual show
            matches, or no hits at all

        Raises:
            UnsupportedMetadataTypeError: For types other than show, season or episode
        """
        options = options or MetadataOptions()

        if request.type == MetadataType.SHOW:
            items = await self._match_shows(request, options)
        elif request.type == MetadataType.SEASON:
            items = await self._match_season(request)
        elif request.type == MetadataType.EPISODE:
            items = await self._match_episode(request)
        else:
            raise UnsupportedMetadataTypeError(f"Unsupported metadata type for match: {request.type}")

        self.logger.info(f"Match for type {request.type} returned {len(items)} result(s)")
        return self._container(items)

    async def _match_shows(self, request: MatchRequest, options: MetadataOptions) -> List:
        limit = MANUAL_MATCH_LIMIT if request.manual else 1
        series_ids = await self._find_series_ids(request.title, request.year, request.guid, limit)

        shows = []
        for series_id in series_ids:
            try:
                series = await self.client.get_series_details(series_id)
            except TVDBNotFoundError:
                self.logger.warning(f"Matched series {series_id} no longer exists in TVDB")
                continue
            shows.append(self.mapper.map_series(series, country=options.country))
        return shows

    async def _match_season(self, request: MatchRequest) -> List:
        if request.index is None:
            return []

        series_ids = await self._find_series_ids(request.parent_title, guid=request.parent_guid)
        if not series_ids:
            return []

        series_id = series_ids[0]
        season = await self.client.get_season_by_number(series_id, request.index)
        if season is None:
            return []

        series = await self.client.get_series_details(series_id)
        show_guid = build_guid(self.identifier, "show", encode_show(series_id))
        return [self.mapper.map_season(season, series_id, series.name or "", show_guid, series.image or None)]

    async def _match_episode(self, request: MatchRequest) -> List:
        if request.index is None or request.parent_index is None:
            return []

        series_ids = await self._find_series_ids(request.grandparent_title, guid=request.grandparent_guid)
        if not series_ids:
            return []

        series_id = series_ids[0]
        episode = await self.client.get_episode_by_number(series_id, request.parent_index, request.index)
        if episode is None:
            return []

        series = await self.client.get_series_details(series_id)
        details = await self.client.get_episode_details(episode.id)
        return [self.mapper.map_episode(
            details,
            series_id,
            series.name or "",
            build_guid(self.identifier, "show", encode_show(series_id)),
            f"Season {request.parent_index}",
            build_guid(self.identifier, "season", encode_season(series_id, request.parent_index)),
            series.image or None,
        )]
