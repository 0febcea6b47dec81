"""
TheTVDB API v4 integration module.

Async client for the TheTVDB v4 REST API. Handles bearer-token login, a sliding
window rate limit and retries with exponential backoff, and parses responses
into the dataclasses from `tvdb_models`.

Nothing is cached: every call goes to TheTVDB.

Project: TVDB Provider
Version: 1.0.0
License: MIT
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urljoin

import aiohttp
from aiohttp import ClientError, ClientSession, ClientTimeout

from .tvdb_models import (
    TVDBArtwork,
    TVDBCharacter,
    TVDBCompany,
    TVDBContentRating,
    TVDBEpisode,
    TVDBGenre,
    TVDBRemoteId,
    TVDBSearchResult,
    TVDBSeason,
    TVDBSeasonType,
    TVDBSeries,
)

# Season types TheTVDB uses for the aired order
DEFAULT_ORDER_TYPES = ("default", "official")


# Exception Classes

class TVDBAPIError(Exception):
    """Base exception for TVDB API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None, response_data: Optional[Dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class TVDBAuthenticationError(TVDBAPIError):
    """Authentication failed with TVDB API."""
    pass


class TVDBRateLimitError(TVDBAPIError):
    """Rate limit exceeded for TVDB API."""

    def __init__(self, message: str, retry_after: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after or 60


class TVDBNotFoundError(TVDBAPIError):
    """Requested resource not found in TVDB."""
    pass


class TVDBServerError(TVDBAPIError):
    """TVDB server error (5xx responses)."""
    pass


def matches_season_type(season: TVDBSeason, season_type: str) -> bool:
    """True when `season` belongs to the ordering named by `season_type`."""
    actual = season.season_type.type if season.season_type else None
    if season_type in DEFAULT_ORDER_TYPES:
        return actual in DEFAULT_ORDER_TYPES
    return actual == season_type


# Main TVDB Class

class TVDB:
    """
    TheTVDB API v4 client.

    Use as an async context manager, or call `close()` when done. The aiohttp
    session is opened lazily on the first request.
    """

    BASE_URL = "https://api4.thetvdb.com/v4/"
    ARTWORK_BASE_URL = "https://artworks.thetvdb.com"
    MAX_RETRIES = 3
    RETRY_BACKOFF_FACTOR = 2.0
    DEFAULT_TIMEOUT = 30
    RATE_LIMIT_WINDOW = 60
    MAX_REQUESTS_PER_WINDOW = 100
    TOKEN_LIFETIME_DAYS = 28

    def __init__(
        self,
        api_key: str,
        pin: Optional[str] = None,
        base_url: str = BASE_URL,
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = MAX_RETRIES,
    ) -> None:
        """
        Initialize TVDB API client.

        Args:
            api_key: TVDB API key
            pin: Optional subscriber PIN
            base_url: API root, e.g. "https://api4.thetvdb.com/v4"
            timeout: Request timeout in seconds
            max_retries: Maximum number of retry attempts
        """
        self.api_key = api_key
        self.pin = pin
        self.base_url = base_url if base_url.endswith("/") else f"{base_url}/"
        self.timeout = ClientTimeout(total=timeout)
        self.max_retries = max_retries

        # Authentication state
        self.bearer_token: Optional[str] = None
        self.token_expires_at: Optional[datetime] = None

        # Rate limiting
        self.request_timestamps: List[float] = []

        self.session: Optional[ClientSession] = None

        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def __aenter__(self) -> TVDB:
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _ensure_session(self) -> None:
        """Ensure aiohttp session is created."""
        if self.session is None or self.session.closed:
            connector = aiohttp.TCPConnector(
                limit=100,
                limit_per_host=10,
                ttl_dns_cache=300,
                use_dns_cache=True,
            )
            self.session = ClientSession(
                timeout=self.timeout,
                connector=connector,
                headers={"User-Agent": "TVDBProvider/1.0"}
            )

    async def close(self) -> None:
        """Close the client session."""
        if self.session and not self.session.closed:
            await self.session.close()

    async def _check_rate_limit(self) -> None:
        """Check and enforce rate limiting."""
        now = time.time()

        self.request_timestamps = [
            ts for ts in self.request_timestamps
            if now - ts < self.RATE_LIMIT_WINDOW
        ]

        if len(self.request_timestamps) >= self.MAX_REQUESTS_PER_WINDOW:
            wait_time = self.RATE_LIMIT_WINDOW - (now - self.request_timestamps[0])
            if wait_time > 0:
                self.logger.warning(f"Rate limit reached, waiting {wait_time:.2f} seconds")
                await asyncio.sleep(wait_time)

        self.request_timestamps.append(now)

    @staticmethod
    async def _error_payload(response: aiohttp.ClientResponse) -> Dict:
        if response.content_type != "application/json":
            return {}
        payload = await response.json()
        return payload if isinstance(payload, dict) else {}

    async def _raise_for_status(self, response: aiohttp.ClientResponse) -> None:
        """Translate a non-200 response into the matching TVDBAPIError subclass."""
        status = response.status
        error_data = await self._error_payload(response)
        detail = error_data.get("message") or error_data.get("Error")

        if status == 401:
            raise TVDBAuthenticationError(
                f"Authentication failed: {detail or 'Invalid credentials'}",
                status_code=status,
                response_data=error_data
            )
        if status == 404:
            raise TVDBNotFoundError(
                f"Resource not found: {detail or 'Not found'}",
                status_code=status,
                response_data=error_data
            )
        if status == 429:
            raise TVDBRateLimitError(
                f"Rate limit exceeded: {detail or 'Too many requests'}",
                retry_after=int(response.headers.get("Retry-After", 60)),
                status_code=status,
                response_data=error_data
            )
        if 500 <= status < 600:
            raise TVDBServerError(
                f"Server error: {detail or 'Internal server error'}",
                status_code=status,
                response_data=error_data
            )
        raise TVDBAPIError(
            f"API error: {detail or f'HTTP {status}'}",
            status_code=status,
            response_data=error_data
        )

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict] = None,
        data: Optional[Dict] = None,
        require_auth: bool = True,
    ) -> Dict:
        """
        Make HTTP request with retries and error mapping.

        Network errors and 5xx responses are retried with exponential backoff;
        429 responses wait for Retry-After. Authentication and not-found errors
        are raised immediately.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            params: URL parameters
            data: Request body data
            require_auth: Whether authentication is required

        Returns:
            Response data as dictionary

        Raises:
            TVDBAPIError: For various API error conditions
        """
        await self._ensure_session()

        if require_auth and not self._is_authenticated():
            await self.authenticate()

        url = urljoin(self.base_url, endpoint.lstrip('/'))
        headers = {}

        if require_auth and self.bearer_token:
            headers["Authorization"] = f"Bearer {self.bearer_token}"

        for attempt in range(self.max_retries + 1):
            await self._check_rate_limit()
            try:
                self.logger.debug(f"Making request: {method} {url} (attempt {attempt + 1})")

                async with self.session.request(
                    method,
                    url,
                    params=params,
                    json=data,
                    headers=headers
                ) as response:
                    if response.status == 200:
                        return await response.json()
                    await self._raise_for_status(response)

            except TVDBRateLimitError as e:
                if attempt >= self.max_retries:
                    raise
                self.logger.warning(f"Rate limited, waiting {e.retry_after} seconds before retry")
                await asyncio.sleep(e.retry_after)

            except (ClientError, asyncio.TimeoutError, TVDBServerError) as e:
                if attempt >= self.max_retries:
                    if isinstance(e, TVDBServerError):
                        raise
                    raise TVDBAPIError(f"Network error after {self.max_retries} retries: {e}") from e
                wait_time = self.RETRY_BACKOFF_FACTOR ** attempt
                self.logger.warning(f"Request failed, retrying in {wait_time:.2f} seconds: {e}")
                await asyncio.sleep(wait_time)

        raise TVDBAPIError("Request failed after all retries")

    def _is_authenticated(self) -> bool:
        """Check if we have a valid authentication token."""
        if not self.bearer_token:
            return False

        if self.token_expires_at and datetime.now() >= self.token_expires_at:
            self.logger.info("Bearer token expired, need to re-authenticate")
            return False

        return True

    async def authenticate(self) -> None:
        """
        Authenticate with TVDB API and obtain bearer token.

        Tokens are valid for about 30 days; we renew after TOKEN_LIFETIME_DAYS.

        Raises:
            TVDBAuthenticationError: If authentication fails
        """
        auth_data = {"apikey": self.api_key}
        if self.pin:
            auth_data["pin"] = self.pin

        response_data = await self._make_request(
            "POST",
            "/login",
            data=auth_data,
            require_auth=False
        )

        token = (response_data.get("data") or {}).get("token")
        if not token:
            raise TVDBAuthenticationError("No token received in authentication response")

        self.bearer_token = token
        self.token_expires_at = datetime.now() + timedelta(days=self.TOKEN_LIFETIME_DAYS)

        access_mode = "subscriber" if self.pin else "standard"
        self.logger.info(f"Successfully authenticated with TVDB API ({access_mode} mode)")

    # ==================== PARSING ====================

    def _artwork_url(self, path: Optional[str]) -> Optional[str]:
        """Absolute artwork URL; TheTVDB sometimes returns site-relative paths."""
        if not path:
            return None
        if path.startswith("/"):
            return f"{self.ARTWORK_BASE_URL}{path}"
        return path

    def _parse_artwork(self, artwork_data: Optional[List[Dict]]) -> List[TVDBArtwork]:
        return [
            TVDBArtwork(
                id=art_dict.get("id"),
                image=self._artwork_url(art_dict.get("image")),
                thumbnail=self._artwork_url(art_dict.get("thumbnail")),
                type=art_dict.get("type"),
                width=art_dict.get("width"),
                height=art_dict.get("height"),
                includes_text=art_dict.get("includesText"),
                language=art_dict.get("language"),
                score=art_dict.get("score")
            )
            for art_dict in artwork_data or []
        ]

    def _parse_characters(self, character_data: Optional[List[Dict]]) -> List[TVDBCharacter]:
        return [
            TVDBCharacter(
                id=char_dict.get("id"),
                name=char_dict.get("name"),
                people_id=char_dict.get("peopleId"),
                type=char_dict.get("type"),
                sort=char_dict.get("sort"),
                person_name=char_dict.get("personName"),
                person_image=self._artwork_url(char_dict.get("personImgURL")),
                image=self._artwork_url(char_dict.get("image")),
                series_id=char_dict.get("seriesId"),
                episode_id=char_dict.get("episodeId"),
                is_featured=char_dict.get("isFeatured")
            )
            for char_dict in character_data or []
        ]

    @staticmethod
    def _parse_company(comp_dict: Optional[Dict]) -> Optional[TVDBCompany]:
        if not comp_dict:
            return None
        return TVDBCompany(
            id=comp_dict.get("id"),
            name=comp_dict.get("name"),
            slug=comp_dict.get("slug"),
            country=comp_dict.get("country"),
            primary_company_type=comp_dict.get("primaryCompanyType")
        )

    def _parse_companies(self, company_data: Any) -> List[TVDBCompany]:
        # Seasons group their companies by role, series return a flat list
        if isinstance(company_data, dict):
            company_data = [
                company
                for group in company_data.values()
                for company in group or []
            ]
        return [self._parse_company(comp_dict) for comp_dict in company_data or [] if comp_dict]

    @staticmethod
    def _parse_remote_ids(remote_data: Optional[List[Dict]]) -> List[TVDBRemoteId]:
        return [
            TVDBRemoteId(
                id=str(remote["id"]) if remote.get("id") is not None else None,
                type=remote.get("type"),
                source_name=remote.get("sourceName")
            )
            for remote in remote_data or []
        ]

    @staticmethod
    def _parse_content_ratings(rating_data: Optional[List[Dict]]) -> List[TVDBContentRating]:
        return [
            TVDBContentRating(
                id=rating.get("id"),
                name=rating.get("name"),
                country=rating.get("country"),
                description=rating.get("description"),
                content_type=rating.get("contentType"),
                order=rating.get("order"),
                full_name=rating.get("fullName")
            )
            for rating in rating_data or []
        ]

    @staticmethod
    def _parse_season_type(type_data: Optional[Dict]) -> Optional[TVDBSeasonType]:
        if not type_data:
            return None
        return TVDBSeasonType(
            id=type_data.get("id"),
            name=type_data.get("name"),
            type=type_data.get("type"),
            alternate_name=type_data.get("alternateName")
        )

    def _parse_episode(self, episode_data: Dict) -> TVDBEpisode:
        return TVDBEpisode(
            id=episode_data.get("id"),
            series_id=episode_data.get("seriesId"),
            name=episode_data.get("name"),
            overview=episode_data.get("overview"),
            aired=episode_data.get("aired"),
            runtime=episode_data.get("runtime"),
            image=self._artwork_url(episode_data.get("image")),
            image_type=episode_data.get("imageType"),
            number=episode_data.get("number"),
            season_number=episode_data.get("seasonNumber"),
            absolute_number=episode_data.get("absoluteNumber"),
            is_movie=bool(episode_data.get("isMovie")),
            finale_type=episode_data.get("finaleType"),
            year=episode_data.get("year"),
            last_updated=episode_data.get("lastUpdated"),
            production_code=episode_data.get("productionCode"),
            characters=self._parse_characters(episode_data.get("characters")),
            remote_ids=self._parse_remote_ids(episode_data.get("remoteIds")),
            content_ratings=self._parse_content_ratings(episode_data.get("contentRatings"))
        )

    def _parse_season(self, season_data: Dict, extended: bool = False) -> TVDBSeason:
        season = TVDBSeason(
            id=season_data.get("id"),
            series_id=season_data.get("seriesId"),
            number=season_data.get("number"),
            name=season_data.get("name"),
            image=self._artwork_url(season_data.get("image")),
            image_type=season_data.get("imageType"),
            season_type=self._parse_season_type(season_data.get("type")),
            year=season_data.get("year"),
            last_updated=season_data.get("lastUpdated")
        )
        if extended:
            season.artworks = self._parse_artwork(season_data.get("artwork"))
            season.episodes = [self._parse_episode(ep) for ep in season_data.get("episodes") or []]
        return season

    def _parse_series(self, series_data: Dict) -> TVDBSeries:
        return TVDBSeries(
            id=series_data.get("id"),
            name=series_data.get("name"),
            slug=series_data.get("slug"),
            image=self._artwork_url(series_data.get("image")),
            overview=series_data.get("overview"),
            first_aired=series_data.get("firstAired"),
            last_aired=series_data.get("lastAired"),
            next_aired=series_data.get("nextAired"),
            score=series_data.get("score"),
            status=(series_data.get("status") or {}).get("name"),
            original_country=series_data.get("originalCountry"),
            original_language=series_data.get("originalLanguage"),
            default_season_type=series_data.get("defaultSeasonType"),
            average_runtime=series_data.get("averageRuntime"),
            year=series_data.get("year"),
            last_updated=series_data.get("lastUpdated"),
            original_network=self._parse_company(series_data.get("originalNetwork")),
            latest_network=self._parse_company(series_data.get("latestNetwork")),
            artworks=self._parse_artwork(series_data.get("artworks")),
            companies=self._parse_companies(series_data.get("companies")),
            genres=[
                TVDBGenre(id=g.get("id"), name=g.get("name"), slug=g.get("slug"))
                for g in series_data.get("genres") or []
            ],
            remote_ids=self._parse_remote_ids(series_data.get("remoteIds")),
            characters=self._parse_characters(series_data.get("characters")),
            seasons=[self._parse_season(s) for s in series_data.get("seasons") or []],
            content_ratings=self._parse_content_ratings(series_data.get("contentRatings")),
            season_types=[
                self._parse_season_type(t) for t in series_data.get("seasonTypes") or [] if t
            ]
        )

    def _parse_search_result(self, result: Dict) -> TVDBSearchResult:
        tvdb_id = result.get("tvdb_id")
        return TVDBSearchResult(
            tvdb_id=int(tvdb_id) if tvdb_id else None,
            name=result.get("name"),
            year=result.get("year"),
            first_air_time=result.get("first_air_time"),
            overview=result.get("overview"),
            image_url=self._artwork_url(result.get("image_url")),
            network=result.get("network"),
            country=result.get("country"),
            primary_type=result.get("primary_type"),
            aliases=list(result.get("aliases") or []),
            remote_ids=self._parse_remote_ids(result.get("remote_ids"))
        )

    # ==================== SERIES ====================

    async def get_series_details(self, series_id: int) -> TVDBSeries:
        """
        Fetch the extended series record.

        Args:
            series_id: TVDB series ID

        Returns:
            TVDBSeries with artworks, characters, seasons and remote ids

        Raises:
            TVDBNotFoundError: If the series does not exist
        """
        response = await self._make_request("GET", f"/series/{series_id}/extended")
        series = self._parse_series(response.get("data") or {})
        self.logger.debug(f"Fetched series {series_id}: {series.name}")
        return series

    async def get_series_artworks(self, series_id: int) -> List[TVDBArtwork]:
        response = await self._make_request("GET", f"/series/{series_id}/artworks")
        return self._parse_artwork((response.get("data") or {}).get("artworks"))

    # ==================== SEASONS ====================

    async def get_season_by_number(
        self,
        series_id: int,
        season_number: int,
        season_type: str = "default",
    ) -> Optional[TVDBSeason]:
        """
        Find a season of a series by number within one ordering.

        "default" and "official" both select the aired order.

        Returns:
            The short season record, or None if the series has no such season
        """
        series = await self.get_series_details(series_id)
        for season in series.seasons:
            if season.number == season_number and matches_season_type(season, season_type):
                return season

        self.logger.warning(f"Season {season_number} ({season_type}) not found for series {series_id}")
        return None

    async def get_season_details(self, season_id: int) -> TVDBSeason:
        """Fetch the extended season record, including artwork and episodes."""
        response = await self._make_request("GET", f"/seasons/{season_id}/extended")
        return self._parse_season(response.get("data") or {}, extended=True)

    async def get_season_artworks(self, season_id: int) -> List[TVDBArtwork]:
        season = await self.get_season_details(season_id)
        return season.artworks or []

    # ==================== EPISODES ====================

    async def get_episode_by_number(
        self,
        series_id: int,
        season_number: int,
        episode_number: int,
        season_type: str = "default",
    ) -> Optional[TVDBEpisode]:
        """
        Find an episode by season and episode number within one ordering.

        Returns:
            The base episode record, or None if no episode matches
        """
        response = await self._make_request(
            "GET",
            f"/series/{series_id}/episodes/{quote(season_type)}",
            params={"season": season_number, "episodeNumber": episode_number, "page": 0}
        )

        for episode_data in (response.get("data") or {}).get("episodes") or []:
            if (episode_data.get("seasonNumber") == season_number and
                    episode_data.get("number") == episode_number):
                return self._parse_episode(episode_data)

        self.logger.warning(
            f"Episode S{season_number:02d}E{episode_number:02d} ({season_type}) not found for series {series_id}"
        )
        return None

    async def get_episode_details(self, episode_id: int) -> TVDBEpisode:
        """Fetch the extended episode record with characters and remote ids."""
        response = await self._make_request("GET", f"/episodes/{episode_id}/extended")
        return self._parse_episode(response.get("data") or {})

    # ==================== SEARCH ====================

    async def search_series(
        self,
        query: str,
        year: Optional[int] = None,
        limit: int = 10,
    ) -> List[TVDBSearchResult]:
        """
        Search for series by name.

        Args:
            query: Search query
            year: Optional first-aired year filter
            limit: Maximum number of results

        Returns:
            Search hits in TheTVDB's relevance order
        """
        params: Dict[str, Any] = {"query": query, "type": "series", "limit": limit}
        if year:
            params["year"] = year

        response = await self._make_request("GET", "/search", params=params)
        results = [self._parse_search_result(r) for r in response.get("data") or []]
        self.logger.debug(f"Search for '{query}' returned {len(results)} series")
        return results

    async def search_by_remote_id(self, remote_id: str) -> List[TVDBSearchResult]:
        """
        Look up series by an external id such as an IMDb or TMDB id.

        Returns:
            One hit per series record that carries the id
        """
        response = await self._make_request("GET", f"/search/remoteid/{quote(remote_id)}")

        results = []
        for entry in response.get("data") or []:
            series_data = entry.get("series")
            if not series_data:
                continue
            results.append(TVDBSearchResult(
                tvdb_id=series_data.get("id"),
                name=series_data.get("name"),
                year=series_data.get("year"),
                first_air_time=series_data.get("firstAired"),
                overview=series_data.get("overview"),
                image_url=self._artwork_url(series_data.get("image")),
                country=series_data.get("originalCountry")
            ))
        return results
