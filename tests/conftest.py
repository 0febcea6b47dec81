import pytest
from unittest.mock import AsyncMock

from tvdb_provider.tvdb_models import (
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

SERIES_ID = 152831
SHOW_GUID = "tv.plex.agents.custom.example.thetvdb.tv://show/tvdb-show-152831"


def aired_order():
    return TVDBSeasonType(id=1, name="Aired Order", type="official")


def dvd_order():
    return TVDBSeasonType(id=2, name="DVD Order", type="dvd")


def make_episode(episode_id, season_number, number, name=None, image=None):
    return TVDBEpisode(
        id=episode_id,
        series_id=SERIES_ID,
        name=name,
        aired="2010-04-05",
        runtime=11,
        image=image,
        number=number,
        season_number=season_number,
    )


@pytest.fixture
def tvdb_series():
    """Provides an extended TVDB series record modelled on Adventure Time."""
    return TVDBSeries(
        id=SERIES_ID,
        name="Adventure Time",
        slug="adventure-time",
        image="https://artworks.thetvdb.com/banners/posters/adventure-time.jpg",
        overview="Unlikely heroes Finn and Jake are buddies who traverse the mystical Land of Ooo.",
        first_aired="2010-04-05",
        last_aired="2018-09-03",
        score=8500,
        status="Ended",
        original_country="usa",
        original_language="eng",
        average_runtime=11,
        year="2010",
        original_network=TVDBCompany(id=56, name="Cartoon Network", slug="cartoon-network"),
        latest_network=TVDBCompany(id=56, name="Cartoon Network", slug="cartoon-network"),
        artworks=[
            TVDBArtwork(id=1, image="https://artworks.thetvdb.com/poster.jpg", type=2),
            TVDBArtwork(id=2, image="https://artworks.thetvdb.com/background.jpg", type=3),
            TVDBArtwork(id=3, image="https://artworks.thetvdb.com/clearlogo.png", type=7),
        ],
        companies=[TVDBCompany(id=1, name="Frederator Studios", slug="frederator-studios")],
        genres=[
            TVDBGenre(id=16, name="Animation", slug="animation"),
            TVDBGenre(id=35, name="Comedy", slug="comedy"),
        ],
        remote_ids=[
            TVDBRemoteId(id="tt1305826", type=2, source_name="IMDB"),
            TVDBRemoteId(id="15260", type=12, source_name="TheMovieDB.com"),
        ],
        characters=[
            TVDBCharacter(
                id=1,
                name="Finn the Human",
                people_id=123,
                type=3,
                sort=0,
                person_name="Jeremy Shada",
                person_image="https://artworks.thetvdb.com/actor.jpg",
            ),
            TVDBCharacter(id=2, name="", people_id=456, type=1, sort=0, person_name="Larry Leichliter"),
        ],
        content_ratings=[TVDBContentRating(id=1, name="TV-PG", country="usa", content_type="series")],
        seasons=[
            TVDBSeason(id=100, series_id=SERIES_ID, number=0, name="Specials", season_type=aired_order()),
            TVDBSeason(
                id=101,
                series_id=SERIES_ID,
                number=1,
                image="https://artworks.thetvdb.com/season1.jpg",
                season_type=aired_order(),
            ),
            TVDBSeason(id=102, series_id=SERIES_ID, number=2, season_type=aired_order()),
            TVDBSeason(id=201, series_id=SERIES_ID, number=1, season_type=dvd_order()),
        ],
        season_types=[aired_order(), dvd_order()],
    )


@pytest.fixture
def tvdb_season():
    """Provides a short season record in the aired order."""
    return TVDBSeason(
        id=12345,
        series_id=SERIES_ID,
        number=8,
        name="Season 8",
        image="https://artworks.thetvdb.com/season-poster.jpg",
        image_type=7,
        season_type=aired_order(),
    )


@pytest.fixture
def tvdb_episode():
    """Provides an extended episode record."""
    return TVDBEpisode(
        id=1418023,
        series_id=SERIES_ID,
        name="The Wild Hunt",
        overview="A fierce creature is terrorizing the Candy Kingdom...",
        aired="2017-09-17",
        runtime=11,
        image="https://artworks.thetvdb.com/episode-still.jpg",
        image_type=11,
        number=1,
        season_number=10,
        remote_ids=[TVDBRemoteId(id="tt7203552", type=2, source_name="IMDB")],
    )


@pytest.fixture
def season_details():
    """Returns a factory building an extended season with `count` episodes."""
    def build(season_id, number, count, season_type=None):
        return TVDBSeason(
            id=season_id,
            series_id=SERIES_ID,
            number=number,
            season_type=season_type or aired_order(),
            artworks=[TVDBArtwork(id=season_id, image=f"https://artworks.thetvdb.com/s{number}.jpg", type=7)],
            episodes=[make_episode(season_id * 100 + n, number, n, name=f"Episode {number}x{n}") for n in range(1, count + 1)],
        )
    return build


@pytest.fixture
def mock_tvdb_client(tvdb_series, season_details):
    """Provides an AsyncMock standing in for the TheTVDB client."""
    client = AsyncMock()
    client.get_series_details.return_value = tvdb_series
    client.get_season_by_number.return_value = tvdb_series.seasons[1]
    client.get_season_details.side_effect = lambda season_id: {
        101: season_details(101, 1, 3),
        102: season_details(102, 2, 2),
        201: season_details(201, 1, 4, dvd_order()),
    }[season_id]
    client.get_episode_by_number.return_value = make_episode(
        5001, 1, 2, name="Trouble in Lumpy Space", image="https://artworks.thetvdb.com/still.jpg"
    )
    client.get_episode_details.return_value = make_episode(
        5001, 1, 2, name="Trouble in Lumpy Space", image="https://artworks.thetvdb.com/still.jpg"
    )
    client.get_series_artworks.return_value = tvdb_series.artworks
    client.get_season_artworks.return_value = [
        TVDBArtwork(id=9, image="https://artworks.thetvdb.com/season1.jpg", type=7)
    ]
    client.search_series.return_value = [
        TVDBSearchResult(tvdb_id=SERIES_ID, name="Adventure Time", year="2010"),
    ]
    client.search_by_remote_id.return_value = [
        TVDBSearchResult(tvdb_id=SERIES_ID, name="Adventure Time", year="2010"),
    ]
    return client
