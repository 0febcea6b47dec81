import pytest

from tvdb_provider.metadata_service import (
    MetadataNotFoundError,
    MetadataOptions,
    MetadataService,
    PagingOptions,
    UnsupportedMetadataTypeError,
)
from tvdb_provider.rating_keys import InvalidRatingKeyError

from conftest import SERIES_ID


@pytest.fixture
def service(mock_tvdb_client):
    return MetadataService(mock_tvdb_client)


def test_paging_offset_is_zero_based():
    assert PagingOptions().offset == 0
    assert PagingOptions(container_start=3).offset == 2
    assert PagingOptions(container_start=0).offset == 0
    assert PagingOptions(container_start=-4).offset == 0


def test_paging_window():
    items = list(range(10))
    assert PagingOptions(container_start=1, container_size=3).window(items) == [0, 1, 2]
    assert PagingOptions(container_start=9, container_size=5).window(items) == [8, 9]
    assert PagingOptions(container_start=20, container_size=5).window(items) == []
    assert PagingOptions(container_start=1, container_size=0).window(items) == []


# ==================== METADATA ====================

@pytest.mark.asyncio
async def test_get_metadata_show(service, mock_tvdb_client):
    response = await service.get_metadata(f"tvdb-show-{SERIES_ID}")
    container = response.media_container

    assert container.offset == 0
    assert container.total_size == 1
    assert container.size == 1
    assert container.identifier == "tv.plex.agents.custom.example.thetvdb.tv"
    assert container.metadata[0].title == "Adventure Time"
    assert container.metadata[0].children is None
    mock_tvdb_client.get_series_details.assert_awaited_once_with(SERIES_ID)


@pytest.mark.asyncio
async def test_get_metadata_show_with_children(service):
    response = await service.get_metadata(f"tvdb-show-{SERIES_ID}", MetadataOptions(include_children=True))

    show = response.media_container.metadata[0]
    assert show.children.size == 3


@pytest.mark.asyncio
async def test_get_metadata_show_passes_country(service):
    response = await service.get_metadata(f"tvdb-show-{SERIES_ID}", MetadataOptions(country="GB"))
    assert response.media_container.metadata[0].content_rating is None


@pytest.mark.asyncio
async def test_get_metadata_season(service, mock_tvdb_client):
    response = await service.get_metadata(f"tvdb-season-{SERIES_ID}-1")
    season = response.media_container.metadata[0]

    assert season.type == "season"
    assert season.index == 1
    assert season.rating_key == f"tvdb-season-{SERIES_ID}-1"
    assert season.parent_title == "Adventure Time"
    assert season.children is None
    mock_tvdb_client.get_season_by_number.assert_awaited_once_with(SERIES_ID, 1, "default")
    mock_tvdb_client.get_season_details.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_metadata_season_with_children(service, mock_tvdb_client):
    response = await service.get_metadata(f"tvdb-season-{SERIES_ID}-1", MetadataOptions(include_children=True))

    season = response.media_container.metadata[0]
    assert season.children.size == 3
    mock_tvdb_client.get_season_details.assert_awaited_once_with(101)


@pytest.mark.asyncio
async def test_get_metadata_season_uses_ordering_from_key(service, mock_tvdb_client):
    await service.get_metadata(f"tvdb-season-{SERIES_ID}-1-dvd")
    mock_tvdb_client.get_season_by_number.assert_awaited_once_with(SERIES_ID, 1, "dvd")


@pytest.mark.asyncio
async def test_get_metadata_season_not_found(service, mock_tvdb_client):
    mock_tvdb_client.get_season_by_number.return_value = None

    with pytest.raises(MetadataNotFoundError):
        await service.get_metadata(f"tvdb-season-{SERIES_ID}-99")


@pytest.mark.asyncio
async def test_get_metadata_episode(service, mock_tvdb_client):
    response = await service.get_metadata(f"tvdb-episode-{SERIES_ID}-1-2")
    episode = response.media_container.metadata[0]

    assert episode.type == "episode"
    assert episode.title == "Trouble in Lumpy Space"
    assert episode.parent_title == "Season 1"
    assert episode.parent_guid == f"tv.plex.agents.custom.example.thetvdb.tv://season/tvdb-season-{SERIES_ID}-1"
    assert episode.grandparent_title == "Adventure Time"
    mock_tvdb_client.get_episode_by_number.assert_awaited_once_with(SERIES_ID, 1, 2, "default")
    mock_tvdb_client.get_episode_details.assert_awaited_once_with(5001)


@pytest.mark.asyncio
async def test_get_metadata_episode_not_found(service, mock_tvdb_client):
    mock_tvdb_client.get_episode_by_number.return_value = None

    with pytest.raises(MetadataNotFoundError):
        await service.get_metadata(f"tvdb-episode-{SERIES_ID}-1-99")
    mock_tvdb_client.get_episode_details.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_metadata_rejects_invalid_key_before_any_request(service, mock_tvdb_client):
    with pytest.raises(InvalidRatingKeyError):
        await service.get_metadata("tvdb-movie-1")
    mock_tvdb_client.get_series_details.assert_not_awaited()


# ==================== CHILDREN ====================

@pytest.mark.asyncio
async def test_show_children_are_default_ordering_seasons(service):
    response = await service.get_children(f"tvdb-show-{SERIES_ID}")
    container = response.media_container

    assert container.total_size == 3
    assert container.size == 3
    assert [season.index for season in container.metadata] == [0, 1, 2]
    assert [season.title for season in container.metadata] == ["Specials", "Season 1", "Season 2"]


@pytest.mark.asyncio
async def test_show_children_paging(service):
    response = await service.get_children(
        f"tvdb-show-{SERIES_ID}", paging=PagingOptions(container_start=2, container_size=1)
    )
    container = response.media_container

    assert container.offset == 1
    assert container.total_size == 3
    assert container.size == 1
    assert container.metadata[0].index == 1


@pytest.mark.asyncio
async def test_season_children_are_episodes(service, mock_tvdb_client):
    response = await service.get_children(f"tvdb-season-{SERIES_ID}-1")
    container = response.media_container

    assert container.total_size == 3
    assert [episode.rating_key for episode in container.metadata] == [
        f"tvdb-episode-{SERIES_ID}-1-1",
        f"tvdb-episode-{SERIES_ID}-1-2",
        f"tvdb-episode-{SERIES_ID}-1-3",
    ]
    first = container.metadata[0]
    assert first.parent_guid == f"tv.plex.agents.custom.example.thetvdb.tv://season/tvdb-season-{SERIES_ID}-1"
    assert first.parent_thumb == "https://artworks.thetvdb.com/season1.jpg"
    mock_tvdb_client.get_season_details.assert_awaited_once_with(101)


@pytest.mark.asyncio
async def test_alternate_ordering_episodes_point_at_their_season(service, mock_tvdb_client, tvdb_series):
    mock_tvdb_client.get_season_by_number.return_value = tvdb_series.seasons[3]

    response = await service.get_children(f"tvdb-season-{SERIES_ID}-1-dvd")
    container = response.media_container

    assert container.total_size == 4
    for episode in container.metadata:
        assert episode.parent_rating_key == f"tvdb-season-{SERIES_ID}-1-dvd"
        assert episode.parent_key == f"/library/metadata/tvdb-season-{SERIES_ID}-1-dvd"
        assert episode.parent_guid.endswith("/" + episode.parent_rating_key)
    mock_tvdb_client.get_season_by_number.assert_awaited_once_with(SERIES_ID, 1, "dvd")
    mock_tvdb_client.get_season_details.assert_awaited_once_with(201)


@pytest.mark.asyncio
async def test_children_of_episode_is_unsupported(service, mock_tvdb_client):
    with pytest.raises(UnsupportedMetadataTypeError):
        await service.get_children(f"tvdb-episode-{SERIES_ID}-1-1")
    mock_tvdb_client.get_series_details.assert_not_awaited()


@pytest.mark.asyncio
async def test_children_of_missing_season(service, mock_tvdb_client):
    mock_tvdb_client.get_season_by_number.return_value = None

    with pytest.raises(MetadataNotFoundError):
        await service.get_children(f"tvdb-season-{SERIES_ID}-42")


# ==================== GRANDCHILDREN ====================

@pytest.mark.asyncio
async def test_grandchildren_skip_specials_and_other_orderings(service, mock_tvdb_client):
    response = await service.get_grandchildren(f"tvdb-show-{SERIES_ID}")
    container = response.media_container

    assert container.total_size == 5
    assert [(episode.parent_index, episode.index) for episode in container.metadata] == [
        (1, 1), (1, 2), (1, 3), (2, 1), (2, 2),
    ]
    assert [call.args[0] for call in mock_tvdb_client.get_season_details.await_args_list] == [101, 102]


@pytest.mark.asyncio
async def test_grandchildren_paging(service):
    response = await service.get_grandchildren(
        f"tvdb-show-{SERIES_ID}", paging=PagingOptions(container_start=4, container_size=20)
    )
    container = response.media_container

    assert container.offset == 3
    assert container.total_size == 5
    assert container.size == 2
    assert [episode.title for episode in container.metadata] == ["Episode 2x1", "Episode 2x2"]


@pytest.mark.asyncio
@pytest.mark.parametrize("rating_key", [f"tvdb-season-{SERIES_ID}-1", f"tvdb-episode-{SERIES_ID}-1-1"])
async def test_grandchildren_only_for_shows(service, rating_key):
    with pytest.raises(UnsupportedMetadataTypeError):
        await service.get_grandchildren(rating_key)


# ==================== IMAGES ====================

@pytest.mark.asyncio
async def test_show_images(service):
    response = await service.get_images(f"tvdb-show-{SERIES_ID}")
    container = response.media_container

    assert container.metadata is None
    assert container.size == 3
    assert [image.type for image in container.images] == ["coverPoster", "background", "clearLogo"]
    assert "Metadata" not in response.to_wire()["MediaContainer"]


@pytest.mark.asyncio
async def test_season_images(service, mock_tvdb_client):
    response = await service.get_images(f"tvdb-season-{SERIES_ID}-1")
    images = response.media_container.images

    assert len(images) == 1
    assert images[0].type == "clearLogo"
    assert images[0].alt == "Adventure Time - Season 1"
    mock_tvdb_client.get_season_artworks.assert_awaited_once_with(101)


@pytest.mark.asyncio
async def test_episode_images(service):
    response = await service.get_images(f"tvdb-episode-{SERIES_ID}-1-2")
    images = response.media_container.images

    assert len(images) == 1
    assert images[0].type == "snapshot"
    assert images[0].url == "https://artworks.thetvdb.com/still.jpg"
    assert images[0].alt == "Adventure Time - S1E2"


@pytest.mark.asyncio
async def test_episode_without_still_has_no_images(service, mock_tvdb_client):
    mock_tvdb_client.get_episode_by_number.return_value.image = None

    response = await service.get_images(f"tvdb-episode-{SERIES_ID}-1-2")

    assert response.media_container.size == 0
    assert response.media_container.images == []


@pytest.mark.asyncio
async def test_images_for_missing_episode(service, mock_tvdb_client):
    mock_tvdb_client.get_episode_by_number.return_value = None

    with pytest.raises(MetadataNotFoundError):
        await service.get_images(f"tvdb-episode-{SERIES_ID}-1-2")
