import pytest

from tvdb_provider.rating_keys import (
    InvalidRatingKeyError,
    ParsedRatingKey,
    build_guid,
    decode,
    encode,
    encode_episode,
    encode_season,
    encode_show,
    external_guid,
    guid_rating_key,
    metadata_key,
)


def test_encode_shapes():
    assert encode_show(15260) == "tvdb-show-15260"
    assert encode_season(15260, 1) == "tvdb-season-15260-1"
    assert encode_season(15260, 1, "dvd") == "tvdb-season-15260-1-dvd"
    assert encode_episode(15260, 1, 5) == "tvdb-episode-15260-1-5"
    assert encode_episode(15260, 1, 5, "absolute") == "tvdb-episode-15260-1-5-absolute"


def test_decode_show():
    parsed = decode("tvdb-show-15260")
    assert parsed == ParsedRatingKey(type="show", series_id=15260)
    assert parsed.ordering == "default"


def test_decode_season_with_and_without_tag():
    assert decode("tvdb-season-15260-0") == ParsedRatingKey(type="season", series_id=15260, season_number=0)

    parsed = decode("tvdb-season-15260-1-dvd")
    assert parsed.season_number == 1
    assert parsed.season_type == "dvd"
    assert parsed.ordering == "dvd"


def test_decode_episode_with_tag():
    parsed = decode("tvdb-episode-15260-1-5-dvd")
    assert parsed.type == "episode"
    assert parsed.series_id == 15260
    assert parsed.season_number == 1
    assert parsed.episode_number == 5
    assert parsed.season_type == "dvd"


def test_three_numbers_is_an_episode_not_a_tagged_season():
    """A numeric trailing segment can never be read as an ordering tag."""
    parsed = decode("tvdb-episode-15260-1-5")
    assert parsed.type == "episode"
    with pytest.raises(InvalidRatingKeyError):
        decode("tvdb-season-15260-1-5")


@pytest.mark.parametrize("rating_key", [
    "",
    "tvdb-show-",
    "tvdb-show-abc",
    "tvdb-show-1-2",
    "tmdb-show-15260",
    "tvdb-movie-15260",
    "tvdb-season-15260",
    "tvdb-season-15260-1-DVD",
    "tvdb-season-15260-1-dvd2",
    "tvdb-season-15260-1-default",
    "tvdb-season-15260-1-official",
    "tvdb-episode-15260-1-5-default",
    "tvdb-episode-15260-1",
    "tvdb-episode-15260-1-5-6",
    " tvdb-show-15260",
    "tvdb-show-15260\n",
    "tvdb-show--1",
])
def test_decode_rejects_malformed_keys(rating_key):
    with pytest.raises(InvalidRatingKeyError) as exc_info:
        decode(rating_key)
    assert "Invalid ratingKey format" in str(exc_info.value)


def test_decode_rejects_non_strings():
    with pytest.raises(InvalidRatingKeyError):
        decode(15260)


def test_invalid_rating_key_is_a_value_error():
    with pytest.raises(ValueError):
        decode("not-a-key")


@pytest.mark.parametrize("rating_key", [
    "tvdb-show-1",
    "tvdb-season-152831-8",
    "tvdb-season-152831-1-absolute",
    "tvdb-episode-152831-10-1",
    "tvdb-episode-152831-0-3-regional",
])
def test_encode_inverts_decode(rating_key):
    assert encode(decode(rating_key)) == rating_key


@pytest.mark.parametrize("call", [
    lambda: encode_show(-1),
    lambda: encode_season(1, -2),
    lambda: encode_episode(1, 1, -5),
    lambda: encode_season(1, 1, "DVD"),
    lambda: encode_season(1, 1, "dvd-order"),
    lambda: encode_episode(1, 1, 1, ""),
    lambda: encode_season(1, 1, "default"),
    lambda: encode_episode(1, 1, 1, "official"),
    lambda: encode_show(True),
])
def test_encoders_reject_values_that_would_not_decode(call):
    with pytest.raises(InvalidRatingKeyError):
        call()


def test_build_guid():
    assert build_guid("tv.plex.agents.custom.example.thetvdb.tv", "show", "tvdb-show-152831") == (
        "tv.plex.agents.custom.example.thetvdb.tv://show/tvdb-show-152831"
    )


def test_metadata_key_and_external_guid():
    assert metadata_key("tvdb-episode-1-1-1") == "/library/metadata/tvdb-episode-1-1-1"
    assert metadata_key("tvdb-show-1", children=True) == "/library/metadata/tvdb-show-1/children"
    assert external_guid("tvdb", 152831) == "tvdb://152831"
    assert external_guid("imdb", "tt1305826") == "imdb://tt1305826"


def test_default_ordering_has_a_single_key():
    with pytest.raises(InvalidRatingKeyError) as exc_info:
        decode("tvdb-season-152831-1-default")
    assert "default ordering takes no tag" in str(exc_info.value)

    assert encode(decode("tvdb-season-152831-1")) == "tvdb-season-152831-1"
    assert decode("tvdb-season-152831-1").ordering == "default"


def test_guid_rating_key():
    guid = "tv.plex.agents.custom.example.thetvdb.tv://season/tvdb-season-152831-1-dvd"
    assert guid_rating_key(guid) == "tvdb-season-152831-1-dvd"

    with pytest.raises(InvalidRatingKeyError):
        guid_rating_key("imdb://tt1305826")
