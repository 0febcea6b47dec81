#!/usr/bin/env python3
"""
TheTVDB TV Provider Definition

Describes this service to the media client: its identifier, the metadata types
it serves (show, season, episode) and the features it implements.

Project: TVDB Provider
Version: 1.0.0
License: MIT
"""

from enum import IntEnum
from typing import Any, Dict

TV_PROVIDER_IDENTIFIER = "tv.plex.agents.custom.example.thetvdb.tv"
TV_PROVIDER_TITLE = "TheTVDB Example TV Provider"
TV_PROVIDER_VERSION = "1.0.0"
TV_PROVIDER_BASE_PATH = "/tv"

LIBRARY_METADATA_PATH = "/library/metadata"
LIBRARY_MATCHES_PATH = "/library/metadata/matches"


class MetadataType(IntEnum):
    """Numeric metadata types used by the media client."""

    MOVIE = 1
    SHOW = 2
    SEASON = 3
    EPISODE = 4
    COLLECTION = 18


class FeatureType:
    METADATA = "metadata"
    MATCH = "match"
    COLLECTION = "collection"


SUPPORTED_TYPES = (MetadataType.SHOW, MetadataType.SEASON, MetadataType.EPISODE)


def create_tv_provider() -> Dict[str, Any]:
    """Build the MediaProvider definition for the TV provider."""
    return {
        "identifier": TV_PROVIDER_IDENTIFIER,
        "title": TV_PROVIDER_TITLE,
        "version": TV_PROVIDER_VERSION,
        "Types": [
            {
                "type": int(metadata_type),
                "Scheme": [{"scheme": TV_PROVIDER_IDENTIFIER}],
            }
            for metadata_type in SUPPORTED_TYPES
        ],
        "Feature": [
            {"type": FeatureType.METADATA, "key": LIBRARY_METADATA_PATH},
            {"type": FeatureType.MATCH, "key": LIBRARY_MATCHES_PATH},
        ],
    }


def get_tv_provider_response() -> Dict[str, Any]:
    return {"MediaProvider": create_tv_provider()}
