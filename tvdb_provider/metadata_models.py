#!/usr/bin/env python3
"""
TVDB Provider Metadata Models

Pydantic models for the metadata schema the media client expects from a custom
provider. Python attributes use snake_case; every field carries the client's
wire name as its alias, so responses are produced with
`model_dump(by_alias=True, exclude_none=True)`.

The three entity models (show, season, episode) form a closed set discriminated
by their `type` field.

Classes:
    ImageTag, TagItem, GuidTag, PersonTag, RatingTag, SeasonTypeTag: Typed collections
    ShowMetadata, SeasonMetadata, EpisodeMetadata: Normalized entities
    ChildrenContainer: Counted list of child entities nested under a parent
    MediaContainer, MetadataResponse: Response envelopes

Project: TVDB Provider
Version: 1.0.0
License: MIT
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    """Base for every model serialized to the media client."""
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with the client's field names, dropping absent values."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ==================== COLLECTION ITEMS ====================

class ImageTag(WireModel):
    type: str
    url: str
    alt: Optional[str] = None


class TagItem(WireModel):
    """Plain tag used for genres, networks, countries and studios."""
    tag: str


class GuidTag(WireModel):
    id: str


class PersonTag(WireModel):
    tag: str
    role: Optional[str] = None
    order: Optional[int] = None
    thumb: Optional[str] = None


class RatingTag(WireModel):
    image: str
    type: str
    value: Union[int, float]


class SeasonTypeTag(WireModel):
    id: str
    source: str
    tag: str
    title: str


# ==================== ENTITIES ====================

class BaseMetadata(WireModel):
    """Attributes shared by shows, seasons and episodes."""

    rating_key: str = Field(..., alias="ratingKey")
    key: str
    guid: str
    title: str
    originally_available_at: str = Field(default="", alias="originallyAvailableAt")
    year: Optional[int] = None
    summary: Optional[str] = None
    thumb: Optional[str] = None
    art: Optional[str] = None
    content_rating: Optional[str] = Field(default=None, alias="contentRating")
    duration: Optional[int] = None

    images: Optional[List[ImageTag]] = Field(default=None, alias="Image")
    guids: Optional[List[GuidTag]] = Field(default=None, alias="Guid")
    roles: Optional[List[PersonTag]] = Field(default=None, alias="Role")
    directors: Optional[List[PersonTag]] = Field(default=None, alias="Director")
    producers: Optional[List[PersonTag]] = Field(default=None, alias="Producer")
    writers: Optional[List[PersonTag]] = Field(default=None, alias="Writer")
    children: Optional[ChildrenContainer] = Field(default=None, alias="Children")


class ShowMetadata(BaseMetadata):
    type: Literal["show"] = "show"
    studio: Optional[str] = None
    genres: Optional[List[TagItem]] = Field(default=None, alias="Genre")
    countries: Optional[List[TagItem]] = Field(default=None, alias="Country")
    studios: Optional[List[TagItem]] = Field(default=None, alias="Studio")
    ratings: Optional[List[RatingTag]] = Field(default=None, alias="Rating")
    networks: Optional[List[TagItem]] = Field(default=None, alias="Network")
    season_types: Optional[List[SeasonTypeTag]] = Field(default=None, alias="SeasonType")


class SeasonMetadata(BaseMetadata):
    type: Literal["season"] = "season"
    index: int
    parent_rating_key: str = Field(..., alias="parentRatingKey")
    parent_key: str = Field(..., alias="parentKey")
    parent_guid: str = Field(..., alias="parentGuid")
    parent_type: Literal["show"] = Field(default="show", alias="parentType")
    parent_title: str = Field(..., alias="parentTitle")
    parent_thumb: Optional[str] = Field(default=None, alias="parentThumb")


class EpisodeMetadata(BaseMetadata):
    type: Literal["episode"] = "episode"
    index: int
    parent_index: int = Field(..., alias="parentIndex")
    parent_rating_key: str = Field(..., alias="parentRatingKey")
    parent_key: str = Field(..., alias="parentKey")
    parent_guid: str = Field(..., alias="parentGuid")
    parent_type: Literal["season"] = Field(default="season", alias="parentType")
    parent_title: str = Field(..., alias="parentTitle")
    parent_thumb: Optional[str] = Field(default=None, alias="parentThumb")
    grandparent_rating_key: str = Field(..., alias="grandparentRatingKey")
    grandparent_key: str = Field(..., alias="grandparentKey")
    grandparent_guid: str = Field(..., alias="grandparentGuid")
    grandparent_type: Literal["show"] = Field(default="show", alias="grandparentType")
    grandparent_title: str = Field(..., alias="grandparentTitle")
    grandparent_thumb: Optional[str] = Field(default=None, alias="grandparentThumb")


Metadata = Annotated[
    Union[ShowMetadata, SeasonMetadata, EpisodeMetadata],
    Field(discriminator="type"),
]


class ChildrenContainer(WireModel):
    size: int
    metadata: List[Metadata] = Field(default_factory=list, alias="Metadata")


# ==================== RESPONSES ====================

class MediaContainer(WireModel):
    offset: int = 0
    total_size: int = Field(..., alias="totalSize")
    identifier: str
    size: int
    metadata: Optional[List[Metadata]] = Field(default=None, alias="Metadata")
    images: Optional[List[ImageTag]] = Field(default=None, alias="Image")


class MetadataResponse(WireModel):
    media_container: MediaContainer = Field(..., alias="MediaContainer")


for _model in (ChildrenContainer, BaseMetadata, ShowMetadata, SeasonMetadata, EpisodeMetadata,
               MediaContainer, MetadataResponse):
    _model.model_rebuild()
