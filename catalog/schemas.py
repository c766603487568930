import datetime
from decimal import Decimal
from typing import Optional

from ninja import Schema
from pydantic import Field

from catalog.models import MediaLot, MediaSource, Visibility


class MediaDetails(Schema):
    """
    Everything needed to create a catalog entry without asking a provider
    """

    identifier: str
    title: str
    lot: MediaLot
    source: MediaSource
    description: str = ""
    publish_year: Optional[int] = None
    images: list[str] = Field(default_factory=list)
    creators: list[str] = Field(default_factory=list)
    specifics: dict = Field(default_factory=dict)


class ProgressUpdateInput(Schema):
    metadata_id: int
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    date: Optional[datetime.date] = None
    show_season_number: Optional[int] = None
    show_episode_number: Optional[int] = None
    podcast_episode_number: Optional[int] = None


class PostReviewInput(Schema):
    metadata_id: int
    rating: Optional[Decimal] = None
    text: Optional[str] = None
    spoiler: Optional[bool] = None
    visibility: Optional[Visibility] = None
    date: Optional[datetime.datetime] = None
    review_id: Optional[int] = None
    show_season_number: Optional[int] = None
    show_episode_number: Optional[int] = None
    podcast_episode_number: Optional[int] = None


class CreateOrUpdateCollectionInput(Schema):
    name: str
    description: Optional[str] = None
    visibility: Optional[Visibility] = None


class AddMediaToCollection(Schema):
    collection_name: str
    media_id: int
