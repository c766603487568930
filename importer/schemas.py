"""
Intermediate records exchanged between the import entrypoints, the source
adapters and the reconciler.

Everything here round-trips through JSON so deploy inputs can travel as Celery
task payloads and import results can be stored on the report.
"""

import datetime
from decimal import Decimal
from typing import Annotated, Literal, Optional, Union

from ninja import Schema
from pydantic import ConfigDict, Field

from catalog.models import MediaLot, MediaSource
from catalog.schemas import CreateOrUpdateCollectionInput, MediaDetails
from importer.exceptions import MissingPayload
from importer.models import ImportFailStep, ImportSource

# Source specific inputs


class MediaTrackerImportInput(Schema):
    api_url: str
    api_key: str


class GoodreadsImportInput(Schema):
    rss_url: str


class TraktImportInput(Schema):
    username: str


class MovaryImportInput(Schema):
    history: str = Field(description="Contents of the history CSV export")
    ratings: str = Field(description="Contents of the ratings CSV export")


class StoryGraphImportInput(Schema):
    export: str = Field(description="Contents of the CSV export")


class MediaJsonImportInput(Schema):
    export: str = Field(description="Contents of a JSON export of this application")


SourceSpecificInput = Union[
    MediaTrackerImportInput,
    GoodreadsImportInput,
    TraktImportInput,
    MovaryImportInput,
    StoryGraphImportInput,
    MediaJsonImportInput,
]


class DeployImportJobInput(Schema):
    """
    A request to import history from one source. Only the field named after
    ``source`` is read; the others are ignored.
    """

    source: ImportSource
    media_tracker: Optional[MediaTrackerImportInput] = None
    goodreads: Optional[GoodreadsImportInput] = None
    trakt: Optional[TraktImportInput] = None
    movary: Optional[MovaryImportInput] = None
    story_graph: Optional[StoryGraphImportInput] = None
    media_json: Optional[MediaJsonImportInput] = None

    @property
    def payload(self) -> SourceSpecificInput:
        """
        The input for the selected source, raising ``MissingPayload`` when the
        request did not include it
        """
        source = ImportSource(self.source)
        value = getattr(self, source.value)
        if value is None:
            raise MissingPayload(source.value)
        return value


# Adapter output


class UnresolvedIdentifier(Schema):
    kind: Literal["unresolved"] = "unresolved"
    identifier: str


class ResolvedIdentifier(Schema):
    kind: Literal["resolved"] = "resolved"
    details: MediaDetails


MediaIdentifier = Annotated[
    Union[UnresolvedIdentifier, ResolvedIdentifier], Field(discriminator="kind")
]


class SeenEntry(Schema):
    ended_on: Optional[datetime.datetime] = None
    show_season_number: Optional[int] = None
    show_episode_number: Optional[int] = None
    podcast_episode_number: Optional[int] = None


class ImportReviewText(Schema):
    text: Optional[str] = None
    spoiler: Optional[bool] = None
    date: Optional[datetime.datetime] = None


class ReviewEntry(Schema):
    rating: Optional[Decimal] = Field(default=None, ge=0, le=100)
    review: Optional[ImportReviewText] = None
    show_season_number: Optional[int] = None
    show_episode_number: Optional[int] = None
    podcast_episode_number: Optional[int] = None

    @property
    def is_empty(self):
        return self.rating is None and self.review is None


class MediaImportItem(Schema):
    source_id: str = Field(description="Identifier of the record in the export")
    lot: MediaLot
    source: MediaSource
    identifier: MediaIdentifier
    seen_history: list[SeenEntry] = Field(default_factory=list)
    reviews: list[ReviewEntry] = Field(default_factory=list)
    collections: list[str] = Field(default_factory=list)

    @property
    def activity_count(self):
        return len(self.seen_history) + len(self.reviews) + len(self.collections)


class FailedItem(Schema):
    lot: Optional[MediaLot] = None
    step: ImportFailStep
    identifier: str
    error: Optional[str] = None


class ImportResult(Schema):
    collections: list[CreateOrUpdateCollectionInput] = Field(default_factory=list)
    media: list[MediaImportItem] = Field(default_factory=list)
    failed_items: list[FailedItem] = Field(default_factory=list)


# Stored on the report


class ImportDetails(Schema):
    total: int


class ImportResultResponse(Schema):
    model_config = ConfigDict(populate_by_name=True)

    source: ImportSource
    import_details: ImportDetails = Field(alias="import")
    failed_items: list[FailedItem] = Field(default_factory=list)

    @classmethod
    def from_result(cls, source, result: ImportResult):
        return cls(
            source=source,
            import_details=ImportDetails(
                total=len(result.media) - len(result.failed_items)
            ),
            failed_items=result.failed_items,
        )

    def as_json(self):
        return self.model_dump(mode="json", by_alias=True)
