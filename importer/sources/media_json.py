import json

from ninja import Schema
from pydantic import Field

from catalog.models import MediaLot, MediaSource
from importer.exceptions import InputTransformError
from importer.models import ImportSource
from importer.schemas import (
    ImportResult,
    MediaImportItem,
    MediaJsonImportInput,
    ReviewEntry,
    SeenEntry,
    UnresolvedIdentifier,
)

from .base import SourceAdapter


class ExportedMedia(Schema):
    """
    One entry of a JSON export written by this application
    """

    identifier: str
    source: MediaSource
    lot: MediaLot
    title: str = ""
    seen_history: list[SeenEntry] = Field(default_factory=list)
    reviews: list[ReviewEntry] = Field(default_factory=list)
    collections: list[str] = Field(default_factory=list)


class MediaJsonAdapter(SourceAdapter):
    source = ImportSource.MEDIA_JSON

    def import_history(self, payload: MediaJsonImportInput) -> ImportResult:
        data = json.loads(payload.export)
        if not isinstance(data, list):
            raise InputTransformError("The export must be a list of media entries")

        media = []
        for entry in data:
            exported = ExportedMedia.model_validate(entry)
            media.append(
                MediaImportItem(
                    source_id=exported.title or exported.identifier,
                    lot=exported.lot,
                    source=exported.source,
                    identifier=UnresolvedIdentifier(identifier=exported.identifier),
                    seen_history=exported.seen_history,
                    reviews=exported.reviews,
                    collections=exported.collections,
                )
            )
        return ImportResult(media=media)
