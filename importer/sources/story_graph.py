"""
Imports the CSV export of The StoryGraph.

The export only identifies books by ISBN, so every row is looked up in Open
Library to find the work it belongs to. Rows whose ISBN Open Library does not
know are skipped.
"""

import datetime
from decimal import Decimal

from catalog.exceptions import ProviderLookupError
from catalog.models import MediaLot, MediaSource
from catalog.providers.openlibrary import OpenLibraryProvider
from importer.models import ImportSource
from importer.schemas import (
    ImportResult,
    ImportReviewText,
    MediaImportItem,
    ReviewEntry,
    SeenEntry,
    StoryGraphImportInput,
    UnresolvedIdentifier,
)

from .base import SourceAdapter, read_csv

COLUMNS = ("Title", "ISBN/UID", "Read Status")

READ_STATUS_COLLECTIONS = {
    "to-read": "Watchlist",
    "currently-reading": "In Progress",
}
OWNED_COLLECTION = "Owned"


class StoryGraphAdapter(SourceAdapter):
    source = ImportSource.STORY_GRAPH

    def __init__(self, session=None, provider=None):
        super().__init__(session=session)
        self.provider = provider or OpenLibraryProvider(session=self.session)

    def import_history(self, payload: StoryGraphImportInput) -> ImportResult:
        media = []
        for row in read_csv(payload.export, COLUMNS, "StoryGraph export"):
            item = self._import_row(row)
            if item is not None:
                media.append(item)
        return ImportResult(media=media)

    def _import_row(self, row):
        title = row["Title"]
        isbn = row["ISBN/UID"]
        try:
            work_id = self.provider.id_from_isbn(isbn)
        except ProviderLookupError as exc:
            self.skip(
                "Skipping StoryGraph row whose ISBN could not be looked up.",
                reason=str(exc),
                reason_code="isbn_lookup_failed",
                source_id=title,
            )
            return None
        if work_id is None:
            self.skip(
                "Skipping StoryGraph row with an unknown ISBN.",
                reason=f"Open Library does not know the ISBN {isbn!r} of {title}",
                reason_code="isbn_not_found",
                source_id=title,
            )
            return None

        item = MediaImportItem(
            source_id=title,
            lot=MediaLot.BOOK,
            source=MediaSource.OPENLIBRARY,
            identifier=UnresolvedIdentifier(identifier=work_id),
        )

        status = row["Read Status"].strip()
        if status == "read":
            item.seen_history.append(
                SeenEntry(ended_on=parse_date(row.get("Last Date Read")))
            )
        elif status in READ_STATUS_COLLECTIONS:
            item.collections.append(READ_STATUS_COLLECTIONS[status])

        rating = (row.get("Star Rating") or "").strip()
        review = (row.get("Review") or "").strip()
        if rating or review:
            item.reviews.append(
                ReviewEntry(
                    rating=Decimal(rating) * 20 if rating else None,
                    review=ImportReviewText(text=review) if review else None,
                )
            )

        for tag in (row.get("Tags") or "").split(","):
            if tag.strip() and tag.strip() not in item.collections:
                item.collections.append(tag.strip())
        if (row.get("Owned?") or "").strip().lower() == "yes":
            item.collections.append(OWNED_COLLECTION)

        return item


def parse_date(value):
    value = (value or "").strip()
    if not value:
        return None
    return datetime.datetime.strptime(value, "%Y/%m/%d")
