import datetime
from decimal import Decimal

from catalog.models import MediaLot, MediaSource
from importer.models import ImportSource
from importer.schemas import (
    ImportResult,
    ImportReviewText,
    MediaImportItem,
    MovaryImportInput,
    ReviewEntry,
    SeenEntry,
    UnresolvedIdentifier,
)

from .base import SourceAdapter, read_csv

HISTORY_COLUMNS = ("title", "tmdbId", "watchedAt")
RATINGS_COLUMNS = ("title", "tmdbId", "userRating")


class MovaryAdapter(SourceAdapter):
    """
    Imports the history and ratings CSV exports of Movary. Both files are keyed
    by TMDB movie id and are merged into one item per movie.
    """

    source = ImportSource.MOVARY

    def import_history(self, payload: MovaryImportInput) -> ImportResult:
        items = {}

        for row in read_csv(payload.history, HISTORY_COLUMNS, "history"):
            item = self._item_for_row(items, row)
            if item is None:
                continue
            watched_at = parse_date(row["watchedAt"])
            item.seen_history.append(SeenEntry(ended_on=watched_at))
            comment = (row.get("comment") or "").strip()
            if comment:
                item.reviews.append(
                    ReviewEntry(review=ImportReviewText(text=comment, date=watched_at))
                )

        for row in read_csv(payload.ratings, RATINGS_COLUMNS, "ratings"):
            item = self._item_for_row(items, row)
            if item is None:
                continue
            rating = (row["userRating"] or "").strip()
            if rating:
                item.reviews.append(ReviewEntry(rating=Decimal(rating) * 10))

        return ImportResult(media=list(items.values()))

    def _item_for_row(self, items, row):
        tmdb_id = (row["tmdbId"] or "").strip()
        if not tmdb_id:
            self.skip(
                "Skipping Movary row without a TMDB id.",
                reason=f"{row['title']} has no TMDB id",
                reason_code="missing_tmdb_id",
            )
            return None

        if tmdb_id not in items:
            items[tmdb_id] = MediaImportItem(
                source_id=row["title"] or tmdb_id,
                lot=MediaLot.MOVIE,
                source=MediaSource.TMDB,
                identifier=UnresolvedIdentifier(identifier=tmdb_id),
            )
        return items[tmdb_id]


def parse_date(value):
    value = (value or "").strip()
    if not value:
        return None
    return datetime.datetime.fromisoformat(value)
