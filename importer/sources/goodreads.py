"""
Imports the books on a Goodreads user's shelves from their RSS feed.

The feed already carries everything needed to describe a book, so items are
imported with resolved details and never need a metadata provider lookup.
"""

from decimal import Decimal
from email.utils import parsedate_to_datetime

import defusedxml.ElementTree as ET

from catalog.models import MediaLot, MediaSource
from catalog.schemas import MediaDetails
from importer.exceptions import InputTransformError
from importer.models import ImportSource
from importer.schemas import (
    GoodreadsImportInput,
    ImportResult,
    ImportReviewText,
    MediaImportItem,
    ResolvedIdentifier,
    ReviewEntry,
    SeenEntry,
)

from .base import SourceAdapter

#: Shelves which map to a collection instead of a read history entry
SHELF_COLLECTIONS = {
    "to-read": "Watchlist",
    "currently-reading": "In Progress",
}


class GoodreadsAdapter(SourceAdapter):
    source = ImportSource.GOODREADS

    def import_history(self, payload: GoodreadsImportInput) -> ImportResult:
        media = []
        page = 1
        while True:
            items = self._fetch_page(payload.rss_url.strip(), page)
            if not items:
                break
            for item in items:
                import_item = self._import_item(item)
                if import_item is not None:
                    media.append(import_item)
            page += 1
        return ImportResult(media=media)

    def _fetch_page(self, rss_url, page):
        response = self.get(rss_url, params={"page": page})
        try:
            root = ET.fromstring(response.content)
        except ET.ParseError as exc:
            raise InputTransformError(
                f"Goodreads returned an invalid feed: {exc}"
            ) from exc

        channel = root.find("channel")
        if channel is None:
            raise InputTransformError("Goodreads returned a feed without a channel")
        return channel.findall("item")

    def _import_item(self, item):
        book_id = text(item, "book_id")
        title = text(item, "title")
        if not book_id or not title:
            self.skip(
                "Skipping Goodreads entry without a book id.",
                reason=f"Entry {title or book_id} has no book id or title",
                reason_code="missing_book_id",
            )
            return None

        published = text(item, "book_published")
        pages = text(item, "book/num_pages")
        image = text(item, "book_large_image_url") or text(item, "book_image_url")
        details = MediaDetails(
            identifier=book_id,
            title=title,
            lot=MediaLot.BOOK,
            source=MediaSource.GOODREADS,
            description=text(item, "book_description"),
            publish_year=int(published) if published.isdigit() else None,
            images=[image] if image else [],
            creators=[text(item, "author_name")] if text(item, "author_name") else [],
            specifics={"pages": int(pages)} if pages.isdigit() else {},
        )

        shelves = [
            shelf.strip()
            for shelf in text(item, "user_shelves").split(",")
            if shelf.strip()
        ]
        collections = [
            SHELF_COLLECTIONS[shelf] for shelf in shelves if shelf in SHELF_COLLECTIONS
        ]

        seen_history = []
        read_at = text(item, "user_read_at")
        if read_at:
            seen_history.append(SeenEntry(ended_on=parsedate_to_datetime(read_at)))
        elif not collections:
            # Books on the read shelf do not always have a read date
            seen_history.append(SeenEntry())

        reviews = []
        rating = text(item, "user_rating")
        review_text = text(item, "user_review")
        if (rating and rating != "0") or review_text:
            reviews.append(
                ReviewEntry(
                    rating=Decimal(rating) * 20 if rating and rating != "0" else None,
                    review=ImportReviewText(text=review_text) if review_text else None,
                )
            )

        return MediaImportItem(
            source_id=title,
            lot=MediaLot.BOOK,
            source=MediaSource.GOODREADS,
            identifier=ResolvedIdentifier(details=details),
            seen_history=seen_history,
            reviews=reviews,
            collections=collections,
        )


def text(element, path):
    found = element.find(path)
    if found is None or found.text is None:
        return ""
    return found.text.strip()
