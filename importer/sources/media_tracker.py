"""
Imports from a self-hosted MediaTracker instance through its REST API.

Lists become collections, and the seen history and rating of every item are
read from the item's details.
"""

import datetime
from decimal import Decimal

import requests

from catalog.models import MediaLot, MediaSource
from catalog.schemas import CreateOrUpdateCollectionInput
from importer.models import ImportSource
from importer.schemas import (
    ImportResult,
    ImportReviewText,
    MediaImportItem,
    MediaTrackerImportInput,
    ReviewEntry,
    SeenEntry,
    UnresolvedIdentifier,
)

from .base import SourceAdapter

#: MediaTracker media type -> (lot, source, name of the id field)
MEDIA_TYPES = {
    "movie": (MediaLot.MOVIE, MediaSource.TMDB, "tmdbId"),
    "tv": (MediaLot.SHOW, MediaSource.TMDB, "tmdbId"),
    "book": (MediaLot.BOOK, MediaSource.OPENLIBRARY, "openlibraryId"),
    "video_game": (MediaLot.VIDEO_GAME, MediaSource.IGDB, "igdbId"),
    "audiobook": (MediaLot.AUDIO_BOOK, MediaSource.AUDIBLE, "audibleId"),
}


class MediaTrackerAdapter(SourceAdapter):
    source = ImportSource.MEDIA_TRACKER

    def import_history(self, payload: MediaTrackerImportInput) -> ImportResult:
        self.api_url = f"{payload.api_url.rstrip('/')}/api"
        self.session.headers.update({"Access-Token": payload.api_key})

        user = self.get_json(f"{self.api_url}/user")
        items = {}
        collections = []

        for media_list in self.get_json(
            f"{self.api_url}/lists", params={"userId": user["id"]}
        ):
            name = media_list["name"]
            collections.append(
                CreateOrUpdateCollectionInput(
                    name=name, description=media_list.get("description") or None
                )
            )
            for list_item in self.get_json(
                f"{self.api_url}/list/items", params={"listId": media_list["id"]}
            ):
                item = self._item_for(items, list_item["mediaItem"])
                if item is not None and name not in item.collections:
                    item.collections.append(name)

        for media_item in self._paginated_items():
            item = self._item_for(items, media_item)
            if item is None:
                continue
            try:
                details = self.get_json(f"{self.api_url}/details/{media_item['id']}")
            except requests.RequestException as exc:
                self.skip(
                    "Skipping MediaTracker item whose details could not be fetched.",
                    reason=str(exc),
                    reason_code="details_fetch_failed",
                    source_id=item.source_id,
                )
                del items[media_item["id"]]
                continue
            self._apply_details(item, details)

        return ImportResult(collections=collections, media=list(items.values()))

    def _paginated_items(self):
        page = 1
        total_pages = 1
        while page <= total_pages:
            data = self.get_json(
                f"{self.api_url}/items/paginated", params={"page": page}
            )
            total_pages = data.get("totalPages") or 0
            yield from data.get("data") or []
            page += 1

    def _item_for(self, items, media_item):
        if media_item["id"] in items:
            return items[media_item["id"]]

        media_type = media_item.get("mediaType")
        if media_type not in MEDIA_TYPES:
            self.skip(
                "Skipping MediaTracker item of unsupported type.",
                reason=f"MediaTracker items of type {media_type} can not be imported",
                reason_code="unsupported_type",
            )
            return None

        lot, source, id_field = MEDIA_TYPES[media_type]
        identifier = media_item.get(id_field)
        if not identifier:
            self.skip(
                "Skipping MediaTracker item without an external id.",
                reason=f"{media_item.get('title')} has no {id_field}",
                reason_code="missing_external_id",
            )
            return None

        items[media_item["id"]] = MediaImportItem(
            source_id=media_item.get("title") or str(identifier),
            lot=lot,
            source=source,
            identifier=UnresolvedIdentifier(identifier=str(identifier)),
        )
        return items[media_item["id"]]

    def _apply_details(self, item, details):
        episodes = {
            episode["id"]: episode
            for season in details.get("seasons") or []
            for episode in season.get("episodes") or []
        }

        for seen in details.get("seenHistory") or []:
            episode = episodes.get(seen.get("episodeId")) or {}
            item.seen_history.append(
                SeenEntry(
                    ended_on=from_timestamp(seen.get("date")),
                    show_season_number=episode.get("seasonNumber"),
                    show_episode_number=episode.get("episodeNumber"),
                )
            )

        user_rating = details.get("userRating") or {}
        rating = user_rating.get("rating")
        review = user_rating.get("review")
        if rating or review:
            item.reviews.append(
                ReviewEntry(
                    rating=Decimal(rating) * 20 if rating else None,
                    review=ImportReviewText(
                        text=review, date=from_timestamp(user_rating.get("date"))
                    )
                    if review
                    else None,
                )
            )


def from_timestamp(value):
    # MediaTracker dates are milliseconds since the epoch
    if not value:
        return None
    return datetime.datetime.fromtimestamp(value / 1000, tz=datetime.timezone.utc)
