"""
Imports the public profile of a Trakt user: custom lists, the watchlist,
ratings and the complete watch history.

Every movie and show is identified by its TMDB id. Shows are imported as a
whole, with the season and episode numbers kept on each history entry and
episode rating.
"""

from decimal import Decimal

from django.conf import settings

from catalog.models import MediaLot, MediaSource
from catalog.schemas import CreateOrUpdateCollectionInput
from importer.models import ImportSource
from importer.schemas import (
    ImportResult,
    MediaImportItem,
    ReviewEntry,
    SeenEntry,
    TraktImportInput,
    UnresolvedIdentifier,
)

from .base import SourceAdapter

TRAKT_API_URL = "https://api.trakt.tv"
TRAKT_API_VERSION = "2"
HISTORY_PAGE_LIMIT = 1000
WATCHLIST_COLLECTION = "Watchlist"

LOT_FOR_TYPE = {
    "movie": MediaLot.MOVIE,
    "show": MediaLot.SHOW,
    "season": MediaLot.SHOW,
    "episode": MediaLot.SHOW,
}


class TraktAdapter(SourceAdapter):
    source = ImportSource.TRAKT

    def __init__(self, session=None):
        super().__init__(session=session)
        self.session.headers.update(
            {
                "Content-Type": "application/json",
                "trakt-api-key": settings.TRAKT_CLIENT_ID,
                "trakt-api-version": TRAKT_API_VERSION,
            }
        )

    def import_history(self, payload: TraktImportInput) -> ImportResult:
        user_url = f"{TRAKT_API_URL}/users/{payload.username.strip()}"
        items = {}
        collections = []

        for trakt_list in self.get_json(f"{user_url}/lists"):
            name = trakt_list["name"]
            collections.append(
                CreateOrUpdateCollectionInput(
                    name=name, description=trakt_list.get("description") or None
                )
            )
            slug = trakt_list["ids"]["slug"]
            for entry in self.get_json(f"{user_url}/lists/{slug}/items"):
                self._add_to_collection(items, entry, name)

        for entry in self.get_json(f"{user_url}/watchlist"):
            self._add_to_collection(items, entry, WATCHLIST_COLLECTION)

        for entry in self.get_json(f"{user_url}/ratings"):
            item = self._item_for_entry(items, entry)
            if item is None:
                continue
            season, episode = episode_numbers(entry)
            item.reviews.append(
                ReviewEntry(
                    rating=Decimal(entry["rating"]) * 10,
                    show_season_number=season,
                    show_episode_number=episode,
                )
            )

        for entry in self._history(user_url):
            item = self._item_for_entry(items, entry)
            if item is None:
                continue
            season, episode = episode_numbers(entry)
            item.seen_history.append(
                SeenEntry(
                    ended_on=entry.get("watched_at"),
                    show_season_number=season,
                    show_episode_number=episode,
                )
            )

        return ImportResult(collections=collections, media=list(items.values()))

    def _history(self, user_url):
        page = 1
        page_count = 1
        while page <= page_count:
            response = self.get(
                f"{user_url}/history",
                params={"page": page, "limit": HISTORY_PAGE_LIMIT},
            )
            page_count = int(response.headers.get("X-Pagination-Page-Count", 1))
            yield from response.json()
            page += 1

    def _add_to_collection(self, items, entry, name):
        item = self._item_for_entry(items, entry)
        if item is not None and name not in item.collections:
            item.collections.append(name)

    def _item_for_entry(self, items, entry):
        """
        Return the item for the movie or show an entry refers to, creating it on
        first sight, or ``None`` when the entry can not be imported
        """

        kind = entry.get("type")
        lot = LOT_FOR_TYPE.get(kind)
        if lot is None:
            self.skip(
                "Skipping Trakt entry of unsupported type.",
                reason=f"Trakt entries of type {kind} can not be imported",
                reason_code="unsupported_type",
            )
            return None

        media = entry["movie"] if lot == MediaLot.MOVIE else entry["show"]
        tmdb_id = (media.get("ids") or {}).get("tmdb")
        if not tmdb_id:
            self.skip(
                "Skipping Trakt entry without a TMDB id.",
                reason=f"{media.get('title')} has no TMDB id",
                reason_code="missing_tmdb_id",
            )
            return None

        key = (lot, str(tmdb_id))
        if key not in items:
            items[key] = MediaImportItem(
                source_id=media.get("title") or str(tmdb_id),
                lot=lot,
                source=MediaSource.TMDB,
                identifier=UnresolvedIdentifier(identifier=str(tmdb_id)),
            )
        return items[key]


def episode_numbers(entry):
    if entry.get("type") == "episode":
        episode = entry["episode"]
        return episode.get("season"), episode.get("number")
    if entry.get("type") == "season":
        return entry["season"].get("number"), None
    return None, None
