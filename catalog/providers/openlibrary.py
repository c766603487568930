from catalog.exceptions import MediaNotFound, ProviderLookupError
from catalog.models import MediaLot, MediaSource
from catalog.schemas import MediaDetails

from .base import MetadataProvider, year_from_date

OPENLIBRARY_URL = "https://openlibrary.org"
OPENLIBRARY_COVER_URL = "https://covers.openlibrary.org/b/id/{}-L.jpg"


class OpenLibraryProvider(MetadataProvider):
    """
    Book details from Open Library. Identifiers are work keys such as
    ``OL45804W``.
    """

    name = "Open Library"

    def media_details(self, identifier, lot=MediaLot.BOOK):
        if lot != MediaLot.BOOK:
            raise ProviderLookupError(f"Open Library does not provide {lot} details")

        data = self.get_json(f"{OPENLIBRARY_URL}/works/{identifier}.json")

        description = data.get("description") or ""
        if isinstance(description, dict):
            description = description.get("value", "")

        return MediaDetails(
            identifier=identifier,
            title=data["title"],
            lot=MediaLot.BOOK,
            source=MediaSource.OPENLIBRARY,
            description=description,
            publish_year=year_from_date(data.get("first_publish_date")),
            images=[
                OPENLIBRARY_COVER_URL.format(cover)
                for cover in data.get("covers") or []
                if cover and cover > 0
            ],
            specifics={"subjects": (data.get("subjects") or [])[:10]},
        )

    def id_from_isbn(self, isbn):
        """
        Return the work key of the book with the given ISBN, or None when Open
        Library does not know the ISBN
        """
        isbn = (isbn or "").strip().replace("-", "")
        if not isbn:
            return None

        try:
            data = self.get_json(f"{OPENLIBRARY_URL}/isbn/{isbn}.json")
        except MediaNotFound:
            return None

        works = data.get("works") or []
        if not works:
            return None
        return works[0]["key"].rsplit("/", 1)[-1]
