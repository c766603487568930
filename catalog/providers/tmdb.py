from django.conf import settings

from catalog.exceptions import ProviderLookupError
from catalog.models import MediaLot, MediaSource
from catalog.schemas import MediaDetails

from .base import MetadataProvider, year_from_date

TMDB_API_URL = "https://api.themoviedb.org/3"
TMDB_IMAGE_URL = "https://image.tmdb.org/t/p/original"


class TmdbProvider(MetadataProvider):
    """
    Movie and show details from The Movie Database
    """

    name = "TMDB"

    def media_details(self, identifier, lot):
        if not settings.TMDB_API_KEY:
            raise ProviderLookupError("TMDB API key is not configured")

        if lot == MediaLot.MOVIE:
            return self.movie_details(identifier)
        elif lot == MediaLot.SHOW:
            return self.show_details(identifier)
        raise ProviderLookupError(f"TMDB does not provide {lot} details")

    def _get(self, path):
        return self.get_json(
            f"{TMDB_API_URL}/{path}",
            params={
                "api_key": settings.TMDB_API_KEY,
                "language": settings.TMDB_LANGUAGE,
            },
        )

    def movie_details(self, identifier):
        data = self._get(f"movie/{identifier}")
        return MediaDetails(
            identifier=str(data["id"]),
            title=data["title"],
            lot=MediaLot.MOVIE,
            source=MediaSource.TMDB,
            description=data.get("overview") or "",
            publish_year=year_from_date(data.get("release_date")),
            images=_images(data),
            creators=[c["name"] for c in data.get("production_companies") or []],
            specifics={"runtime": data.get("runtime")},
        )

    def show_details(self, identifier):
        data = self._get(f"tv/{identifier}")
        seasons = [
            {
                "season_number": season["season_number"],
                "name": season.get("name") or "",
                "episode_count": season.get("episode_count") or 0,
            }
            for season in data.get("seasons") or []
        ]
        return MediaDetails(
            identifier=str(data["id"]),
            title=data["name"],
            lot=MediaLot.SHOW,
            source=MediaSource.TMDB,
            description=data.get("overview") or "",
            publish_year=year_from_date(data.get("first_air_date")),
            images=_images(data),
            creators=[c["name"] for c in data.get("created_by") or []],
            specifics={"seasons": seasons},
        )


def _images(data):
    return [
        f"{TMDB_IMAGE_URL}{path}"
        for path in (data.get("poster_path"), data.get("backdrop_path"))
        if path
    ]
