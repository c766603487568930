from django.contrib.auth import get_user_model

from catalog.models import Collection, MediaLot, MediaSource, Metadata
from catalog.schemas import MediaDetails


def create_user(username="alice", **kwargs):
    return get_user_model().objects.create_user(
        username=username, password="password", **kwargs  # nosec
    )


def create_metadata(
    *,
    lot=MediaLot.MOVIE,
    source=MediaSource.TMDB,
    identifier="603",
    title="The Matrix",
    **kwargs,
):
    metadata = Metadata(
        lot=lot, source=source, identifier=identifier, title=title, **kwargs
    )
    metadata.save()
    return metadata


def create_collection(*, user, name="Favorites", **kwargs):
    collection = Collection(user=user, name=name, **kwargs)
    collection.save()
    return collection


def media_details(**kwargs):
    values = {
        "identifier": "603",
        "title": "The Matrix",
        "lot": MediaLot.MOVIE,
        "source": MediaSource.TMDB,
        "publish_year": 1999,
    }
    values.update(kwargs)
    return MediaDetails(**values)
