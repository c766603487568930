"""
Metadata providers resolve an external identifier into catalog details.

Only a subset of ``MediaSource`` values have a provider; looking up any other
source fails with ``ProviderLookupError`` so the caller can record it against
the single item being imported.
"""

from catalog.exceptions import ProviderLookupError
from catalog.models import MediaSource

from .base import MetadataProvider
from .openlibrary import OpenLibraryProvider
from .tmdb import TmdbProvider

PROVIDERS = {
    MediaSource.TMDB: TmdbProvider,
    MediaSource.OPENLIBRARY: OpenLibraryProvider,
}


def get_provider(source) -> MetadataProvider:
    try:
        provider_class = PROVIDERS[MediaSource(source)]
    except (KeyError, ValueError):
        raise ProviderLookupError(
            f"No metadata provider is available for source {source}"
        ) from None
    return provider_class()


__all__ = [
    "MetadataProvider",
    "OpenLibraryProvider",
    "PROVIDERS",
    "TmdbProvider",
    "get_provider",
]
