from logging import getLogger
from typing import Optional

import requests
from django.conf import settings
from django.core.cache import caches

from catalog.exceptions import MediaNotFound, ProviderLookupError
from catalog.models import MediaLot
from catalog.schemas import MediaDetails
from mediahistory.utils import requests_retry_session

logger = getLogger(__name__)


class MetadataProvider:
    """
    Read-only client for an external metadata service

    Subclasses implement ``media_details`` and use ``get_json`` for every
    request so that responses are cached and failures are reported uniformly
    as ``ProviderLookupError``.
    """

    name = "provider"

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests_retry_session()

    def media_details(self, identifier: str, lot: MediaLot) -> MediaDetails:
        raise NotImplementedError

    def get_json(self, url, params=None, headers=None):
        cache = caches["provider_cache"]
        cache_key = requests.Request("GET", url, params=params).prepare().url
        data = cache.get(cache_key)
        if data is not None:
            return data

        try:
            resp = self.session.get(
                url,
                params=params,
                headers=headers,
                timeout=settings.IMPORTER_REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            raise ProviderLookupError(
                f"Could not reach {self.name}: {exc}"
            ) from exc

        if resp.status_code == 404:
            raise MediaNotFound(f"{self.name} does not know {url}")

        try:
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise ProviderLookupError(
                f"{self.name} returned an invalid response: {exc}"
            ) from exc

        cache.set(cache_key, data, timeout=settings.PROVIDER_CACHE_TIMEOUT)
        return data


def year_from_date(value) -> Optional[int]:
    """
    Return the year of a provider date string like ``2019-04-26`` or
    ``April 26, 2019``, or None when no four digit year is present
    """
    if not value:
        return None
    for token in str(value).replace(",", " ").replace("-", " ").split():
        if len(token) == 4 and token.isdigit():
            return int(token)
    return None
