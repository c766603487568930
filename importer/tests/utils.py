from unittest import mock

import requests

from catalog.models import MediaLot, MediaSource
from importer.models import ImportSource, MediaImportReport
from importer.schemas import (
    MediaImportItem,
    ResolvedIdentifier,
    ReviewEntry,
    SeenEntry,
    UnresolvedIdentifier,
)


def create_report(*, user, source=ImportSource.TRAKT, **kwargs):
    report = MediaImportReport(user=user, source=source, **kwargs)
    report.save()
    return report


def import_item(
    identifier="603",
    *,
    lot=MediaLot.MOVIE,
    source=MediaSource.TMDB,
    seen=0,
    reviews=(),
    collections=(),
    **kwargs,
):
    """
    Build an unresolved MediaImportItem with ``seen`` undated history entries
    and one ReviewEntry per mapping in ``reviews``
    """
    source_id = kwargs.pop("source_id", f"item-{identifier}")
    seen_history = kwargs.pop("seen_history", None) or [
        SeenEntry() for _ in range(seen)
    ]
    return MediaImportItem(
        source_id=source_id,
        lot=lot,
        source=source,
        identifier=UnresolvedIdentifier(identifier=identifier),
        seen_history=seen_history,
        reviews=[ReviewEntry(**review) for review in reviews],
        collections=list(collections),
        **kwargs,
    )


def resolved_item(details, **kwargs):
    return MediaImportItem(
        source_id=details.title,
        lot=details.lot,
        source=details.source,
        identifier=ResolvedIdentifier(details=details),
        **kwargs,
    )


def json_response(data=None, *, status_code=200, headers=None, content=None):
    response = mock.MagicMock(status_code=status_code)
    response.json.return_value = data
    response.headers = headers or {}
    response.content = content
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(
            f"{status_code} Error"
        )
    return response


def routed_session(routes):
    """
    Return a mock requests session whose ``get`` answers with the response
    registered for the requested URL. A callable route receives the request
    keyword arguments and returns the response.
    """

    session = mock.MagicMock()
    session.headers = {}

    def get(url, **kwargs):
        try:
            route = routes[url]
        except KeyError:
            raise AssertionError(f"Unexpected request to {url}") from None
        if callable(route) and not isinstance(route, mock.Mock):
            return route(**kwargs)
        return route

    session.get.side_effect = get
    return session
