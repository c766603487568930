import csv
import decimal
import io
from logging import getLogger

import requests
from django.conf import settings

from importer.exceptions import AdapterFailure, InputTransformError, SourceFetchError
from importer.schemas import ImportResult
from mediahistory.logging import StructuredLogger
from mediahistory.utils import requests_retry_session

logger = getLogger(__name__)
structured_logger = StructuredLogger.get_logger(__name__)


class SourceAdapter:
    """
    Turns the data exported by one external service into an ``ImportResult``.

    Subclasses implement ``import_history``. They never touch the catalog:
    records which can not be used are skipped with a warning, and problems
    which make the whole source unusable are raised as ``AdapterFailure``.
    """

    source = None

    def __init__(self, session=None):
        self.session = session or requests_retry_session()
        self.timeout = settings.IMPORTER_REQUEST_TIMEOUT

    def import_history(self, payload) -> ImportResult:
        raise NotImplementedError

    def run(self, payload) -> ImportResult:
        """
        Run ``import_history``, converting network and parsing errors into
        the matching ``AdapterFailure``
        """

        try:
            result = self.import_history(payload)
        except AdapterFailure:
            raise
        except requests.RequestException as exc:
            raise SourceFetchError(
                f"Unable to fetch data from {self.source.label}: {exc}"
            ) from exc
        except (
            ValueError,
            KeyError,
            TypeError,
            csv.Error,
            decimal.InvalidOperation,
        ) as exc:
            raise InputTransformError(
                f"Unable to read data from {self.source.label}: {exc}"
            ) from exc

        logger.info(
            "%s returned %s media items and %s collections",
            self.source.label,
            len(result.media),
            len(result.collections),
        )
        return result

    def get(self, url, **kwargs) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        response = self.session.get(url, **kwargs)
        response.raise_for_status()
        return response

    def get_json(self, url, **kwargs):
        return self.get(url, **kwargs).json()

    def skip(self, message, *, reason, reason_code, **context):
        structured_logger.warning(
            message,
            event_code="media_import_record_skipped",
            reason=reason,
            reason_code=reason_code,
            import_source=self.source.value,
            **context,
        )


def read_csv(text, columns, label):
    """
    Parse CSV text with a header row into a list of dicts, failing when any of
    ``columns`` is missing from the header
    """

    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    fieldnames = reader.fieldnames or []
    missing = [column for column in columns if column not in fieldnames]
    if missing:
        raise InputTransformError(
            f"The {label} file is missing the column(s): {', '.join(missing)}"
        )
    return list(reader)
