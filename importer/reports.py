"""
Reads and writes of ``MediaImportReport`` rows.

Every write which finishes a report is a conditional update on
``success IS NULL`` so that a report is finished exactly once, even when the
import itself and the stale report sweep race each other.
"""

from datetime import timedelta
from logging import getLogger

from django.conf import settings
from django.utils.timezone import now as current_time

from importer.models import MediaImportReport
from importer.schemas import FailedItem, ImportDetails, ImportResultResponse
from mediahistory.logging import StructuredLogger

logger = getLogger(__name__)
structured_logger = StructuredLogger.get_logger(__name__)


def start_import_job(user_id, source) -> MediaImportReport:
    report = MediaImportReport.objects.create(user_id=user_id, source=source)
    structured_logger.info(
        "Import started.", event_code="media_import_started", report=report
    )
    return report


def _finish(report, success, details):
    finished_on = current_time()
    updated = MediaImportReport.objects.filter(
        pk=report.pk, success__isnull=True
    ).update(success=success, finished_on=finished_on, details=details)

    if not updated:
        structured_logger.warning(
            "Import report was already finished and was not overwritten.",
            event_code="media_import_report_already_finished",
            reason="Report success flag was set before this import finished",
            reason_code="report_already_finished",
            report=report,
        )
        return False

    report.success = success
    report.finished_on = finished_on
    report.details = details
    return True


def finish_import_job(report, response: ImportResultResponse):
    """
    Mark a running report as successful and store the import summary.

    Returns ``False`` without writing anything if the report already finished.
    """

    finished = _finish(report, True, response.as_json())
    if finished:
        structured_logger.info(
            "Import finished.",
            event_code="media_import_finished",
            report=report,
            total=response.import_details.total,
            failed_count=len(response.failed_items),
        )
    return finished


def fail_import_job(report, failed_item: FailedItem):
    """
    Mark a running report as failed with a single failed item describing why
    """

    response = ImportResultResponse(
        source=report.source,
        import_details=ImportDetails(total=0),
        failed_items=[failed_item],
    )
    finished = _finish(report, False, response.as_json())
    if finished:
        structured_logger.warning(
            "Import failed.",
            event_code="media_import_failed",
            reason=failed_item.error or "The source could not be imported",
            reason_code=failed_item.step.value,
            report=report,
        )
    return finished


def invalidate_stale_reports(now=None) -> int:
    """
    Mark every report which has been running for longer than
    ``IMPORT_REPORT_STALE_HOURS`` as failed and return how many were changed
    """

    if now is None:
        now = current_time()
    cutoff = now - timedelta(hours=settings.IMPORT_REPORT_STALE_HOURS)

    count = MediaImportReport.objects.filter(
        success__isnull=True, started_on__lt=cutoff
    ).update(success=False, finished_on=now)

    if count:
        logger.info("Marked %s stale import reports as failed", count)
    return count


def media_import_reports(user_id) -> list[MediaImportReport]:
    return list(
        MediaImportReport.objects.filter(user_id=user_id).order_by("-started_on", "-pk")
    )
