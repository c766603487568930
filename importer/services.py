from logging import getLogger

from importer import reports
from importer.exceptions import AdapterFailure, EnqueueFailure
from importer.jobs import ImportMedia
from importer.models import ImportFailStep, ImportSource
from importer.reconciler import reconcile
from importer.schemas import (
    DeployImportJobInput,
    FailedItem,
    ImportResultResponse,
    MediaTrackerImportInput,
)
from importer.sources import get_adapter
from mediahistory.logging import StructuredLogger

logger = getLogger(__name__)
structured_logger = StructuredLogger.get_logger(__name__)


def sort_by_activity(media):
    """
    Order items with the most history, reviews and collections first. Items
    with the same amount of activity keep their original order.
    """
    return sorted(media, key=lambda item: item.activity_count, reverse=True)


class ImporterService:
    """
    Entry point for importing media history from an external source.

    ``deploy`` only validates the request and queues an ``ImportMedia`` job;
    the job handler later calls ``execute``, which does the actual import and
    records its outcome on a ``MediaImportReport``.
    """

    def __init__(self, catalog, queue, adapter_factory=None):
        self.catalog = catalog
        self.queue = queue
        self.adapter_factory = adapter_factory or get_adapter

    def deploy(self, user_id, input: DeployImportJobInput) -> str:
        payload = input.payload
        if isinstance(payload, MediaTrackerImportInput):
            payload.api_url = payload.api_url.rstrip("/")

        job_id = self.queue.enqueue(ImportMedia(user_id=user_id, input=input))
        structured_logger.info(
            "Import queued.",
            event_code="media_import_deployed",
            user=user_id,
            import_source=ImportSource(input.source).value,
            job_id=job_id,
        )
        return job_id

    def execute(self, user_id, input: DeployImportJobInput):
        payload = input.payload
        source = ImportSource(input.source)

        report = reports.start_import_job(user_id, source)

        try:
            result = self.adapter_factory(source).run(payload)
            result.media = sort_by_activity(result.media)
            reconcile(self.catalog, user_id, result)
        except AdapterFailure as exc:
            reports.fail_import_job(
                report,
                FailedItem(
                    step=exc.step or ImportFailStep.SOURCE_FETCH,
                    identifier=source.value,
                    error=str(exc),
                ),
            )
            return report
        except Exception as exc:
            # Re-raised so the job record stores the failure as well
            logger.exception("Unhandled exception during import %s", report.pk)
            reports.fail_import_job(
                report,
                FailedItem(
                    step=ImportFailStep.INPUT_TRANSFORM,
                    identifier=source.value,
                    error=f"Unhandled exception: {exc}",
                ),
            )
            raise

        reports.finish_import_job(
            report, ImportResultResponse.from_result(source, result)
        )

        try:
            self.catalog.deploy_recalculate_summary_job(user_id)
        except EnqueueFailure as exc:
            structured_logger.warning(
                "Unable to queue the summary recalculation after an import.",
                event_code="media_import_summary_enqueue_failed",
                reason=str(exc),
                reason_code="enqueue_failure",
                report=report,
            )

        return report

    def invalidate_stale_reports(self, now=None) -> int:
        return reports.invalidate_stale_reports(now=now)

    def media_import_reports(self, user_id):
        return reports.media_import_reports(user_id)
