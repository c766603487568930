from logging import getLogger

from django.core.management import call_command
from django.utils.timezone import now

from importer.jobs import GeneralMediaCleanupJob, GeneralUserCleanupJob
from mediahistory.celery import app

from .decorators import record_job_outcome

logger = getLogger(__name__)


@app.task(bind=True, name=GeneralMediaCleanupJob.NAME)
@record_job_outcome
def general_media_cleanup(self, context, payload):
    """
    Mark abandoned import reports as failed and delete catalog entries which
    no user has any activity on
    """
    job = GeneralMediaCleanupJob(timestamp=payload.get("timestamp") or now())

    logger.info("Invalidating stale import reports")
    invalidated = context.importer.invalidate_stale_reports(now=job.timestamp)

    logger.info("Cleaning up catalog entries without user activity")
    deleted = context.catalog.cleanup_metadata_without_user_activity()

    return f"Invalidated {invalidated} import reports, deleted {deleted} catalog rows"


@app.task(bind=True, name=GeneralUserCleanupJob.NAME)
@record_job_outcome
def general_user_cleanup(self, context, payload):
    """
    Regenerate every user summary and remove expired login sessions
    """
    GeneralUserCleanupJob(timestamp=payload.get("timestamp") or now())

    logger.info("Removing old user summaries and regenerating them")
    regenerated = context.catalog.regenerate_user_summaries()

    logger.info("Removing expired sessions")
    call_command("clearsessions")

    return f"Regenerated {regenerated} user summaries"
