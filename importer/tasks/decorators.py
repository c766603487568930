from functools import wraps
from logging import getLogger

from django.utils.timezone import now

from importer.context import get_job_context
from importer.models import JobRecord
from mediahistory.logging import StructuredLogger

logger = getLogger(__name__)
structured_logger = StructuredLogger.get_logger(__name__)


def record_job_outcome(f):
    """
    Decorator which records each run of a job handler on a JobRecord and keeps
    exceptions from escaping into the worker

    Assumes that all wrapped functions are bound Celery tasks and are called
    with the job payload as the ``payload`` keyword. The wrapped function gets
    the Celery task self value, the worker's JobContext and the payload, and
    may return a status message.
    """

    @wraps(f)
    def inner(self, payload=None):
        payload = payload or {}
        task_id = self.request.id

        if task_id:
            # A broker may deliver a task more than once; only the first
            # successful run counts
            guard_qs = JobRecord.objects.filter(
                task_id=task_id, completed__isnull=False
            )
            if guard_qs.exists():
                logger.warning(
                    "Job %s was already completed and will not be repeated",
                    guard_qs.first(),
                    extra={"data": {"payload": payload}},
                )
                return None
            job_record, _ = JobRecord.objects.get_or_create(
                task_id=task_id, defaults={"name": self.name, "payload": payload}
            )
        else:
            job_record = JobRecord(name=self.name, payload=payload)

        job_record.last_started = now()
        job_record.save()

        try:
            status = f(self, get_job_context(), payload)
        except Exception as exc:
            structured_logger.exception(
                "Background job failed.",
                event_code="job_failed",
                reason=str(exc) or exc.__class__.__name__,
                reason_code="unhandled_exception",
                job=job_record,
            )
            new_status = "{}\n\nUnhandled exception: {}".format(
                job_record.status, exc
            ).strip()
            job_record.update_status(new_status, do_save=False)
            job_record.failed = now()
            job_record.save()
            return None

        job_record.completed = now()
        job_record.failed = None
        job_record.update_status(status or "Completed")
        return status

    return inner
