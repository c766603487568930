"""
Payloads of the background jobs and the queue used to publish them.

Each job class carries the name of the Celery task which handles it. Jobs are
published by name so callers never import the task modules themselves.
"""

import datetime
from logging import getLogger
from typing import ClassVar

from kombu.exceptions import OperationalError
from ninja import Schema

from importer.exceptions import EnqueueFailure
from importer.schemas import DeployImportJobInput
from mediahistory.celery import app as celery_app

logger = getLogger(__name__)


class Job(Schema):
    NAME: ClassVar[str]

    def as_payload(self):
        return self.model_dump(mode="json")


class ScheduledJob(Job):
    """
    Payload of the periodic jobs, carrying the time they were scheduled for
    """

    timestamp: datetime.datetime


class GeneralMediaCleanupJob(ScheduledJob):
    NAME: ClassVar[str] = "importer.general_media_cleanup"


class GeneralUserCleanupJob(ScheduledJob):
    NAME: ClassVar[str] = "importer.general_user_cleanup"


class ImportMedia(Job):
    NAME: ClassVar[str] = "importer.import_media"

    user_id: int
    input: DeployImportJobInput


class UserCreatedJob(Job):
    NAME: ClassVar[str] = "importer.user_created"

    user_id: int


class RecalculateUserSummaryJob(Job):
    NAME: ClassVar[str] = "importer.recalculate_user_summary"

    user_id: int


class UpdateMetadataJob(Job):
    NAME: ClassVar[str] = "importer.update_metadata"

    metadata_id: int


class JobQueue:
    """
    Publishes jobs to the Celery broker
    """

    def __init__(self, app=None):
        self.app = app or celery_app

    def enqueue(self, job: Job) -> str:
        return self.send(job.NAME, job.as_payload())

    def send(self, name, payload) -> str:
        """
        Publish a task by name with an already serialized payload, returning
        the Celery task id
        """
        try:
            result = self.app.send_task(name, kwargs={"payload": payload})
        except (OperationalError, OSError) as exc:
            logger.exception("Unable to enqueue %s", name)
            raise EnqueueFailure(f"Unable to enqueue {name}: {exc}") from exc

        logger.debug("Enqueued %s as task %s", name, result.id)
        return result.id
