"""
Persistent records written by the import pipeline: one report per import run
and one job record per background job execution.
"""

from logging import getLogger

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone

logger = getLogger(__name__)


class ImportSource(models.TextChoices):
    MEDIA_TRACKER = "media_tracker", "MediaTracker"
    GOODREADS = "goodreads", "Goodreads"
    TRAKT = "trakt", "Trakt"
    MOVARY = "movary", "Movary"
    STORY_GRAPH = "story_graph", "StoryGraph"
    MEDIA_JSON = "media_json", "Media JSON"


class ImportFailStep(models.TextChoices):
    # Declared in the order the pipeline reaches each step
    SOURCE_FETCH = "source_fetch", "Fetching data from the source"
    PROVIDER_LOOKUP = "provider_lookup", "Looking up media details"
    INPUT_TRANSFORM = "input_transform", "Transforming the source data"
    HISTORY_COMMIT = "history_commit", "Saving history"
    REVIEW_COMMIT = "review_commit", "Saving reviews"


class MediaImportReportQuerySet(models.QuerySet):
    def running(self):
        return self.filter(success__isnull=True)

    def finished(self):
        return self.filter(success__isnull=False)


class MediaImportReport(models.Model):
    """
    Outcome of one import run. ``success`` is ``None`` while the import is
    running and is written exactly once when it finishes or is abandoned.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="media_import_reports",
    )
    source = models.CharField(max_length=20, choices=ImportSource.choices)
    started_on = models.DateTimeField(default=timezone.now, db_index=True)
    finished_on = models.DateTimeField(null=True, blank=True)
    success = models.BooleanField(null=True, blank=True)
    details = models.JSONField(
        help_text="Summary of the import and every item which failed",
        encoder=DjangoJSONEncoder,
        null=True,
        blank=True,
    )

    objects = MediaImportReportQuerySet.as_manager()

    class Meta:
        ordering = ("-started_on",)

    def __str__(self):
        return "MediaImportReport(user=%s, source=%s, started_on=%s)" % (
            self.user_id,
            self.source,
            self.started_on,
        )

    @property
    def is_running(self):
        return self.success is None


class JobRecord(models.Model):
    """
    Record of the execution of a background job, keyed by its Celery task id
    so that a redelivered task can tell it already ran
    """

    name = models.CharField(max_length=100, db_index=True)
    payload = models.JSONField(encoder=DjangoJSONEncoder, default=dict, blank=True)

    created = models.DateTimeField(auto_now_add=True)
    modified = models.DateTimeField(auto_now=True)

    last_started = models.DateTimeField(
        help_text="Last time when a worker started processing this job",
        null=True,
        blank=True,
    )
    completed = models.DateTimeField(
        help_text="Time when the job completed without error", null=True, blank=True
    )
    failed = models.DateTimeField(
        help_text="Time when the job failed due to an error", null=True, blank=True
    )

    status = models.TextField(
        help_text="Status message, if any, from the last worker", blank=True, default=""
    )

    task_id = models.UUIDField(
        help_text="UUID of the Celery task which processed this record",
        null=True,
        blank=True,
        unique=True,
    )

    def __str__(self):
        return "JobRecord(name=%s, task_id=%s)" % (self.name, self.task_id)

    def update_status(self, status, do_save=True):
        self.status = status
        if do_save:
            self.save()
