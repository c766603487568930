from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from importer.exceptions import EnqueueFailure
from importer.jobs import JobQueue, UserCreatedJob
from mediahistory.logging import StructuredLogger

structured_logger = StructuredLogger.get_logger(__name__)


def queue_user_created_job(user_id):
    try:
        JobQueue().enqueue(UserCreatedJob(user_id=user_id))
    except EnqueueFailure as exc:
        structured_logger.error(
            "Unable to queue setup of a new user.",
            event_code="user_created_enqueue_failed",
            reason=str(exc),
            reason_code="enqueue_failure",
            user=user_id,
        )


@receiver(post_save, sender=get_user_model())
def on_user_created(sender, instance, created, **kwargs):
    if created:
        transaction.on_commit(lambda: queue_user_created_job(instance.pk))
