from unittest import mock

from django.test import TestCase

from catalog.tests.utils import create_user
from importer.exceptions import EnqueueFailure
from importer.jobs import UserCreatedJob
from importer.signals import queue_user_created_job


@mock.patch("importer.signals.JobQueue")
class UserCreatedSignalTests(TestCase):
    def test_new_user_queues_job(self, job_queue):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            user = create_user()

        self.assertEqual(len(callbacks), 1)
        job_queue.return_value.enqueue.assert_called_once_with(
            UserCreatedJob(user_id=user.pk)
        )

    def test_existing_user_is_ignored(self, job_queue):
        user = create_user()

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            user.first_name = "Alice"
            user.save()

        self.assertEqual(callbacks, [])
        job_queue.return_value.enqueue.assert_not_called()

    def test_enqueue_failure_is_logged(self, job_queue):
        job_queue.return_value.enqueue.side_effect = EnqueueFailure("refused")

        queue_user_created_job(4)

        job_queue.return_value.enqueue.assert_called_once()
