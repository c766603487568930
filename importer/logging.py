import logging

from celery import current_task


class CeleryTaskIDFilter(logging.Filter):
    """
    Tags stdlib records written inside a job with ``record.task_id``, which
    holds the job name and Celery task id in the form the ``long`` formatter
    appends after the line number. Outside of a job the tag is empty.
    """

    def filter(self, record):
        request = getattr(current_task, "request", None)
        task_id = getattr(request, "id", None)
        if task_id:
            record.task_id = f" {current_task.name}/[{task_id}]"
        else:
            record.task_id = ""
        return True
