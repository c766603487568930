from importer.jobs import RecalculateUserSummaryJob, UserCreatedJob
from mediahistory.celery import app

from .decorators import record_job_outcome


@app.task(bind=True, name=UserCreatedJob.NAME)
@record_job_outcome
def user_created(self, context, payload):
    """
    Give a new user the default collections and an empty summary
    """
    job = UserCreatedJob.model_validate(payload)
    context.catalog.user_created_job(job.user_id)
    context.catalog.calculate_user_media_summary(job.user_id)


@app.task(bind=True, name=RecalculateUserSummaryJob.NAME)
@record_job_outcome
def recalculate_user_summary(self, context, payload):
    job = RecalculateUserSummaryJob.model_validate(payload)
    context.catalog.calculate_user_media_summary(job.user_id)
