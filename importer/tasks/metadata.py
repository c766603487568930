from importer.jobs import UpdateMetadataJob
from mediahistory.celery import app

from .decorators import record_job_outcome


@app.task(bind=True, name=UpdateMetadataJob.NAME)
@record_job_outcome
def update_metadata(self, context, payload):
    job = UpdateMetadataJob.model_validate(payload)
    metadata = context.catalog.update_metadata(job.metadata_id)
    return f"Refreshed {metadata}"
