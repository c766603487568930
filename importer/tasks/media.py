from importer.jobs import ImportMedia
from mediahistory.celery import app

from .decorators import record_job_outcome


@app.task(bind=True, name=ImportMedia.NAME)
@record_job_outcome
def import_media(self, context, payload):
    job = ImportMedia.model_validate(payload)
    report = context.importer.execute(job.user_id, job.input)
    return "Import report %s finished with success=%s" % (report.pk, report.success)
