import datetime
from typing import Optional

from django.http import HttpRequest
from ninja import Router, Schema
from ninja.errors import HttpError
from ninja.security import django_auth

from importer.context import get_job_context
from importer.exceptions import EnqueueFailure, MissingPayload
from importer.schemas import DeployImportJobInput
from mediahistory.logging import StructuredLogger

structured_logger = StructuredLogger.get_logger(__name__)

router = Router(auth=django_auth, tags=["imports"])


class DeployImportJobOut(Schema):
    job_id: str


class MediaImportReportOut(Schema):
    id: int  # noqa: A003
    source: str
    started_on: datetime.datetime
    finished_on: Optional[datetime.datetime] = None
    success: Optional[bool] = None
    details: Optional[dict] = None


@router.post("/", response={202: DeployImportJobOut})
def deploy_import_job(request: HttpRequest, payload: DeployImportJobInput):
    importer = get_job_context().importer
    try:
        job_id = importer.deploy(request.user.pk, payload)
    except MissingPayload as exc:
        raise HttpError(400, str(exc)) from exc
    except EnqueueFailure as exc:
        structured_logger.error(
            "Unable to queue an import.",
            event_code="media_import_deploy_failed",
            reason=str(exc),
            reason_code="enqueue_failure",
            user=request.user,
        )
        raise HttpError(503, "The import could not be queued, try again later") from exc
    return 202, {"job_id": job_id}


@router.get("/reports", response=list[MediaImportReportOut])
def media_import_reports(request: HttpRequest):
    return get_job_context().importer.media_import_reports(request.user.pk)
