"""
Celery task handlers for the background jobs declared in ``importer.jobs``.

Every handler is wrapped with ``record_job_outcome`` and gets the worker's
``JobContext`` as its second argument. Task names match the ``NAME`` of the
job they handle so jobs can be published with ``send_task``.
"""

from .maintenance import general_media_cleanup, general_user_cleanup
from .media import import_media
from .metadata import update_metadata
from .users import recalculate_user_summary, user_created

__all__ = [
    "general_media_cleanup",
    "general_user_cleanup",
    "import_media",
    "recalculate_user_summary",
    "update_metadata",
    "user_created",
]
