from dataclasses import dataclass
from functools import lru_cache

from catalog.services import CatalogService
from importer.jobs import JobQueue
from importer.services import ImporterService


@dataclass(frozen=True)
class JobContext:
    """
    The service handles every job handler works with. One is built per worker
    process and passed to the handlers explicitly.
    """

    importer: ImporterService
    catalog: CatalogService
    queue: JobQueue


def build_job_context(app=None) -> JobContext:
    queue = JobQueue(app)
    catalog = CatalogService(queue=queue)
    importer = ImporterService(catalog=catalog, queue=queue)
    return JobContext(importer=importer, catalog=catalog, queue=queue)


@lru_cache(maxsize=None)
def get_job_context() -> JobContext:
    return build_job_context()
