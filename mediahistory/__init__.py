from mediahistory.celery import app as celery_app
from mediahistory.version import get_version

__all__ = ["celery_app", "get_version"]
