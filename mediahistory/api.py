from ninja import NinjaAPI

from importer.api import router as importer_router
from mediahistory.version import get_version

api = NinjaAPI(title="mediahistory", version=get_version(), urls_namespace="api")
api.add_router("/imports/", importer_router)
