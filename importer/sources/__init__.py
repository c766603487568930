from importer.models import ImportSource

from .base import SourceAdapter
from .goodreads import GoodreadsAdapter
from .media_json import MediaJsonAdapter
from .media_tracker import MediaTrackerAdapter
from .movary import MovaryAdapter
from .story_graph import StoryGraphAdapter
from .trakt import TraktAdapter

ADAPTERS = {
    ImportSource.MEDIA_TRACKER: MediaTrackerAdapter,
    ImportSource.GOODREADS: GoodreadsAdapter,
    ImportSource.TRAKT: TraktAdapter,
    ImportSource.MOVARY: MovaryAdapter,
    ImportSource.STORY_GRAPH: StoryGraphAdapter,
    ImportSource.MEDIA_JSON: MediaJsonAdapter,
}


def get_adapter(source, **kwargs) -> SourceAdapter:
    return ADAPTERS[ImportSource(source)](**kwargs)


__all__ = ["ADAPTERS", "SourceAdapter", "get_adapter"]
