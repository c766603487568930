"""
Applies an ``ImportResult`` to the catalog on behalf of one user.

Items are handled one at a time in the order given. A failure while handling an
item is recorded as a ``FailedItem`` and never stops the rest of the import:

* if the catalog entry can not be resolved, the rest of that item is skipped
* a history entry or review which can not be saved is recorded and the next
  entry is tried
* collection problems are only logged, since the user can fix them afterwards
"""

from logging import getLogger

from django.db import transaction

from catalog.exceptions import CatalogError
from catalog.schemas import (
    AddMediaToCollection,
    CreateOrUpdateCollectionInput,
    PostReviewInput,
    ProgressUpdateInput,
)
from importer.models import ImportFailStep
from importer.schemas import (
    FailedItem,
    ImportResult,
    MediaImportItem,
    ResolvedIdentifier,
    ReviewEntry,
    SeenEntry,
)
from mediahistory.logging import StructuredLogger

logger = getLogger(__name__)
structured_logger = StructuredLogger.get_logger(__name__)


def reconcile(catalog, user_id, result: ImportResult) -> ImportResult:
    for collection in result.collections:
        try:
            with transaction.atomic():
                catalog.create_or_update_collection(user_id, collection)
        except Exception as exc:
            logger.debug("Unable to create collection %s: %s", collection.name, exc)

    total = len(result.media)
    for index, item in enumerate(result.media, start=1):
        logger.debug("Importing item %s of %s: %s", index, total, item.source_id)
        reconcile_item(catalog, user_id, item, result.failed_items)

    return result


def reconcile_item(catalog, user_id, item: MediaImportItem, failed_items):
    # Each write runs in its own savepoint so a rejected statement does not
    # break the writes for the entries and items after it
    try:
        with transaction.atomic():
            metadata = commit_item(catalog, item)
    except Exception as exc:
        _record_failure(failed_items, item, ImportFailStep.PROVIDER_LOOKUP, exc)
        return

    for seen in item.seen_history:
        try:
            with transaction.atomic():
                catalog.progress_update(_progress_input(metadata, seen), user_id)
        except Exception as exc:
            _record_failure(failed_items, item, ImportFailStep.HISTORY_COMMIT, exc)

    for review in item.reviews:
        if review.is_empty:
            continue
        try:
            with transaction.atomic():
                catalog.post_review(user_id, _review_input(metadata, review))
        except Exception as exc:
            _record_failure(failed_items, item, ImportFailStep.REVIEW_COMMIT, exc)

    for name in item.collections:
        try:
            with transaction.atomic():
                catalog.create_or_update_collection(
                    user_id, CreateOrUpdateCollectionInput(name=name)
                )
        except Exception as exc:
            logger.debug("Unable to create collection %s: %s", name, exc)
        try:
            with transaction.atomic():
                catalog.add_media_to_collection(
                    user_id,
                    AddMediaToCollection(collection_name=name, media_id=metadata.pk),
                )
        except Exception as exc:
            logger.debug("Unable to add %s to collection %s: %s", metadata, name, exc)


def commit_item(catalog, item: MediaImportItem):
    if isinstance(item.identifier, ResolvedIdentifier):
        return catalog.commit_media_internal(item.identifier.details)
    return catalog.commit_media(item.lot, item.source, item.identifier.identifier)


def _progress_input(metadata, seen: SeenEntry):
    return ProgressUpdateInput(
        metadata_id=metadata.pk,
        progress=100,
        date=seen.ended_on.date() if seen.ended_on else None,
        show_season_number=seen.show_season_number,
        show_episode_number=seen.show_episode_number,
        podcast_episode_number=seen.podcast_episode_number,
    )


def _review_input(metadata, entry: ReviewEntry):
    text = entry.review
    return PostReviewInput(
        metadata_id=metadata.pk,
        rating=entry.rating,
        text=text.text if text else None,
        spoiler=text.spoiler if text else None,
        date=text.date if text else None,
        show_season_number=entry.show_season_number,
        show_episode_number=entry.show_episode_number,
        podcast_episode_number=entry.podcast_episode_number,
    )


def _record_failure(failed_items, item, step, exc):
    if not isinstance(exc, CatalogError):
        logger.exception("Unhandled exception when importing item %s", item.source_id)
    error = str(exc) or exc.__class__.__name__
    structured_logger.warning(
        "Unable to import item.",
        event_code="media_import_item_failed",
        reason=error,
        reason_code=step.value,
        source_id=item.source_id,
        media_lot=item.lot,
    )
    failed_items.append(
        FailedItem(lot=item.lot, step=step, identifier=item.source_id, error=error)
    )
