from logging import getLogger

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db.models import Count
from django.utils.timezone import now

from catalog.exceptions import CatalogError, ProviderLookupError
from catalog.models import (
    Collection,
    CollectionMembership,
    MediaLot,
    Metadata,
    Review,
    Seen,
    UserSummary,
)
from catalog.providers import get_provider
from catalog.schemas import (
    AddMediaToCollection,
    CreateOrUpdateCollectionInput,
    MediaDetails,
    PostReviewInput,
    ProgressUpdateInput,
)
from importer.jobs import RecalculateUserSummaryJob, UpdateMetadataJob
from mediahistory.logging import StructuredLogger

logger = getLogger(__name__)
structured_logger = StructuredLogger.get_logger(__name__)


class CatalogService:
    """
    Reads and writes the shared catalog and the per-user history recorded
    against it.

    Catalog entries and collections are created with ``get_or_create`` /
    ``update_or_create`` on columns backed by unique constraints, so two
    workers creating the same row at the same time both end up with the
    single row that won the race instead of an error.
    """

    def __init__(self, queue=None, provider_factory=get_provider):
        self.queue = queue
        self.provider_factory = provider_factory

    # Catalog entries

    def commit_media(self, lot, source, identifier) -> Metadata:
        """
        Return the catalog entry for an external identifier, asking the
        source's metadata provider for details when it does not exist yet
        """
        existing = Metadata.objects.filter(
            lot=lot, source=source, identifier=identifier
        ).first()
        if existing is not None:
            return existing

        details = self._provider_details(source, identifier, lot)
        return self.commit_media_internal(details)

    def commit_media_internal(self, details: MediaDetails) -> Metadata:
        metadata, created = Metadata.objects.get_or_create(
            lot=details.lot,
            source=details.source,
            identifier=details.identifier,
            defaults={
                "title": details.title,
                "description": details.description,
                "publish_year": details.publish_year,
                "images": details.images,
                "creators": details.creators,
                "specifics": details.specifics,
            },
        )
        if created:
            structured_logger.info(
                "Created catalog entry.",
                event_code="catalog_metadata_created",
                metadata=metadata,
            )
        return metadata

    def update_metadata(self, metadata_id):
        """
        Refresh a catalog entry from its metadata provider
        """
        metadata = self._get_metadata(metadata_id)
        details = self._provider_details(
            metadata.source, metadata.identifier, metadata.lot
        )

        metadata.title = details.title
        metadata.description = details.description
        metadata.publish_year = details.publish_year
        metadata.images = details.images
        metadata.creators = details.creators
        metadata.specifics = details.specifics
        metadata.save()

        structured_logger.info(
            "Refreshed catalog entry.",
            event_code="catalog_metadata_updated",
            metadata=metadata,
        )
        return metadata

    def deploy_update_metadata_job(self, metadata_id):
        return self.queue.enqueue(UpdateMetadataJob(metadata_id=metadata_id))

    def cleanup_metadata_without_user_activity(self):
        """
        Delete catalog entries which no user has seen, reviewed or collected
        """
        orphans = Metadata.objects.filter(
            seen__isnull=True,
            review__isnull=True,
            collectionmembership__isnull=True,
        )
        count, _ = orphans.delete()
        logger.info("Deleted %s catalog rows without user activity", count)
        return count

    # History and reviews

    def progress_update(self, input: ProgressUpdateInput, user_id) -> Seen:
        metadata = self._get_metadata(input.metadata_id)
        progress = 100 if input.progress is None else input.progress

        if metadata.lot == MediaLot.SHOW and (
            input.show_season_number is None or input.show_episode_number is None
        ):
            raise CatalogError(
                "Progress for a show needs both a season and an episode number"
            )
        if metadata.lot == MediaLot.PODCAST and input.podcast_episode_number is None:
            raise CatalogError("Progress for a podcast needs an episode number")

        episode_filter = {
            "user_id": user_id,
            "metadata": metadata,
            "show_season_number": input.show_season_number,
            "show_episode_number": input.show_episode_number,
            "podcast_episode_number": input.podcast_episode_number,
        }

        if progress == 100 and input.date is not None:
            duplicate = Seen.objects.filter(
                state=Seen.State.COMPLETED, finished_on=input.date, **episode_filter
            )
            if duplicate.exists():
                raise CatalogError(
                    f"{metadata.title} was already marked as seen on {input.date}"
                )

        seen = (
            Seen.objects.filter(state=Seen.State.IN_PROGRESS, **episode_filter)
            .order_by("-last_updated_on")
            .first()
        )
        if seen is None:
            seen = Seen(started_on=input.date, **episode_filter)

        seen.progress = progress
        if progress == 100:
            seen.state = Seen.State.COMPLETED
            seen.finished_on = input.date
        seen.save()
        return seen

    def post_review(self, user_id, input: PostReviewInput) -> Review:
        metadata = self._get_metadata(input.metadata_id)

        if input.rating is not None and not 0 <= input.rating <= 100:
            raise CatalogError(f"Rating {input.rating} is not between 0 and 100")

        if input.review_id is not None:
            try:
                review = Review.objects.get(pk=input.review_id, user_id=user_id)
            except Review.DoesNotExist:
                raise CatalogError(
                    f"Review {input.review_id} does not exist"
                ) from None
        else:
            review = Review(user_id=user_id, metadata=metadata)

        review.rating = input.rating
        review.text = input.text or ""
        review.spoiler = bool(input.spoiler)
        if input.visibility is not None:
            review.visibility = input.visibility
        if input.date is not None:
            review.posted_on = input.date
        review.show_season_number = input.show_season_number
        review.show_episode_number = input.show_episode_number
        review.podcast_episode_number = input.podcast_episode_number
        review.save()
        return review

    # Collections

    def create_or_update_collection(
        self, user_id, input: CreateOrUpdateCollectionInput
    ) -> Collection:
        name = input.name.strip()
        if not name:
            raise CatalogError("Collection name can not be empty")

        defaults = {}
        if input.description is not None:
            defaults["description"] = input.description
        if input.visibility is not None:
            defaults["visibility"] = input.visibility

        collection, _ = Collection.objects.update_or_create(
            user_id=user_id, name=name, defaults=defaults
        )
        return collection

    def add_media_to_collection(self, user_id, input: AddMediaToCollection):
        try:
            collection = Collection.objects.get(
                user_id=user_id, name=input.collection_name.strip()
            )
        except Collection.DoesNotExist:
            raise CatalogError(
                f"Collection {input.collection_name} does not exist"
            ) from None

        metadata = self._get_metadata(input.media_id)
        _, created = CollectionMembership.objects.get_or_create(
            collection=collection, metadata=metadata
        )
        if not created:
            raise CatalogError(f"{metadata.title} is already in {collection.name}")
        return collection

    # Users

    def user_created_job(self, user_id):
        for name in settings.DEFAULT_USER_COLLECTIONS:
            self.create_or_update_collection(
                user_id, CreateOrUpdateCollectionInput(name=name)
            )

    def calculate_user_media_summary(self, user_id) -> UserSummary:
        completed = Seen.objects.filter(user_id=user_id, state=Seen.State.COMPLETED)
        seen_by_lot = dict(
            completed.values_list("metadata__lot")
            .annotate(count=Count("id"))
            .order_by()
        )
        unique_by_lot = dict(
            completed.values_list("metadata__lot")
            .annotate(count=Count("metadata", distinct=True))
            .order_by()
        )
        reviews = Review.objects.filter(user_id=user_id)

        data = {
            "seen_by_lot": seen_by_lot,
            "unique_media_by_lot": unique_by_lot,
            "reviews": reviews.exclude(text="").count(),
            "ratings": reviews.filter(rating__isnull=False).count(),
            "collections": Collection.objects.filter(user_id=user_id).count(),
        }

        summary, _ = UserSummary.objects.update_or_create(
            user_id=user_id, defaults={"data": data, "calculated_on": now()}
        )
        logger.debug("Calculated summary for user %s: %s", user_id, data)
        return summary

    def deploy_recalculate_summary_job(self, user_id):
        return self.queue.enqueue(RecalculateUserSummaryJob(user_id=user_id))

    def regenerate_user_summaries(self):
        UserSummary.objects.all().delete()
        user_ids = get_user_model().objects.values_list("pk", flat=True)
        count = 0
        for user_id in user_ids.iterator():
            self.calculate_user_media_summary(user_id)
            count += 1
        return count

    def _get_metadata(self, metadata_id) -> Metadata:
        try:
            return Metadata.objects.get(pk=metadata_id)
        except Metadata.DoesNotExist:
            raise CatalogError(f"Catalog entry {metadata_id} does not exist") from None

    def _provider_details(self, source, identifier, lot) -> MediaDetails:
        provider = self.provider_factory(source)
        try:
            return provider.media_details(identifier, lot)
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderLookupError(
                f"Unable to read the details of {identifier} from {source}: {exc}"
            ) from exc
