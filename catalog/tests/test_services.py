import datetime
from decimal import Decimal
from unittest import mock

from django.test import TestCase, override_settings

from catalog.exceptions import CatalogError, ProviderLookupError
from catalog.models import (
    Collection,
    CollectionMembership,
    MediaLot,
    MediaSource,
    Metadata,
    Review,
    Seen,
    UserSummary,
)
from catalog.schemas import (
    AddMediaToCollection,
    CreateOrUpdateCollectionInput,
    PostReviewInput,
    ProgressUpdateInput,
)
from catalog.services import CatalogService
from importer.jobs import RecalculateUserSummaryJob, UpdateMetadataJob

from .utils import create_collection, create_metadata, create_user, media_details


class CommitMediaTests(TestCase):
    def setUp(self):
        self.provider = mock.MagicMock()
        self.provider_factory = mock.MagicMock(return_value=self.provider)
        self.service = CatalogService(provider_factory=self.provider_factory)

    def test_existing_entry_is_returned_without_lookup(self):
        metadata = create_metadata()

        result = self.service.commit_media(MediaLot.MOVIE, MediaSource.TMDB, "603")

        self.assertEqual(result, metadata)
        self.provider_factory.assert_not_called()

    def test_missing_entry_is_created_from_provider(self):
        self.provider.media_details.return_value = media_details(
            identifier="27205", title="Inception", publish_year=2010
        )

        result = self.service.commit_media(MediaLot.MOVIE, MediaSource.TMDB, "27205")

        self.provider_factory.assert_called_once_with(MediaSource.TMDB)
        self.provider.media_details.assert_called_once_with("27205", MediaLot.MOVIE)
        self.assertEqual(result.title, "Inception")
        self.assertEqual(result.publish_year, 2010)
        self.assertEqual(Metadata.objects.count(), 1)

    def test_provider_errors_are_propagated(self):
        self.provider.media_details.side_effect = ProviderLookupError("Unavailable")

        with self.assertRaisesRegex(ProviderLookupError, "Unavailable"):
            self.service.commit_media(MediaLot.MOVIE, MediaSource.TMDB, "1")
        self.assertFalse(Metadata.objects.exists())

    def test_malformed_provider_data_is_a_lookup_error(self):
        self.provider.media_details.side_effect = KeyError("title")

        with self.assertRaises(ProviderLookupError):
            self.service.commit_media(MediaLot.MOVIE, MediaSource.TMDB, "1")

    def test_commit_media_internal_is_idempotent(self):
        first = self.service.commit_media_internal(media_details())
        second = self.service.commit_media_internal(media_details(title="Renamed"))

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(second.title, "The Matrix")
        self.assertEqual(Metadata.objects.count(), 1)

    def test_update_metadata(self):
        metadata = create_metadata(title="Old title")
        self.provider.media_details.return_value = media_details(
            title="The Matrix", description="Wake up"
        )

        self.service.update_metadata(metadata.pk)

        metadata.refresh_from_db()
        self.assertEqual(metadata.title, "The Matrix")
        self.assertEqual(metadata.description, "Wake up")

    def test_update_missing_metadata(self):
        with self.assertRaises(CatalogError):
            self.service.update_metadata(12345)


class ProgressUpdateTests(TestCase):
    def setUp(self):
        self.user = create_user()
        self.service = CatalogService()

    def test_completed_progress_creates_seen(self):
        metadata = create_metadata()

        seen = self.service.progress_update(
            ProgressUpdateInput(
                metadata_id=metadata.pk, progress=100, date=datetime.date(2023, 1, 5)
            ),
            self.user.pk,
        )

        self.assertEqual(seen.state, Seen.State.COMPLETED)
        self.assertEqual(seen.progress, 100)
        self.assertEqual(seen.finished_on, datetime.date(2023, 1, 5))

    def test_duplicate_date_is_rejected(self):
        metadata = create_metadata()
        update = ProgressUpdateInput(
            metadata_id=metadata.pk, progress=100, date=datetime.date(2023, 1, 5)
        )
        self.service.progress_update(update, self.user.pk)

        with self.assertRaisesRegex(CatalogError, "already marked as seen"):
            self.service.progress_update(update, self.user.pk)
        self.assertEqual(Seen.objects.count(), 1)

    def test_undated_history_can_repeat(self):
        metadata = create_metadata()
        update = ProgressUpdateInput(metadata_id=metadata.pk, progress=100)

        self.service.progress_update(update, self.user.pk)
        self.service.progress_update(update, self.user.pk)

        self.assertEqual(Seen.objects.count(), 2)

    def test_show_progress_requires_episode(self):
        metadata = create_metadata(lot=MediaLot.SHOW, identifier="1399")

        with self.assertRaises(CatalogError):
            self.service.progress_update(
                ProgressUpdateInput(metadata_id=metadata.pk, progress=100),
                self.user.pk,
            )

        seen = self.service.progress_update(
            ProgressUpdateInput(
                metadata_id=metadata.pk,
                progress=100,
                show_season_number=1,
                show_episode_number=2,
            ),
            self.user.pk,
        )
        self.assertEqual(seen.show_episode_number, 2)

    def test_podcast_progress_requires_episode(self):
        metadata = create_metadata(
            lot=MediaLot.PODCAST, source=MediaSource.ITUNES, identifier="pod"
        )

        with self.assertRaises(CatalogError):
            self.service.progress_update(
                ProgressUpdateInput(metadata_id=metadata.pk, progress=100),
                self.user.pk,
            )

    def test_partial_progress_is_completed_later(self):
        metadata = create_metadata()

        first = self.service.progress_update(
            ProgressUpdateInput(metadata_id=metadata.pk, progress=40), self.user.pk
        )
        self.assertEqual(first.state, Seen.State.IN_PROGRESS)

        second = self.service.progress_update(
            ProgressUpdateInput(metadata_id=metadata.pk, progress=100), self.user.pk
        )
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(second.state, Seen.State.COMPLETED)

    def test_unknown_metadata(self):
        with self.assertRaises(CatalogError):
            self.service.progress_update(
                ProgressUpdateInput(metadata_id=999, progress=100), self.user.pk
            )


class PostReviewTests(TestCase):
    def setUp(self):
        self.user = create_user()
        self.metadata = create_metadata()
        self.service = CatalogService()

    def test_post_review(self):
        review = self.service.post_review(
            self.user.pk,
            PostReviewInput(
                metadata_id=self.metadata.pk, rating=Decimal("85"), text="Great"
            ),
        )

        self.assertEqual(review.rating, Decimal("85"))
        self.assertEqual(review.text, "Great")
        self.assertFalse(review.spoiler)

    def test_rating_out_of_range(self):
        with self.assertRaises(CatalogError):
            self.service.post_review(
                self.user.pk,
                PostReviewInput(metadata_id=self.metadata.pk, rating=Decimal("120")),
            )
        self.assertFalse(Review.objects.exists())

    def test_update_existing_review(self):
        review = self.service.post_review(
            self.user.pk,
            PostReviewInput(metadata_id=self.metadata.pk, rating=Decimal("50")),
        )

        self.service.post_review(
            self.user.pk,
            PostReviewInput(
                metadata_id=self.metadata.pk, rating=Decimal("60"), review_id=review.pk
            ),
        )

        review.refresh_from_db()
        self.assertEqual(review.rating, Decimal("60"))
        self.assertEqual(Review.objects.count(), 1)

    def test_update_review_of_another_user(self):
        other = create_user("bob")
        review = self.service.post_review(
            other.pk,
            PostReviewInput(metadata_id=self.metadata.pk, rating=Decimal("50")),
        )

        with self.assertRaises(CatalogError):
            self.service.post_review(
                self.user.pk,
                PostReviewInput(
                    metadata_id=self.metadata.pk,
                    rating=Decimal("10"),
                    review_id=review.pk,
                ),
            )


class CollectionTests(TestCase):
    def setUp(self):
        self.user = create_user()
        self.service = CatalogService()

    def test_create_or_update_collection(self):
        collection = self.service.create_or_update_collection(
            self.user.pk, CreateOrUpdateCollectionInput(name=" Favorites ")
        )
        self.assertEqual(collection.name, "Favorites")

        updated = self.service.create_or_update_collection(
            self.user.pk,
            CreateOrUpdateCollectionInput(name="Favorites", description="Best ones"),
        )
        self.assertEqual(updated.pk, collection.pk)
        self.assertEqual(updated.description, "Best ones")
        self.assertEqual(Collection.objects.count(), 1)

    def test_collection_name_is_required(self):
        with self.assertRaises(CatalogError):
            self.service.create_or_update_collection(
                self.user.pk, CreateOrUpdateCollectionInput(name="  ")
            )

    def test_add_media_to_collection(self):
        collection = create_collection(user=self.user)
        metadata = create_metadata()
        add = AddMediaToCollection(collection_name="Favorites", media_id=metadata.pk)

        self.service.add_media_to_collection(self.user.pk, add)
        self.assertTrue(
            CollectionMembership.objects.filter(
                collection=collection, metadata=metadata
            ).exists()
        )

        with self.assertRaisesRegex(CatalogError, "already in Favorites"):
            self.service.add_media_to_collection(self.user.pk, add)

    def test_add_media_to_missing_collection(self):
        metadata = create_metadata()

        with self.assertRaisesRegex(CatalogError, "does not exist"):
            self.service.add_media_to_collection(
                self.user.pk,
                AddMediaToCollection(collection_name="Nope", media_id=metadata.pk),
            )

    @override_settings(DEFAULT_USER_COLLECTIONS=["Watchlist", "Owned"])
    def test_user_created_job(self):
        self.service.user_created_job(self.user.pk)
        self.service.user_created_job(self.user.pk)

        self.assertEqual(
            sorted(self.user.collections.values_list("name", flat=True)),
            ["Owned", "Watchlist"],
        )


class SummaryAndCleanupTests(TestCase):
    def setUp(self):
        self.user = create_user()
        self.queue = mock.MagicMock()
        self.service = CatalogService(queue=self.queue)

    def test_calculate_user_media_summary(self):
        movie = create_metadata()
        book = create_metadata(
            lot=MediaLot.BOOK, source=MediaSource.OPENLIBRARY, identifier="OL1W"
        )
        Seen.objects.create(
            user=self.user, metadata=movie, progress=100, state=Seen.State.COMPLETED
        )
        Seen.objects.create(
            user=self.user, metadata=movie, progress=100, state=Seen.State.COMPLETED
        )
        Seen.objects.create(
            user=self.user, metadata=book, progress=100, state=Seen.State.COMPLETED
        )
        Seen.objects.create(user=self.user, metadata=book, progress=10)
        Review.objects.create(user=self.user, metadata=movie, rating=Decimal("90"))

        summary = self.service.calculate_user_media_summary(self.user.pk)

        self.assertEqual(summary.data["seen_by_lot"], {"movie": 2, "book": 1})
        self.assertEqual(summary.data["unique_media_by_lot"], {"movie": 1, "book": 1})
        self.assertEqual(summary.data["ratings"], 1)
        self.assertEqual(summary.data["reviews"], 0)

        self.service.calculate_user_media_summary(self.user.pk)
        self.assertEqual(UserSummary.objects.count(), 1)

    def test_regenerate_user_summaries(self):
        create_user("bob")
        UserSummary.objects.create(user=self.user, data={"stale": True})

        count = self.service.regenerate_user_summaries()

        self.assertEqual(count, 2)
        self.assertEqual(UserSummary.objects.count(), 2)
        self.assertNotIn("stale", UserSummary.objects.get(user=self.user).data)

    def test_cleanup_metadata_without_user_activity(self):
        seen = create_metadata(identifier="1")
        reviewed = create_metadata(identifier="2")
        collected = create_metadata(identifier="3")
        orphan = create_metadata(identifier="4")
        Seen.objects.create(user=self.user, metadata=seen)
        Review.objects.create(user=self.user, metadata=reviewed, text="Fine")
        CollectionMembership.objects.create(
            collection=create_collection(user=self.user), metadata=collected
        )

        self.service.cleanup_metadata_without_user_activity()

        self.assertFalse(Metadata.objects.filter(pk=orphan.pk).exists())
        self.assertEqual(Metadata.objects.count(), 3)

    def test_deploy_jobs(self):
        self.queue.enqueue.return_value = "task-id"

        self.assertEqual(
            self.service.deploy_recalculate_summary_job(self.user.pk), "task-id"
        )
        self.queue.enqueue.assert_called_with(
            RecalculateUserSummaryJob(user_id=self.user.pk)
        )

        self.service.deploy_update_metadata_job(7)
        self.queue.enqueue.assert_called_with(UpdateMetadataJob(metadata_id=7))
