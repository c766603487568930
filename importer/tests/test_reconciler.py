import datetime
from unittest import mock

from django.db import IntegrityError
from django.db.models.query import QuerySet
from django.test import TestCase

from catalog.exceptions import CatalogError, ProviderLookupError
from catalog.models import (
    Collection,
    CollectionMembership,
    MediaLot,
    Review,
    Seen,
)
from catalog.schemas import CreateOrUpdateCollectionInput
from catalog.services import CatalogService
from catalog.tests.utils import create_user, media_details
from importer.models import ImportFailStep
from importer.reconciler import reconcile, reconcile_item
from importer.schemas import FailedItem, ImportResult, SeenEntry
from importer.tests.utils import import_item, resolved_item


def mock_catalog():
    catalog = mock.MagicMock(spec=CatalogService)
    catalog.commit_media.return_value = mock.MagicMock(pk=1)
    catalog.commit_media_internal.return_value = mock.MagicMock(pk=2)
    return catalog


class ReconcileItemTests(TestCase):
    def setUp(self):
        self.catalog = mock_catalog()
        self.failed_items = []

    def test_unresolved_item(self):
        item = import_item("603", seen=1, reviews=[{"rating": 80}])

        reconcile_item(self.catalog, 5, item, self.failed_items)

        self.catalog.commit_media.assert_called_once_with(
            MediaLot.MOVIE, "tmdb", "603"
        )
        progress = self.catalog.progress_update.call_args.args[0]
        self.assertEqual(progress.metadata_id, 1)
        self.assertEqual(progress.progress, 100)
        self.assertIsNone(progress.date)
        self.assertEqual(self.catalog.progress_update.call_args.args[1], 5)
        user_id, review = self.catalog.post_review.call_args.args
        self.assertEqual(user_id, 5)
        self.assertEqual(review.rating, 80)
        self.assertIsNone(review.text)
        self.assertEqual(self.failed_items, [])

    def test_resolved_item(self):
        details = media_details(lot=MediaLot.BOOK, source="goodreads")
        item = resolved_item(
            details,
            seen_history=[
                SeenEntry(ended_on=datetime.datetime(2023, 5, 1, 21, 30))
            ],
        )

        reconcile_item(self.catalog, 5, item, self.failed_items)

        self.catalog.commit_media.assert_not_called()
        self.catalog.commit_media_internal.assert_called_once_with(details)
        progress = self.catalog.progress_update.call_args.args[0]
        self.assertEqual(progress.metadata_id, 2)
        self.assertEqual(progress.date, datetime.date(2023, 5, 1))

    def test_provider_lookup_failure_skips_item(self):
        self.catalog.commit_media.side_effect = ProviderLookupError("Not found")
        item = import_item(
            seen=2, reviews=[{"rating": 40}], collections=["Watchlist"]
        )

        reconcile_item(self.catalog, 5, item, self.failed_items)

        self.catalog.progress_update.assert_not_called()
        self.catalog.post_review.assert_not_called()
        self.catalog.create_or_update_collection.assert_not_called()
        self.catalog.add_media_to_collection.assert_not_called()
        self.assertEqual(len(self.failed_items), 1)
        failed = self.failed_items[0]
        self.assertEqual(failed.step, ImportFailStep.PROVIDER_LOOKUP)
        self.assertEqual(failed.identifier, "item-603")
        self.assertEqual(failed.lot, MediaLot.MOVIE)
        self.assertEqual(failed.error, "Not found")

    def test_history_failure_continues(self):
        self.catalog.progress_update.side_effect = [
            CatalogError("Episode numbers are required"),
            mock.MagicMock(),
        ]
        item = import_item(seen=2, reviews=[{"rating": 60}])

        reconcile_item(self.catalog, 5, item, self.failed_items)

        self.assertEqual(self.catalog.progress_update.call_count, 2)
        self.catalog.post_review.assert_called_once()
        self.assertEqual(
            [failed.step for failed in self.failed_items],
            [ImportFailStep.HISTORY_COMMIT],
        )
        self.assertEqual(self.failed_items[0].error, "Episode numbers are required")

    def test_review_failure_continues(self):
        self.catalog.post_review.side_effect = CatalogError("")
        item = import_item(
            reviews=[{"rating": 10}, {"rating": 20}], collections=["Favorites"]
        )

        reconcile_item(self.catalog, 5, item, self.failed_items)

        self.assertEqual(self.catalog.post_review.call_count, 2)
        self.catalog.add_media_to_collection.assert_called_once()
        self.assertEqual(
            [failed.step for failed in self.failed_items],
            [ImportFailStep.REVIEW_COMMIT, ImportFailStep.REVIEW_COMMIT],
        )
        self.assertEqual(self.failed_items[0].error, "CatalogError")

    def test_empty_review_is_ignored(self):
        item = import_item(reviews=[{}])

        reconcile_item(self.catalog, 5, item, self.failed_items)

        self.catalog.post_review.assert_not_called()
        self.assertEqual(self.failed_items, [])

    def test_collection_failures_are_ignored(self):
        self.catalog.create_or_update_collection.side_effect = CatalogError("Empty")
        self.catalog.add_media_to_collection.side_effect = CatalogError(
            "The Matrix is already in Watchlist"
        )
        item = import_item(collections=["Watchlist", "Favorites"])

        reconcile_item(self.catalog, 5, item, self.failed_items)

        self.assertEqual(self.catalog.add_media_to_collection.call_count, 2)
        added = self.catalog.add_media_to_collection.call_args_list[1].args[1]
        self.assertEqual(added.collection_name, "Favorites")
        self.assertEqual(added.media_id, 1)
        self.assertEqual(self.failed_items, [])


class ReconcileTests(TestCase):
    def test_collections_before_items(self):
        catalog = mock_catalog()
        result = ImportResult(
            collections=[CreateOrUpdateCollectionInput(name="Watchlist")],
            media=[import_item("1", collections=["Watchlist"]), import_item("2")],
        )

        reconcile(catalog, 5, result)

        names = [call[0] for call in catalog.method_calls]
        self.assertEqual(names[0], "create_or_update_collection")
        self.assertEqual(names[1], "commit_media")
        self.assertEqual(catalog.commit_media.call_count, 2)

    def test_failure_does_not_stop_later_items(self):
        catalog = mock_catalog()
        catalog.commit_media.side_effect = [
            ProviderLookupError("Not found"),
            mock.MagicMock(pk=3),
        ]
        result = ImportResult(
            media=[import_item("1", seen=1), import_item("2", seen=1)]
        )

        reconcile(catalog, 5, result)

        catalog.progress_update.assert_called_once()
        self.assertEqual(catalog.progress_update.call_args.args[0].metadata_id, 3)
        self.assertEqual(
            [failed.identifier for failed in result.failed_items], ["item-1"]
        )

    def test_database_error_does_not_stop_later_items(self):
        catalog = mock_catalog()
        catalog.progress_update.side_effect = [
            IntegrityError("CHECK constraint failed: show_episode_number"),
            mock.MagicMock(),
        ]
        result = ImportResult(
            media=[import_item("1", seen=1), import_item("2", seen=1)]
        )

        reconcile(catalog, 5, result)

        self.assertEqual(catalog.progress_update.call_count, 2)
        [failed] = result.failed_items
        self.assertEqual(failed.identifier, "item-1")
        self.assertEqual(failed.step, ImportFailStep.HISTORY_COMMIT)
        self.assertIn("CHECK constraint failed", failed.error)

    def test_unexpected_provider_error_is_recorded(self):
        catalog = mock_catalog()
        catalog.commit_media.side_effect = [KeyError("results"), mock.MagicMock(pk=3)]
        result = ImportResult(media=[import_item("1"), import_item("2")])

        reconcile(catalog, 5, result)

        self.assertEqual(catalog.commit_media.call_count, 2)
        [failed] = result.failed_items
        self.assertEqual(failed.step, ImportFailStep.PROVIDER_LOOKUP)
        self.assertEqual(failed.error, "'results'")

    def test_adapter_failed_items_are_kept(self):
        catalog = mock_catalog()
        result = ImportResult(media=[import_item()])
        result.failed_items.append(
            FailedItem(
                step=ImportFailStep.INPUT_TRANSFORM,
                identifier="row 3",
                error="Bad date",
            )
        )

        reconcile(catalog, 5, result)

        self.assertEqual(len(result.failed_items), 1)


class ReconcileCatalogTests(TestCase):
    """
    Reconciliation against the real catalog, with only the provider mocked
    """

    def setUp(self):
        self.user = create_user()
        provider = mock.MagicMock()
        provider.media_details.side_effect = lambda identifier, lot: media_details(
            identifier=identifier, title=f"Movie {identifier}"
        )
        self.catalog = CatalogService(provider_factory=lambda source: provider)

    def test_two_imports_share_collection(self):
        for identifier in ("1", "2"):
            result = ImportResult(
                collections=[CreateOrUpdateCollectionInput(name="Watchlist")],
                media=[import_item(identifier, collections=["Watchlist"])],
            )
            reconcile(self.catalog, self.user.pk, result)
            self.assertEqual(result.failed_items, [])

        collection = Collection.objects.get(user=self.user, name="Watchlist")
        self.assertEqual(
            CollectionMembership.objects.filter(collection=collection).count(), 2
        )

    def test_rejected_review_does_not_stop_later_items(self):
        result = ImportResult(
            media=[
                import_item(
                    "1", reviews=[{"rating": 50, "podcast_episode_number": -1}]
                ),
                import_item("2", seen=1, reviews=[{"rating": 70}]),
            ]
        )

        reconcile(self.catalog, self.user.pk, result)

        [failed] = result.failed_items
        self.assertEqual(failed.identifier, "item-1")
        self.assertEqual(failed.step, ImportFailStep.REVIEW_COMMIT)
        self.assertEqual(Review.objects.get(user=self.user).metadata.identifier, "2")
        self.assertEqual(Seen.objects.get(user=self.user).metadata.identifier, "2")

    def test_collection_created_by_concurrent_import(self):
        """
        Another import creates the same collection after the lookup found
        nothing; the unique constraint rejects the second insert and the
        existing collection is used instead.
        """

        get = QuerySet.get
        competing_writes = []

        def get_during_concurrent_import(queryset, *args, **kwargs):
            if queryset.model is Collection and not competing_writes:
                competitor = Collection(user=self.user, name="Watchlist")
                competitor.save()
                competing_writes.append(competitor)
                raise Collection.DoesNotExist
            return get(queryset, *args, **kwargs)

        result = ImportResult(
            collections=[CreateOrUpdateCollectionInput(name="Watchlist")],
            media=[import_item("1", collections=["Watchlist"])],
        )
        with mock.patch.object(
            QuerySet,
            "get",
            autospec=True,
            side_effect=get_during_concurrent_import,
        ):
            reconcile(self.catalog, self.user.pk, result)

        self.assertEqual(result.failed_items, [])
        [collection] = Collection.objects.filter(user=self.user)
        self.assertEqual(collection, competing_writes[0])
        self.assertEqual(
            CollectionMembership.objects.filter(collection=collection).count(), 1
        )

    def test_history_is_written(self):
        result = ImportResult(
            media=[
                import_item(
                    "603",
                    seen_history=[
                        SeenEntry(ended_on=datetime.datetime(2022, 1, 2, 3, 4))
                    ],
                )
            ]
        )

        reconcile(self.catalog, self.user.pk, result)

        seen = Seen.objects.get(user=self.user)
        self.assertEqual(seen.metadata.identifier, "603")
        self.assertEqual(seen.finished_on, datetime.date(2022, 1, 2))
        self.assertEqual(seen.state, Seen.State.COMPLETED)
