import json
from unittest import mock

from django.test import TestCase

from catalog.models import MediaLot, MediaSource
from importer.exceptions import InputTransformError
from importer.schemas import MediaJsonImportInput, UnresolvedIdentifier
from importer.sources.media_json import MediaJsonAdapter

EXPORT = [
    {
        "identifier": "1399",
        "source": "tmdb",
        "lot": "show",
        "title": "Game of Thrones",
        "seen_history": [
            {
                "ended_on": "2019-05-19T21:00:00Z",
                "show_season_number": 8,
                "show_episode_number": 6,
            }
        ],
        "reviews": [{"rating": "40", "review": {"text": "Rushed."}}],
        "collections": ["Finished"],
    },
    {"identifier": "OL893415W", "source": "openlibrary", "lot": "book"},
]


class MediaJsonAdapterTests(TestCase):
    def setUp(self):
        self.adapter = MediaJsonAdapter(session=mock.MagicMock())

    def run_import(self, data):
        return self.adapter.run(MediaJsonImportInput(export=json.dumps(data)))

    def test_import_history(self):
        result = self.run_import(EXPORT)

        show, book = result.media
        self.assertEqual(show.source_id, "Game of Thrones")
        self.assertEqual(show.lot, MediaLot.SHOW)
        self.assertEqual(show.source, MediaSource.TMDB)
        self.assertEqual(show.identifier, UnresolvedIdentifier(identifier="1399"))
        self.assertEqual(show.seen_history[0].show_episode_number, 6)
        self.assertEqual(show.reviews[0].rating, 40)
        self.assertEqual(show.reviews[0].review.text, "Rushed.")
        self.assertEqual(show.collections, ["Finished"])

        self.assertEqual(book.source_id, "OL893415W")
        self.assertEqual(book.activity_count, 0)

    def test_not_a_list(self):
        with self.assertRaisesRegex(InputTransformError, "must be a list"):
            self.run_import({"media": EXPORT})

    def test_invalid_json(self):
        with self.assertRaises(InputTransformError):
            self.adapter.run(MediaJsonImportInput(export="[{"))

    def test_invalid_entry(self):
        with self.assertRaises(InputTransformError):
            self.run_import([{"identifier": "1", "source": "myspace", "lot": "book"}])
