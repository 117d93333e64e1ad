import unittest
from unittest.mock import Mock, patch

from sqlalchemy.exc import OperationalError

from sunbeam.db import DataStoreError, InMemoryDbClient, PostgresDbClient


class PostgresDbClientTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the Postgres client logic.
    """

    def setUp(self):
        self.db = PostgresDbClient("sqlite+pysqlite:///:memory:")

    def test_create_and_list_posts_newest_first(self):
        with patch("sunbeam.db._now", side_effect=[100.0, 200.0, 300.0]):
            self.db.create_post("first")
            self.db.create_post("second", author_name="Ana")
            self.db.create_post("third", image_url="https://img/3.png")

        newest = self.db.list_posts()
        self.assertEqual([p.content for p in newest], ["third", "second", "first"])
        self.assertEqual(newest[1].author_name, "Ana")
        self.assertEqual(newest[0].image_url, "https://img/3.png")

        oldest = self.db.list_posts(newest_first=False, limit=2)
        self.assertEqual([p.content for p in oldest], ["first", "second"])

    def test_letter_roundtrip(self):
        letter = self.db.create_letter("Dear Gauta", "Thank you", "Mila")
        fetched = self.db.get_letter(letter.letter_id)
        self.assertIsNotNone(fetched)
        self.assertEqual(fetched.title, "Dear Gauta")
        self.assertEqual(fetched.author_name, "Mila")
        self.assertEqual(self.db.list_letters()[0].letter_id, letter.letter_id)

    def test_get_missing_letter(self):
        self.assertIsNone(self.db.get_letter("nope"))

    def test_store_errors_are_wrapped(self):
        error = OperationalError("SELECT 1", {}, Exception("connection refused"))
        with patch.object(self.db, "Session", side_effect=error):
            with self.assertRaises(DataStoreError):
                self.db.list_posts()
            with self.assertRaises(DataStoreError):
                self.db.create_letter("t", "c", "a")


class InMemoryDbClientTests(unittest.TestCase):
    def test_equal_timestamps_match_sql_ordering(self):
        memory = InMemoryDbClient()
        sql = PostgresDbClient("sqlite+pysqlite:///:memory:")
        ids = iter(["b2", "a1", "c3", "b2", "a1", "c3", "l2", "l1", "l2", "l1"])
        with patch("sunbeam.db._now", return_value=50.0), patch(
            "sunbeam.db.uuid.uuid4", side_effect=lambda: Mock(hex=next(ids))
        ):
            for db in (memory, sql):
                for content in ("first", "second", "third"):
                    db.create_post(content)
            for db in (memory, sql):
                db.create_letter("t1", "c", "a")
                db.create_letter("t2", "c", "a")

        for db in (memory, sql):
            self.assertEqual([p.post_id for p in db.list_posts()], ["c3", "b2", "a1"])
            self.assertEqual(
                [p.post_id for p in db.list_posts(newest_first=False, limit=2)],
                ["a1", "b2"],
            )
            self.assertEqual([l.letter_id for l in db.list_letters()], ["l2", "l1"])

    def test_as_dict_uses_iso_timestamps(self):
        db = InMemoryDbClient()
        with patch("sunbeam.db._now", return_value=0.0):
            post = db.create_post("hello")
        self.assertEqual(post.as_dict()["created_at"], "1970-01-01T00:00:00+00:00")

    def test_reset(self):
        db = InMemoryDbClient()
        db.create_post("a")
        db.create_letter("t", "c", "n")
        db.reset()
        self.assertEqual(db.list_posts(), [])
        self.assertEqual(db.list_letters(), [])


if __name__ == "__main__":
    unittest.main()
