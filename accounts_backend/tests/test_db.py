import threading
import unittest

from accounts_backend.db import (
    InMemoryDbClient,
    ProfileRecord,
    SqlDbClient,
    StoredImage,
    UserRecord,
)
from accounts_backend.errors import DuplicateEmail, StorageUnavailable


def make_user(email="ada@example.com"):
    return UserRecord(
        first_name="Ada", last_name="Lovelace", email=email, password="$2b$08$digest"
    )


def make_profile(**images):
    return ProfileRecord(
        full_name="Somchai Jaidee",
        mobile="0812345678",
        email="somchai@example.com",
        location="Bangkok",
        bio="Hello",
        **images,
    )


class SqlDbClientTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the SQL client logic.
    """

    def setUp(self):
        self.db = SqlDbClient("sqlite+pysqlite:///:memory:")

    def test_ping(self):
        self.db.ping()

    def test_insert_and_find_user(self):
        user_id = self.db.insert_user(make_user())
        found = self.db.find_user_by_email("ada@example.com")
        self.assertIsNotNone(found)
        self.assertEqual(found.id, user_id)
        self.assertEqual(found.password, "$2b$08$digest")
        self.assertIsNone(self.db.find_user_by_email("other@example.com"))

    def test_duplicate_email_rejected_by_constraint(self):
        self.db.insert_user(make_user())
        with self.assertRaises(DuplicateEmail):
            self.db.insert_user(make_user())

    def test_profiles_roundtrip_with_inline_image(self):
        first = self.db.insert_profile(
            make_profile(
                profile_image=StoredImage(content_type="image/png", data=b"\x89PNG")
            )
        )
        second = self.db.insert_profile(make_profile())

        profiles = {p.id: p for p in self.db.list_profiles()}
        self.assertEqual(set(profiles), {first, second})
        self.assertEqual(profiles[first].profile_image.data, b"\x89PNG")
        self.assertEqual(profiles[first].profile_image.content_type, "image/png")
        self.assertIsNone(profiles[first].cover_image)
        self.assertIsNone(profiles[second].profile_image)

    def test_profile_with_stored_path(self):
        self.db.insert_profile(
            make_profile(
                cover_image=StoredImage(content_type="image/jpeg", path="1.jpg")
            )
        )
        cover = self.db.list_profiles()[0].cover_image
        self.assertEqual(cover.path, "1.jpg")
        self.assertIsNone(cover.data)

    def test_unreachable_database_raises_storage_unavailable(self):
        with self.assertRaises(StorageUnavailable):
            SqlDbClient("sqlite+pysqlite:////nonexistent-dir/for/sure/db.sqlite")


class InMemoryDbClientTests(unittest.TestCase):
    def test_duplicate_email_rejected(self):
        db = InMemoryDbClient()
        db.insert_user(make_user())
        with self.assertRaises(DuplicateEmail):
            db.insert_user(make_user())

    def test_concurrent_inserts_admit_one_user(self):
        db = InMemoryDbClient()
        outcomes = []

        def register():
            try:
                db.insert_user(make_user())
                outcomes.append("ok")
            except DuplicateEmail:
                outcomes.append("duplicate")

        threads = [threading.Thread(target=register) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(outcomes.count("ok"), 1)
        self.assertEqual(len(db.users), 1)

    def test_lookup_waits_for_inflight_write(self):
        db = InMemoryDbClient()
        found = []
        reader = threading.Thread(
            target=lambda: found.append(db.find_user_by_email("ada@example.com"))
        )
        with db._lock:
            reader.start()
            reader.join(timeout=0.2)
            self.assertTrue(reader.is_alive())
            db.users["pending"] = make_user()
        reader.join()
        self.assertEqual(found[0].email, "ada@example.com")

    def test_lookups_alongside_inserts(self):
        db = InMemoryDbClient()
        errors = []

        def insert(index):
            db.insert_user(make_user(f"user{index}@example.com"))

        def lookup(index):
            try:
                db.find_user_by_email(f"user{index}@example.com")
            except RuntimeError as exc:
                errors.append(exc)

        threads = []
        for index in range(50):
            threads.append(threading.Thread(target=insert, args=(index,)))
            threads.append(threading.Thread(target=lookup, args=(index,)))
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(errors, [])
        self.assertEqual(len(db.users), 50)

    def test_reset(self):
        db = InMemoryDbClient()
        db.insert_user(make_user())
        db.insert_profile(make_profile())
        db.reset()
        self.assertEqual(db.users, {})
        self.assertEqual(db.list_profiles(), [])


if __name__ == "__main__":
    unittest.main()
