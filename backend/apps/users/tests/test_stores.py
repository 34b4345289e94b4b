"""
Profile store contract tests.

The same cases run against the ORM-backed store and the in-memory store.
"""

import threading
import uuid

from django.db import IntegrityError
from django.test import SimpleTestCase, TestCase, TransactionTestCase

from apps.users.models import User
from apps.users.stores import (
    DatabaseProfileStore,
    InMemoryProfileStore,
    compute_changes,
)
from profile_service.exceptions import (
    EmailConflictError,
    NoChangesError,
    NotFoundError,
)
from profile_service.memory import InMemoryDatabase


class ProfileStoreContract:
    """Mixin: subclasses provide make_store()."""

    def make_store(self):
        raise NotImplementedError

    def setUp(self):
        self.store = self.make_store()
        self.ann = self.store.create(name="Ann", email="ann@example.com")

    def update(self, user_id, updates, picture=None):
        with self.store.atomic():
            return self.store.apply_update(user_id, updates, picture=picture)

    def delete(self, user_id):
        with self.store.atomic():
            return self.store.soft_delete(user_id)

    def test_get_by_id_returns_active_user(self):
        user = self.store.get_by_id(self.ann.id)
        self.assertEqual(user.email, "ann@example.com")

    def test_get_by_id_accepts_string_ids(self):
        self.assertEqual(self.store.get_by_id(str(self.ann.id)).id, self.ann.id)

    def test_get_by_id_unknown_or_malformed(self):
        with self.assertRaises(NotFoundError):
            self.store.get_by_id(uuid.uuid4())
        with self.assertRaises(NotFoundError):
            self.store.get_by_id("42")

    def test_apply_update_returns_exact_diff(self):
        user, changes = self.update(
            self.ann.id, {"name": "Anna", "email": "ann@x.com", "bio": ""}
        )
        self.assertEqual(
            changes,
            {
                "name": {"old": "Ann", "new": "Anna"},
                "email": {"old": "ann@example.com", "new": "ann@x.com"},
            },
        )
        self.assertEqual(user.name, "Anna")
        self.assertIsNotNone(user.last_profile_update)
        self.assertEqual(self.store.get_by_id(self.ann.id).email, "ann@x.com")

    def test_apply_update_includes_new_picture(self):
        _, changes = self.update(self.ann.id, {}, picture="profiles/p.png")
        self.assertEqual(
            changes, {"profilePicture": {"old": None, "new": "profiles/p.png"}}
        )

    def test_apply_update_identical_values_is_no_changes(self):
        with self.assertRaises(NoChangesError):
            self.update(self.ann.id, {"name": "Ann", "email": "ann@example.com"})
        self.assertIsNone(self.store.last_profile_update(self.ann.id))

    def test_apply_update_email_conflict(self):
        self.store.create(name="Bob", email="bob@example.com")
        with self.assertRaises(EmailConflictError):
            self.update(self.ann.id, {"email": "bob@example.com"})
        self.assertEqual(self.store.get_by_id(self.ann.id).email, "ann@example.com")

    def test_apply_update_keeping_own_email_is_not_a_conflict(self):
        _, changes = self.update(
            self.ann.id, {"email": "ann@example.com", "company": "Acme"}
        )
        self.assertEqual(list(changes), ["company"])

    def test_apply_update_on_deleted_user_is_not_found(self):
        self.delete(self.ann.id)
        with self.assertRaises(NotFoundError):
            self.update(self.ann.id, {"name": "Anna"})

    def test_soft_delete_is_one_shot(self):
        deleted = self.delete(self.ann.id)
        self.assertTrue(deleted.is_deleted)
        with self.assertRaises(NotFoundError):
            self.delete(self.ann.id)
        with self.assertRaises(NotFoundError):
            self.store.get_by_id(self.ann.id)

    def test_soft_delete_unknown_user(self):
        with self.assertRaises(NotFoundError):
            self.delete(uuid.uuid4())

    def test_deleted_users_email_is_reusable(self):
        self.delete(self.ann.id)
        bob = self.store.create(name="Bob", email="bob@example.com")
        _, changes = self.update(bob.id, {"email": "ann@example.com"})
        self.assertEqual(changes["email"]["new"], "ann@example.com")
        newcomer = self.store.create(name="Ann Two", email="ann2@example.com")
        self.assertFalse(newcomer.is_deleted)

    def test_create_rejects_active_duplicate(self):
        with self.assertRaises(EmailConflictError):
            self.store.create(name="Other", email="ann@example.com")

    def test_failed_transaction_leaves_record_untouched(self):
        with self.assertRaises(RuntimeError):
            with self.store.atomic():
                self.store.apply_update(self.ann.id, {"name": "Anna"})
                raise RuntimeError("audit write failed")
        user = self.store.get_by_id(self.ann.id)
        self.assertEqual(user.name, "Ann")
        self.assertIsNone(user.last_profile_update)


class DatabaseProfileStoreTests(ProfileStoreContract, TestCase):
    def make_store(self):
        return DatabaseProfileStore()

    def test_records_are_user_rows(self):
        self.assertIsInstance(self.store.get_by_id(self.ann.id), User)


class InMemoryProfileStoreTests(ProfileStoreContract, TestCase):
    def make_store(self):
        return InMemoryProfileStore(database=InMemoryDatabase())

    def test_returned_records_are_copies(self):
        user = self.store.get_by_id(self.ann.id)
        user.name = "Mallory"
        self.assertEqual(self.store.get_by_id(self.ann.id).name, "Ann")

    def test_concurrent_same_email_updates_only_one_wins(self):
        users = [
            self.store.create(name=f"User {i}", email=f"user{i}@example.com")
            for i in range(8)
        ]
        outcomes = []
        barrier = threading.Barrier(len(users))

        def claim(user_id):
            barrier.wait()
            try:
                self.update(user_id, {"email": "claimed@example.com"})
                outcomes.append("ok")
            except EmailConflictError:
                outcomes.append("conflict")

        threads = [threading.Thread(target=claim, args=(u.id,)) for u in users]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(outcomes.count("ok"), 1)
        self.assertEqual(outcomes.count("conflict"), len(users) - 1)


class ComputeChangesTests(SimpleTestCase):
    def test_only_supplied_and_different_fields(self):
        current = User(name="Ann", email="a@x.com", bio="", company="Acme")
        changes = compute_changes(current, {"name": "Ann", "company": "Initech"})
        self.assertEqual(changes, {"company": {"old": "Acme", "new": "Initech"}})

    def test_empty_update_is_empty_diff(self):
        current = User(name="Ann", email="a@x.com")
        self.assertEqual(compute_changes(current, {}), {})


class DatabaseUniqueConstraintTests(TransactionTestCase):
    def test_partial_unique_index_blocks_second_active_email(self):
        User.objects.create(name="Ann", email="dup@example.com")
        User.objects.create(name="Old", email="dup@example.com", is_deleted=True)
        with self.assertRaises(IntegrityError):
            User.objects.create(name="Bob", email="dup@example.com")
