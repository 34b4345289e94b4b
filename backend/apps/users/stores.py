"""
Profile stores - the only code that writes User records.

Two backends implement the same contract:
- DatabaseProfileStore: Django ORM with row locks (Postgres in production)
- InMemoryProfileStore: process-local map for tests and demos

The active backend is chosen by settings.PROFILE_STORE.
"""

from __future__ import annotations

import dataclasses
import uuid
from datetime import datetime
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone
from django.utils.module_loading import import_string

from profile_service.exceptions import (
    EmailConflictError,
    NoChangesError,
    NotFoundError,
)
from profile_service.memory import default_database

# API field name -> stored attribute
PROFILE_FIELDS = {
    "name": "name",
    "email": "email",
    "bio": "bio",
    "company": "company",
    "profilePicture": "profile_picture",
}

Changes = Dict[str, Dict[str, Any]]


def compute_changes(current, updates: Dict[str, Any], picture: Optional[str] = None) -> Changes:
    """
    Diff proposed values against the current record.

    Args:
        current: Record exposing the stored attributes
        updates: Partial update keyed by stored attribute name
        picture: Newly staged picture path, if any

    Returns:
        dict: API field name -> {"old": ..., "new": ...} for changed fields only
    """
    proposed = dict(updates)
    if picture is not None:
        proposed["profile_picture"] = picture

    changes = {}
    for field, attr in PROFILE_FIELDS.items():
        if attr not in proposed:
            continue
        old_value = getattr(current, attr)
        new_value = proposed[attr]
        if new_value != old_value:
            changes[field] = {"old": old_value, "new": new_value}
    return changes


def _parse_id(user_id):
    if isinstance(user_id, uuid.UUID):
        return user_id
    try:
        return uuid.UUID(str(user_id))
    except (TypeError, ValueError):
        raise NotFoundError()


class ProfileStore:
    """Contract shared by all profile storage backends."""

    def atomic(self):
        """Context manager for one transaction, shared with the audit recorder."""
        raise NotImplementedError

    def get_by_id(self, user_id):
        raise NotImplementedError

    def last_profile_update(self, user_id) -> Optional[datetime]:
        raise NotImplementedError

    def create(self, name, email, bio="", company=""):
        raise NotImplementedError

    def apply_update(self, user_id, updates, picture=None) -> Tuple[Any, Changes]:
        raise NotImplementedError

    def soft_delete(self, user_id):
        raise NotImplementedError


class DatabaseProfileStore(ProfileStore):
    """ORM-backed store. apply_update and soft_delete lock the user row."""

    def __init__(self):
        from apps.users.models import User

        self.model = User

    def atomic(self):
        return transaction.atomic()

    def get_by_id(self, user_id):
        try:
            return self.model.objects.active().get(id=_parse_id(user_id))
        except self.model.DoesNotExist:
            raise NotFoundError()

    def last_profile_update(self, user_id):
        return (
            self.model.objects.filter(id=_parse_id(user_id))
            .values_list("last_profile_update", flat=True)
            .first()
        )

    def create(self, name, email, bio="", company=""):
        with transaction.atomic():
            if self.model.objects.active().filter(email=email).exists():
                raise EmailConflictError()
            try:
                with transaction.atomic():
                    return self.model.objects.create(
                        name=name, email=email, bio=bio, company=company
                    )
            except IntegrityError:
                raise EmailConflictError()

    def apply_update(self, user_id, updates, picture=None):
        try:
            user = self.model.objects.select_for_update().get(id=_parse_id(user_id))
        except self.model.DoesNotExist:
            raise NotFoundError()

        if user.is_deleted:
            raise NotFoundError()

        new_email = updates.get("email")
        if new_email is not None and new_email != user.email:
            taken = (
                self.model.objects.active()
                .filter(email=new_email)
                .exclude(id=user.id)
                .exists()
            )
            if taken:
                raise EmailConflictError()

        changes = compute_changes(user, updates, picture)
        if not changes:
            raise NoChangesError()

        for attr, value in updates.items():
            setattr(user, attr, value)
        if picture is not None:
            user.profile_picture = picture
        user.last_profile_update = timezone.now()

        try:
            # Savepoint: a concurrent insert can still trip the partial unique index
            with transaction.atomic():
                user.save()
        except IntegrityError:
            raise EmailConflictError()

        return user, changes

    def soft_delete(self, user_id):
        try:
            user = self.model.objects.select_for_update().get(id=_parse_id(user_id))
        except self.model.DoesNotExist:
            raise NotFoundError()

        if user.is_deleted:
            raise NotFoundError()

        user.is_deleted = True
        user.save(update_fields=["is_deleted", "updated_at"])
        return user


@dataclasses.dataclass
class ProfileRecord:
    """In-memory counterpart of apps.users.models.User."""

    name: str
    email: str
    bio: str = ""
    company: str = ""
    profile_picture: Optional[str] = None
    is_deleted: bool = False
    last_profile_update: Optional[datetime] = None
    id: uuid.UUID = dataclasses.field(default_factory=uuid.uuid4)
    created_at: datetime = dataclasses.field(default_factory=timezone.now)
    updated_at: datetime = dataclasses.field(default_factory=timezone.now)

    is_authenticated = True
    is_anonymous = False

    @property
    def is_active(self):
        return not self.is_deleted


class InMemoryProfileStore(ProfileStore):
    """Map of ProfileRecord keyed by id, guarded by the shared database lock."""

    TABLE = "users"

    def __init__(self, database=None):
        self.database = database or default_database

    @property
    def rows(self):
        return self.database.table(self.TABLE)

    def atomic(self):
        return self.database.atomic()

    def _get_active(self, user_id):
        record = self.rows.get(_parse_id(user_id))
        if record is None or record.is_deleted:
            raise NotFoundError()
        return record

    def _email_taken(self, email, exclude_id=None):
        return any(
            r.email == email and not r.is_deleted and r.id != exclude_id
            for r in self.rows.values()
        )

    def get_by_id(self, user_id):
        with self.database.read():
            return dataclasses.replace(self._get_active(user_id))

    def last_profile_update(self, user_id):
        with self.database.read():
            record = self.rows.get(_parse_id(user_id))
            return record.last_profile_update if record else None

    def create(self, name, email, bio="", company=""):
        with self.database.atomic():
            if self._email_taken(email):
                raise EmailConflictError()
            record = ProfileRecord(name=name, email=email, bio=bio, company=company)
            self.rows[record.id] = record
            return dataclasses.replace(record)

    def apply_update(self, user_id, updates, picture=None):
        with self.database.atomic():
            current = self._get_active(user_id)

            new_email = updates.get("email")
            if new_email is not None and new_email != current.email:
                if self._email_taken(new_email, exclude_id=current.id):
                    raise EmailConflictError()

            changes = compute_changes(current, updates, picture)
            if not changes:
                raise NoChangesError()

            now = timezone.now()
            fields = dict(updates, last_profile_update=now, updated_at=now)
            if picture is not None:
                fields["profile_picture"] = picture
            updated = dataclasses.replace(current, **fields)
            self.rows[updated.id] = updated
            return dataclasses.replace(updated), changes

    def soft_delete(self, user_id):
        with self.database.atomic():
            record = self._get_active(user_id)
            deleted = dataclasses.replace(
                record, is_deleted=True, updated_at=timezone.now()
            )
            self.rows[deleted.id] = deleted
            return dataclasses.replace(deleted)


@lru_cache(maxsize=None)
def _load(path):
    return import_string(path)()


def get_profile_store() -> ProfileStore:
    """Return the store configured by settings.PROFILE_STORE."""
    return _load(settings.PROFILE_STORE)
