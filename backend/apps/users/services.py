"""
Profile services - all profile mutations flow through this layer.

Rules:
- Every mutation runs inside store.atomic()
- The audit entry is written in the same transaction as the profile change
- Views never touch the store or the ORM directly for writes
"""

from __future__ import annotations

import logging
import os
import uuid
from typing import Any, Dict, Optional

from django.core.files.storage import default_storage
from django.utils import timezone

from apps.audit.models import AuditAction
from apps.audit.recorders import get_audit_recorder
from apps.users.stores import get_profile_store

logger = logging.getLogger(__name__)

PROFILE_PICTURE_DIR = "profiles"


def create_user(
    *,
    name: str,
    email: str,
    bio: str = "",
    company: str = "",
    actor_id=None,
    provenance=None,
):
    """
    Create an active user and record a CREATE audit entry.

    Args:
        name: Display name
        email: Normalized email address
        bio: Optional biography
        company: Optional company name
        actor_id: User who performed the creation (defaults to the new user)
        provenance: Request metadata for the audit entry

    Returns:
        The created user record

    Raises:
        EmailConflictError: If an active user already holds the email
    """
    store = get_profile_store()
    recorder = get_audit_recorder()

    with store.atomic():
        user = store.create(name=name, email=email, bio=bio, company=company)
        changes = {
            "name": {"old": None, "new": user.name},
            "email": {"old": None, "new": user.email},
        }
        recorder.record(
            user_id=user.id,
            action=AuditAction.CREATE,
            changes=changes,
            actor_id=actor_id or user.id,
            provenance=provenance,
        )

    logger.info(
        "profile_created",
        extra={"operation": "CREATE_PROFILE", "entity_id": str(user.id)},
    )
    return user


def get_profile(user_id):
    """Return the active user or raise NotFoundError."""
    return get_profile_store().get_by_id(user_id)


def update_profile(
    user_id,
    updates: Dict[str, Any],
    *,
    picture: Optional[str] = None,
    actor_id=None,
    provenance=None,
):
    """
    Apply a validated partial update and record the diff.

    Args:
        user_id: Profile owner
        updates: Normalized fields keyed by stored attribute name
        picture: Storage path of a staged profile picture
        actor_id: User performing the change (defaults to the owner)
        provenance: Request metadata for the audit entry

    Returns:
        tuple: (updated user, changes)

    Raises:
        NotFoundError: If the user is absent or deleted
        EmailConflictError: If the new email belongs to another active user
        NoChangesError: If nothing would change
    """
    store = get_profile_store()
    recorder = get_audit_recorder()

    with store.atomic():
        user, changes = store.apply_update(user_id, updates, picture=picture)
        recorder.record(
            user_id=user.id,
            action=AuditAction.UPDATE,
            changes=changes,
            actor_id=actor_id or user.id,
            provenance=provenance,
        )

    logger.info(
        "profile_updated",
        extra={
            "operation": "UPDATE_PROFILE",
            "entity_id": str(user.id),
            "changed_fields": sorted(changes),
        },
    )
    return user, changes


def delete_profile(user_id, *, actor_id=None, provenance=None):
    """
    Soft-delete a user and record a DELETE audit entry.

    Raises:
        NotFoundError: If the user is absent or already deleted
    """
    store = get_profile_store()
    recorder = get_audit_recorder()

    with store.atomic():
        user = store.soft_delete(user_id)
        recorder.record(
            user_id=user.id,
            action=AuditAction.DELETE,
            changes={"isDeleted": {"old": False, "new": True}},
            actor_id=actor_id or user.id,
            provenance=provenance,
        )

    logger.info(
        "profile_deleted",
        extra={"operation": "DELETE_PROFILE", "entity_id": str(user.id)},
    )
    return user


def stage_profile_picture(upload) -> str:
    """
    Save an uploaded picture before the update transaction opens.

    Returns:
        str: Storage path to hand to update_profile
    """
    _, ext = os.path.splitext(upload.name or "")
    stamp = int(timezone.now().timestamp() * 1000)
    name = f"{PROFILE_PICTURE_DIR}/profile-{stamp}-{uuid.uuid4().hex[:9]}{ext.lower()}"
    return default_storage.save(name, upload)


def discard_staged_file(path: str) -> None:
    """
    Remove a staged upload after a failed update.

    Cleanup failures are logged, never raised.
    """
    try:
        default_storage.delete(path)
    except Exception:
        logger.exception(
            "staged_file_cleanup_failed",
            extra={"operation": "DISCARD_STAGED_FILE", "path": path},
        )
