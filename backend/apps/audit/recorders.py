"""
Audit recorders - the only code that writes AuditLog entries.

record() runs inside the caller's open transaction (store.atomic()), so a
failed audit write rolls back the profile change with it.
"""

from __future__ import annotations

import dataclasses
import math
import uuid
from datetime import datetime
from functools import lru_cache
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.utils import timezone
from django.utils.module_loading import import_string

from apps.audit.models import AuditLog
from profile_service.memory import default_database

SORT_FIELDS = ("timestamp", "action")
SORT_ORDERS = ("asc", "desc")


@dataclasses.dataclass(frozen=True)
class Provenance:
    """Where a mutating request came from."""

    ip_address: Optional[str] = None
    user_agent: str = ""
    request_id: Optional[str] = None


@dataclasses.dataclass(frozen=True)
class AuditEntry:
    """In-memory counterpart of apps.audit.models.AuditLog."""

    user_id: uuid.UUID
    action: str
    changes: Dict[str, Any]
    changed_by_id: Optional[uuid.UUID]
    timestamp: datetime
    ip_address: Optional[str] = None
    user_agent: str = ""
    request_id: Optional[str] = None
    id: uuid.UUID = dataclasses.field(default_factory=uuid.uuid4)


@dataclasses.dataclass
class AuditLogPage:
    entries: List[Any]
    total_count: int
    page: int
    page_size: int

    @property
    def total_pages(self):
        return math.ceil(self.total_count / self.page_size) if self.page_size else 0

    @property
    def has_next(self):
        return self.page < self.total_pages

    @property
    def has_previous(self):
        return self.page > 1


def _check_query(page, page_size, sort_field, sort_order):
    if page < 1 or page_size < 1:
        raise ValueError("page and page_size must be positive")
    if sort_field not in SORT_FIELDS:
        raise ValueError(f"Unsupported sort field: {sort_field}")
    if sort_order not in SORT_ORDERS:
        raise ValueError(f"Unsupported sort order: {sort_order}")


class AuditRecorder:
    """Contract shared by all audit backends."""

    def record(self, user_id, action, changes, actor_id, provenance=None):
        raise NotImplementedError

    def list(self, user_id, page=1, page_size=10, sort_field="timestamp", sort_order="desc"):
        raise NotImplementedError


class DatabaseAuditRecorder(AuditRecorder):
    def record(self, user_id, action, changes, actor_id, provenance=None):
        """
        Create an audit log entry.

        Args:
            user_id: Affected user
            action: AuditAction value
            changes: Field name -> {"old", "new"}
            actor_id: User who made the change
            provenance: Provenance of the request (optional)

        Returns:
            AuditLog: Created audit log entry
        """
        provenance = provenance or Provenance()
        return AuditLog.objects.create(
            user_id=user_id,
            action=action,
            changes=changes,
            changed_by_id=actor_id,
            ip_address=provenance.ip_address,
            user_agent=provenance.user_agent,
            request_id=provenance.request_id,
        )

    def list(self, user_id, page=1, page_size=10, sort_field="timestamp", sort_order="desc"):
        _check_query(page, page_size, sort_field, sort_order)

        prefix = "-" if sort_order == "desc" else ""
        ordering = [f"{prefix}{sort_field}"]
        if sort_field != "timestamp":
            ordering.append("-timestamp")

        queryset = AuditLog.objects.filter(user_id=user_id).order_by(*ordering)
        offset = (page - 1) * page_size
        entries = list(queryset[offset:offset + page_size])
        return AuditLogPage(
            entries=entries,
            total_count=queryset.count(),
            page=page,
            page_size=page_size,
        )


class InMemoryAuditRecorder(AuditRecorder):
    """Append-only list held in the shared in-memory database."""

    TABLE = "audit_logs"

    def __init__(self, database=None):
        self.database = database or default_database

    @property
    def rows(self):
        return self.database.table(self.TABLE)

    def record(self, user_id, action, changes, actor_id, provenance=None):
        provenance = provenance or Provenance()
        entry = AuditEntry(
            user_id=user_id,
            action=str(action),
            changes=dict(changes),
            changed_by_id=actor_id,
            timestamp=timezone.now(),
            ip_address=provenance.ip_address,
            user_agent=provenance.user_agent,
            request_id=provenance.request_id,
        )
        with self.database.atomic():
            self.rows[entry.id] = entry
        return entry

    def list(self, user_id, page=1, page_size=10, sort_field="timestamp", sort_order="desc"):
        _check_query(page, page_size, sort_field, sort_order)

        with self.database.read():
            entries = [e for e in self.rows.values() if str(e.user_id) == str(user_id)]

        # Stable sorts: newest first as the tie-breaker, then the requested key.
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        if sort_field != "timestamp":
            entries.sort(key=lambda e: getattr(e, sort_field), reverse=sort_order == "desc")
        elif sort_order == "asc":
            entries.reverse()

        offset = (page - 1) * page_size
        return AuditLogPage(
            entries=entries[offset:offset + page_size],
            total_count=len(entries),
            page=page,
            page_size=page_size,
        )


@lru_cache(maxsize=None)
def _load(path):
    return import_string(path)()


def get_audit_recorder() -> AuditRecorder:
    """Return the recorder configured by settings.AUDIT_RECORDER."""
    return _load(settings.AUDIT_RECORDER)
