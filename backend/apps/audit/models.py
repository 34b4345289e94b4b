"""
AuditLog model - immutable record of profile changes.

Audit logs are append-only. No update or delete operations.
"""

import uuid
from django.db import models
from django.utils import timezone

IMMUTABLE_MESSAGE = "AuditLog entries are append-only. {} are not allowed."


class AuditAction(models.TextChoices):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class AuditLogQuerySet(models.QuerySet):
    """Blocks bulk mutation paths that bypass AuditLog.save/delete."""

    def update(self, **kwargs):
        raise ValueError(IMMUTABLE_MESSAGE.format("Updates"))

    def delete(self):
        raise ValueError(IMMUTABLE_MESSAGE.format("Deletions"))


class AuditLog(models.Model):
    """AuditLog model - immutable audit trail."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        "users.User",
        on_delete=models.PROTECT,
        related_name="audit_logs",
    )
    action = models.CharField(max_length=10, choices=AuditAction.choices)
    changes = models.JSONField(default=dict)
    changed_by = models.ForeignKey(
        "users.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_actions",
    )
    timestamp = models.DateTimeField(default=timezone.now)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=512, blank=True, default="")
    request_id = models.CharField(max_length=64, null=True, blank=True)

    objects = AuditLogQuerySet.as_manager()

    class Meta:
        db_table = "audit_logs"
        indexes = [
            models.Index(fields=["user", "timestamp"], name="idx_audit_user_ts"),
            models.Index(fields=["timestamp"], name="idx_audit_timestamp"),
            models.Index(fields=["changed_by"], name="idx_audit_changed_by"),
        ]
        ordering = ["-timestamp"]

    def __str__(self):
        return f"{self.action} - user:{self.user_id} at {self.timestamp}"

    def save(self, *args, **kwargs):
        """Override save to prevent updates."""
        if not self._state.adding:
            raise ValueError(IMMUTABLE_MESSAGE.format("Updates"))
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """Override delete to prevent deletion."""
        raise ValueError(IMMUTABLE_MESSAGE.format("Deletions"))
