"""
Serializers for audit log entries and audit log queries.
"""

from rest_framework import serializers

from apps.audit.recorders import SORT_FIELDS, SORT_ORDERS

MAX_PAGE_SIZE = 100


class AuditLogSerializer(serializers.Serializer):
    """Serializer for AuditLog rows and in-memory AuditEntry records."""

    id = serializers.UUIDField(read_only=True)
    userId = serializers.UUIDField(source="user_id", read_only=True)
    action = serializers.CharField(read_only=True)
    changes = serializers.JSONField(read_only=True)
    changedBy = serializers.UUIDField(
        source="changed_by_id", read_only=True, allow_null=True
    )
    timestamp = serializers.DateTimeField(read_only=True)
    ipAddress = serializers.CharField(
        source="ip_address", read_only=True, allow_null=True
    )
    userAgent = serializers.CharField(source="user_agent", read_only=True)
    requestId = serializers.CharField(
        source="request_id", read_only=True, allow_null=True
    )


class AuditLogQuerySerializer(serializers.Serializer):
    """Query parameters for GET /audit-logs."""

    page = serializers.IntegerField(min_value=1, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=MAX_PAGE_SIZE, default=10)
    sortBy = serializers.ChoiceField(choices=SORT_FIELDS, default="timestamp")
    sortOrder = serializers.ChoiceField(choices=SORT_ORDERS, default="desc")


def pagination_payload(page):
    """Pagination block of the audit log response."""
    return {
        "currentPage": page.page,
        "totalPages": page.total_pages,
        "totalCount": page.total_count,
        "hasNextPage": page.has_next,
        "hasPrevPage": page.has_previous,
    }
