"""
Audit log views - list the caller's audit trail.

Read-only - audit logs are append-only.
"""

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.audit import services
from apps.audit.serializers import (
    AuditLogQuerySerializer,
    AuditLogSerializer,
    pagination_payload,
)
from profile_service.exceptions import ValidationError
from profile_service.permissions import IsActiveProfile
from profile_service.validation import first_error_message


@api_view(["GET"])
@permission_classes([IsActiveProfile])
def list_audit_logs(request):
    """
    GET /api/users/audit-logs?page&limit&sortBy&sortOrder

    Page through the authenticated user's audit trail.
    """
    query = AuditLogQuerySerializer(data=request.query_params)
    if not query.is_valid():
        raise ValidationError(
            f"Validation error: {first_error_message(query.errors)}",
            {"errors": query.errors},
        )

    params = query.validated_data
    page = services.list_audit_logs(
        request.user.id,
        page=params["page"],
        page_size=params["limit"],
        sort_field=params["sortBy"],
        sort_order=params["sortOrder"],
    )

    return Response(
        {
            "success": True,
            "data": {
                "auditLogs": AuditLogSerializer(page.entries, many=True).data,
                "pagination": pagination_payload(page),
            },
        },
        status=status.HTTP_200_OK,
    )
