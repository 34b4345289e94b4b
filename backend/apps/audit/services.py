"""
Audit service helpers - request provenance and audit log queries.
"""

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_ipv46_address

from apps.audit.recorders import Provenance, get_audit_recorder

MAX_USER_AGENT_LENGTH = 512


def client_ip(request):
    """
    Best-effort caller address.

    X-Forwarded-For is honoured only when TRUST_X_FORWARDED_FOR is enabled
    (i.e. the service sits behind a proxy that sets it), and only when its
    first hop is a valid IPv4/IPv6 address. Otherwise REMOTE_ADDR is used.
    """
    if getattr(settings, "TRUST_X_FORWARDED_FOR", False):
        forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
        first_hop = forwarded.split(",")[0].strip()
        if _is_ip_address(first_hop):
            return first_hop
    remote_addr = request.META.get("REMOTE_ADDR", "")
    return remote_addr if _is_ip_address(remote_addr) else None


def _is_ip_address(value):
    if not value:
        return False
    try:
        validate_ipv46_address(value)
    except DjangoValidationError:
        return False
    return True


def provenance_from_request(request):
    """Build the Provenance recorded alongside an audit entry."""
    user_agent = request.META.get("HTTP_USER_AGENT", "")
    return Provenance(
        ip_address=client_ip(request),
        user_agent=user_agent[:MAX_USER_AGENT_LENGTH],
        request_id=getattr(request, "request_id", None),
    )


def list_audit_logs(user_id, *, page, page_size, sort_field, sort_order):
    """Return one AuditLogPage of the user's audit trail."""
    return get_audit_recorder().list(
        user_id,
        page=page,
        page_size=page_size,
        sort_field=sort_field,
        sort_order=sort_order,
    )
