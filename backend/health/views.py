import logging

from django.core.cache import caches
from django.core.files.storage import default_storage
from django.db import connection
from django.db.migrations.executor import MigrationExecutor
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.audit.models import AuditLog

logger = logging.getLogger(__name__)


def check_database():
    with connection.cursor() as cursor:
        cursor.execute("SELECT 1;")
    return "ok"


def check_migrations():
    executor = MigrationExecutor(connection)
    plan = executor.migration_plan(executor.loader.graph.leaf_nodes())
    return "pending" if plan else "ok"


def check_cache():
    cache = caches["default"]
    cache.set("health_check", "ok", timeout=5)
    return "ok" if cache.get("health_check") == "ok" else "error"


def check_audit_table():
    AuditLog.objects.exists()
    return "ok"


def check_media_storage():
    default_storage.exists("profiles")
    return "ok"


READINESS_CHECKS = {
    "database": check_database,
    "migrations": check_migrations,
    "cache": check_cache,
    "audit_table": check_audit_table,
    "media_storage": check_media_storage,
}


class LiveView(APIView):
    """Liveness probe: process is running. No DB or external deps."""

    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request):
        return Response(
            {
                "success": True,
                "message": "Server is healthy",
                "timestamp": timezone.now().isoformat(),
            }
        )


class ReadyView(APIView):
    """Readiness probe: 503 until every dependency answers."""

    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request):
        checks = {}
        for name, check in READINESS_CHECKS.items():
            try:
                checks[name] = check()
            except Exception:
                logger.warning(
                    "readiness_check_failed",
                    exc_info=True,
                    extra={"operation": "READINESS_CHECK", "check": name},
                )
                checks[name] = "error"

        ready = all(result == "ok" for result in checks.values())
        return Response(
            {
                "success": ready,
                "status": "ready" if ready else "not_ready",
                "checks": checks,
            },
            status=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        )
