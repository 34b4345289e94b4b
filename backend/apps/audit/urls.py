"""
URL routing for audit log endpoints.
"""

from django.urls import path
from apps.audit import views

app_name = "audit"

urlpatterns = [
    path("audit-logs", views.list_audit_logs, name="list-audit-logs"),
]
