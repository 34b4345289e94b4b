"""
API tests for apps.audit.views.

Covers GET /api/users/audit-logs: pagination, sorting, query validation,
scoping to the caller and authentication.
"""

from datetime import timedelta

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.audit.models import AuditAction, AuditLog
from apps.users.models import User
from profile_service.authentication import issue_token


class AuditLogViewTests(APITestCase):
    def setUp(self):
        self.user = User.objects.create(name="Ann", email="ann@example.com")
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(self.user)}")
        self.url = reverse("audit:list-audit-logs")
        self.base = timezone.now() - timedelta(days=1)

    def _entries(self, count, user=None, action=AuditAction.UPDATE):
        user = user or self.user
        return [
            AuditLog.objects.create(
                user=user,
                action=action,
                changes={"bio": {"old": str(i), "new": str(i + 1)}},
                changed_by=user,
                timestamp=self.base + timedelta(minutes=i),
            )
            for i in range(count)
        ]

    def test_default_page_is_newest_first(self):
        entries = self._entries(3)
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        body = response.json()
        self.assertTrue(body["success"])
        ids = [log["id"] for log in body["data"]["auditLogs"]]
        self.assertEqual(ids, [str(e.id) for e in reversed(entries)])
        self.assertEqual(
            body["data"]["pagination"],
            {
                "currentPage": 1,
                "totalPages": 1,
                "totalCount": 3,
                "hasNextPage": False,
                "hasPrevPage": False,
            },
        )

    def test_entry_fields(self):
        self._entries(1)
        log = self.client.get(self.url).json()["data"]["auditLogs"][0]
        self.assertEqual(log["userId"], str(self.user.id))
        self.assertEqual(log["changedBy"], str(self.user.id))
        self.assertEqual(log["action"], "UPDATE")
        self.assertEqual(log["changes"], {"bio": {"old": "0", "new": "1"}})
        self.assertIn("timestamp", log)

    def test_last_partial_page(self):
        self._entries(25)
        response = self.client.get(self.url, {"page": 3, "limit": 10})
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        data = response.json()["data"]
        self.assertEqual(len(data["auditLogs"]), 5)
        self.assertEqual(data["pagination"]["totalPages"], 3)
        self.assertEqual(data["pagination"]["totalCount"], 25)
        self.assertFalse(data["pagination"]["hasNextPage"])
        self.assertTrue(data["pagination"]["hasPrevPage"])

    def test_page_past_the_end_is_empty(self):
        self._entries(5)
        data = self.client.get(self.url, {"page": 4, "limit": 2}).json()["data"]
        self.assertEqual(data["auditLogs"], [])
        self.assertEqual(data["pagination"]["totalCount"], 5)
        self.assertFalse(data["pagination"]["hasNextPage"])

    def test_sort_by_timestamp_ascending(self):
        entries = self._entries(3)
        data = self.client.get(self.url, {"sortOrder": "asc"}).json()["data"]
        self.assertEqual(
            [log["id"] for log in data["auditLogs"]], [str(e.id) for e in entries]
        )

    def test_sort_by_action_breaks_ties_newest_first(self):
        updates = self._entries(2)
        create = AuditLog.objects.create(
            user=self.user,
            action=AuditAction.CREATE,
            changes={"name": {"old": None, "new": "Ann"}},
            changed_by=self.user,
            timestamp=self.base - timedelta(days=1),
        )
        data = self.client.get(
            self.url, {"sortBy": "action", "sortOrder": "asc"}
        ).json()["data"]
        self.assertEqual(
            [log["id"] for log in data["auditLogs"]],
            [str(create.id), str(updates[1].id), str(updates[0].id)],
        )

    def test_only_callers_entries_are_listed(self):
        other = User.objects.create(name="Bob", email="bob@example.com")
        self._entries(2, user=other)
        self._entries(1)
        data = self.client.get(self.url).json()["data"]
        self.assertEqual(data["pagination"]["totalCount"], 1)
        self.assertEqual(data["auditLogs"][0]["userId"], str(self.user.id))

    def test_invalid_query_is_400(self):
        for query in (
            {"page": 0},
            {"limit": 0},
            {"limit": 101},
            {"page": "two"},
            {"sortBy": "ipAddress"},
            {"sortOrder": "sideways"},
        ):
            with self.subTest(query=query):
                response = self.client.get(self.url, query)
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                body = response.json()
                self.assertFalse(body["success"])
                self.assertTrue(body["message"].startswith("Validation error:"))

    def test_requires_token(self):
        self.client.credentials()
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_mutations_append_to_the_trail(self):
        profile_url = reverse("users:profile")
        self.client.put(profile_url, {"company": "Acme"}, format="json")
        data = self.client.get(self.url).json()["data"]
        self.assertEqual(data["pagination"]["totalCount"], 1)
        self.assertEqual(
            data["auditLogs"][0]["changes"], {"company": {"old": "", "new": "Acme"}}
        )
