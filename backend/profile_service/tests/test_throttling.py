from datetime import timedelta
from unittest import mock

from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIRequestFactory

from apps.users.models import User
from profile_service.exceptions import RateLimitedError
from profile_service.throttling import ProfileUpdateCooldown


class ProfileUpdateCooldownTests(TestCase):
    def setUp(self):
        self.now = timezone.now()
        self.user = User.objects.create(name="Ann", email="ann@example.com")

    def _set_last_update(self, value):
        User.objects.filter(pk=self.user.pk).update(last_profile_update=value)

    def test_never_updated_is_allowed(self):
        ProfileUpdateCooldown().check(self.user.id, now=self.now)

    def test_inside_window_raises_with_next_allowed(self):
        last = self.now - timedelta(minutes=2)
        self._set_last_update(last)

        throttle = ProfileUpdateCooldown()
        with self.assertRaises(RateLimitedError) as ctx:
            throttle.check(self.user.id, now=self.now)

        self.assertEqual(
            ctx.exception.message, "Please wait 5 minutes between profile updates"
        )
        self.assertEqual(
            ctx.exception.details,
            {"nextAllowedUpdate": (last + timedelta(minutes=5)).isoformat()},
        )
        self.assertEqual(ctx.exception.wait, 180)
        self.assertEqual(throttle.wait(), 180)

    def test_window_boundary_is_allowed(self):
        self._set_last_update(self.now - timedelta(minutes=5))
        self.assertIsNone(
            ProfileUpdateCooldown().next_allowed_update(self.user.id, now=self.now)
        )

    @override_settings(PROFILE_UPDATE_COOLDOWN=60)
    def test_window_comes_from_settings(self):
        self._set_last_update(self.now - timedelta(seconds=61))
        ProfileUpdateCooldown().check(self.user.id, now=self.now)

    def test_unknown_user_is_not_limited(self):
        User.objects.filter(pk=self.user.pk).delete()
        ProfileUpdateCooldown().check(self.user.id, now=self.now)


class CooldownThrottleScopeTests(TestCase):
    def setUp(self):
        self.factory = APIRequestFactory()
        self.user = User.objects.create(
            name="Ann",
            email="ann@example.com",
            last_profile_update=timezone.now() - timedelta(minutes=1),
        )

    def _request(self, method):
        request = getattr(self.factory, method)("/api/users/profile")
        request.user = self.user
        return request

    def test_put_inside_window_is_throttled(self):
        with self.assertRaises(RateLimitedError):
            ProfileUpdateCooldown().allow_request(self._request("put"), None)

    def test_other_methods_are_not_throttled(self):
        for method in ("get", "delete"):
            with self.subTest(method=method):
                self.assertTrue(
                    ProfileUpdateCooldown().allow_request(self._request(method), None)
                )


class CooldownFailOpenTests(SimpleTestCase):
    def test_lookup_failure_lets_request_through(self):
        store = mock.Mock()
        store.last_profile_update.side_effect = ConnectionError("db down")
        cooldown = ProfileUpdateCooldown(store=store, cooldown=timedelta(minutes=5))

        with self.assertLogs("profile_service.throttling", level="WARNING") as logs:
            cooldown.check("any-user")

        self.assertIn("profile_update_cooldown_lookup_failed", logs.output[0])
