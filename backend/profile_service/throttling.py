import logging
from datetime import timedelta

from django.conf import settings
from django.utils import timezone
from rest_framework.throttling import BaseThrottle

from apps.users.stores import get_profile_store
from profile_service.exceptions import RateLimitedError

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_SECONDS = 300


class ProfileUpdateCooldown(BaseThrottle):
    """
    One successful profile update per user per cooldown window.

    Applies to PUT only. Reads last_profile_update from the profile store.
    Lookup failures let the request through.
    """

    methods = ("PUT",)

    def __init__(self, store=None, cooldown=None):
        self.store = store
        if cooldown is None:
            cooldown = timedelta(
                seconds=getattr(
                    settings, "PROFILE_UPDATE_COOLDOWN", DEFAULT_COOLDOWN_SECONDS
                )
            )
        self.cooldown = cooldown
        self.wait_seconds = None

    def allow_request(self, request, view):
        if request.method not in self.methods:
            return True
        self.check(request.user.id)
        return True

    def wait(self):
        return self.wait_seconds

    def next_allowed_update(self, user_id, now=None):
        """Earliest time the user may update again, or None if allowed now."""
        store = self.store or get_profile_store()
        try:
            last_update = store.last_profile_update(user_id)
        except Exception:
            logger.warning(
                "profile_update_cooldown_lookup_failed",
                exc_info=True,
                extra={"operation": "CHECK_UPDATE_COOLDOWN", "entity_id": str(user_id)},
            )
            return None

        if last_update is None:
            return None

        now = now or timezone.now()
        next_allowed = last_update + self.cooldown
        if now < next_allowed:
            return next_allowed
        return None

    def check(self, user_id, now=None):
        """Raise RateLimitedError while the user is inside the cooldown window."""
        now = now or timezone.now()
        next_allowed = self.next_allowed_update(user_id, now=now)
        if next_allowed is None:
            self.wait_seconds = None
            return

        self.wait_seconds = (next_allowed - now).total_seconds()
        minutes = int(self.cooldown.total_seconds() // 60)
        raise RateLimitedError(
            f"Please wait {minutes} minutes between profile updates",
            next_allowed.isoformat(),
            wait=self.wait_seconds,
        )
