"""
Permission classes for profile endpoints.

request.user is resolved by ProfileJWTAuthentication, which already rejects
deleted accounts; the checks here guard against any other authenticator.
"""

from rest_framework import permissions


class IsActiveProfile(permissions.BasePermission):
    """Allow authenticated, non-deleted users only."""

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        if getattr(request.user, "is_deleted", True):
            return False

        return True
