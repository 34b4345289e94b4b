"""
Bearer-token authentication against the profile store.

Every failure mode (bad header, bad signature, expiry, unknown or deleted
user) surfaces as the same AuthenticationFailed so callers cannot probe
which accounts exist.
"""

import logging

from rest_framework import exceptions
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

from apps.users.stores import get_profile_store
from profile_service.exceptions import UNAUTHENTICATED_MESSAGE, NotFoundError

logger = logging.getLogger(__name__)


class ProfileJWTAuthentication(JWTAuthentication):
    """Resolves the token's user id claim through the configured ProfileStore."""

    def authenticate(self, request):
        try:
            return super().authenticate(request)
        except (InvalidToken, TokenError, exceptions.AuthenticationFailed) as exc:
            logger.info(
                "authentication_rejected",
                extra={"operation": "AUTHENTICATE", "reason": type(exc).__name__},
            )
            raise exceptions.AuthenticationFailed(UNAUTHENTICATED_MESSAGE)

    def get_user(self, validated_token):
        try:
            user_id = validated_token[api_settings.USER_ID_CLAIM]
        except KeyError:
            raise InvalidToken("Token contained no recognizable user identification")

        try:
            return get_profile_store().get_by_id(user_id)
        except NotFoundError:
            raise exceptions.AuthenticationFailed(UNAUTHENTICATED_MESSAGE)


def issue_token(user):
    """
    Build an access token for a user.

    The token carries the user id under the configured claim plus the email,
    matching what ProfileJWTAuthentication expects to read back.
    """
    token = AccessToken()
    token[api_settings.USER_ID_CLAIM] = str(user.id)
    token["email"] = user.email
    return token
