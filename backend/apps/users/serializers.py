"""
Serializers for profile endpoints.

No business logic in serializers - validation and normalization only.
"""

from django.conf import settings
from django.core.files.storage import default_storage
from rest_framework import serializers

DEFAULT_PICTURE_MAX_BYTES = 5 * 1024 * 1024
DEFAULT_PICTURE_CONTENT_TYPES = ("image/jpeg", "image/png", "image/webp")


class ProfileSerializer(serializers.Serializer):
    """Read-only profile view for User rows and in-memory ProfileRecords."""

    id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(read_only=True)
    email = serializers.EmailField(read_only=True)
    bio = serializers.CharField(read_only=True)
    company = serializers.CharField(read_only=True)
    profilePicture = serializers.SerializerMethodField()
    isDeleted = serializers.BooleanField(source="is_deleted", read_only=True)
    lastProfileUpdate = serializers.DateTimeField(
        source="last_profile_update", read_only=True, allow_null=True
    )
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    def get_profilePicture(self, obj):
        """Servable URL of the stored picture (e.g. /uploads/profiles/...)."""
        if not obj.profile_picture:
            return None
        return default_storage.url(obj.profile_picture)


class ProfileUpdateSerializer(serializers.Serializer):
    """
    Validator for PUT /profile.

    Every field is optional; unknown keys are ignored. validated_data holds
    only the fields the client sent, keyed by stored attribute name.
    """

    name = serializers.CharField(min_length=2, max_length=50, required=False)
    email = serializers.EmailField(max_length=254, required=False)
    bio = serializers.CharField(max_length=500, allow_blank=True, required=False)
    company = serializers.CharField(max_length=100, allow_blank=True, required=False)
    profilePicture = serializers.FileField(
        source="profile_picture", required=False, allow_empty_file=False
    )

    def validate_email(self, value):
        return value.strip().lower()

    def validate_profilePicture(self, value):
        max_bytes = getattr(
            settings, "PROFILE_PICTURE_MAX_BYTES", DEFAULT_PICTURE_MAX_BYTES
        )
        allowed = getattr(
            settings, "PROFILE_PICTURE_CONTENT_TYPES", DEFAULT_PICTURE_CONTENT_TYPES
        )
        if getattr(value, "content_type", None) not in allowed:
            raise serializers.ValidationError(
                "Invalid file type. Only JPEG, PNG, and WebP are allowed."
            )
        if value.size > max_bytes:
            raise serializers.ValidationError(
                f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB."
            )
        return value
