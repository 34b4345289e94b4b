"""
User model for the Profile Audit Service.

Fields: id (UUID), name, email, bio, company, profile_picture, is_deleted,
last_profile_update, created_at, updated_at.
Email is unique among non-deleted users only; deleted accounts keep their row.
"""

import uuid
from django.core.validators import MinLengthValidator
from django.db import models


class UserManager(models.Manager):
    """Custom user manager."""

    def active(self):
        return self.filter(is_deleted=False)

    def create_user(self, name, email, bio="", company="", **extra_fields):
        from apps.users import services

        return services.create_user(
            name=name,
            email=email,
            bio=bio,
            company=company,
            **extra_fields,
        )


class User(models.Model):
    """Profile owner. Soft-deleted through is_deleted, never removed."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=50, validators=[MinLengthValidator(2)])
    email = models.EmailField(max_length=254)
    bio = models.CharField(max_length=500, blank=True, default="")
    company = models.CharField(max_length=100, blank=True, default="")
    profile_picture = models.CharField(max_length=255, null=True, blank=True)
    is_deleted = models.BooleanField(default=False)
    last_profile_update = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    class Meta:
        db_table = "users"
        constraints = [
            models.UniqueConstraint(
                fields=["email"],
                condition=models.Q(is_deleted=False),
                name="unique_active_email",
            )
        ]
        indexes = [
            models.Index(fields=["email", "is_deleted"], name="idx_users_email_deleted"),
            models.Index(fields=["-last_profile_update"], name="idx_users_last_update"),
        ]

    def __str__(self):
        return self.email

    # request.user compatibility for DRF permission checks
    @property
    def is_authenticated(self):
        return True

    @property
    def is_anonymous(self):
        return False

    @property
    def is_active(self):
        return not self.is_deleted
