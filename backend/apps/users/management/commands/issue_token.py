"""
Print a bearer token for an active user.

Run: python manage.py issue_token ann@example.com
"""

from django.core.management.base import BaseCommand, CommandError

from apps.users.models import User
from profile_service.authentication import issue_token


class Command(BaseCommand):
    help = "Issue a JWT access token for an active user"

    def add_arguments(self, parser):
        parser.add_argument("email")

    def handle(self, *args, **options):
        email = options["email"].strip().lower()
        try:
            user = User.objects.active().get(email=email)
        except User.DoesNotExist:
            raise CommandError(f"No active user with email {email}")

        self.stdout.write(str(issue_token(user)))
