"""
Create an active profile from the command line.

Run: python manage.py create_profile "Ann Lee" ann@example.com --company Acme
"""

from django.core.management.base import BaseCommand, CommandError

from apps.users import services
from apps.users.serializers import ProfileUpdateSerializer
from profile_service.authentication import issue_token
from profile_service.exceptions import DomainError
from profile_service.validation import first_error_message


class Command(BaseCommand):
    help = "Create a user profile (records a CREATE audit entry)"

    def add_arguments(self, parser):
        parser.add_argument("name")
        parser.add_argument("email")
        parser.add_argument("--bio", default="")
        parser.add_argument("--company", default="")
        parser.add_argument(
            "--with-token",
            action="store_true",
            help="Also print an access token for the new user",
        )

    def handle(self, *args, **options):
        serializer = ProfileUpdateSerializer(
            data={
                "name": options["name"],
                "email": options["email"],
                "bio": options["bio"],
                "company": options["company"],
            }
        )
        if not serializer.is_valid():
            raise CommandError(first_error_message(serializer.errors))

        try:
            user = services.create_user(**serializer.validated_data)
        except DomainError as exc:
            raise CommandError(exc.message)

        self.stdout.write(self.style.SUCCESS(f"Created profile {user.id} <{user.email}>"))
        if options["with_token"]:
            self.stdout.write(str(issue_token(user)))
