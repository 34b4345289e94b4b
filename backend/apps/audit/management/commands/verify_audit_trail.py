"""
Audit trail verification command.

Cross-checks user state against the audit log and reports gaps.
Run: python manage.py verify_audit_trail
"""

from django.core.management.base import BaseCommand, CommandError
from django.db.models import Exists, OuterRef

from apps.audit.models import AuditAction, AuditLog
from apps.users.models import User


class Command(BaseCommand):
    help = "Verify every profile mutation has a matching audit entry"

    def handle(self, *args, **options):
        self.stdout.write("Starting audit trail verification...")

        errors = []

        # Check 1: updated profiles have at least one UPDATE entry
        self.stdout.write("\n[1] Checking profile updates...")
        missing_updates = User.objects.filter(last_profile_update__isnull=False).exclude(
            Exists(
                AuditLog.objects.filter(
                    user_id=OuterRef("pk"), action=AuditAction.UPDATE
                )
            )
        )
        if missing_updates.exists():
            errors.append(
                f"Found {missing_updates.count()} updated users without UPDATE entries"
            )
            for user in missing_updates[:10]:
                self.stdout.write(self.style.ERROR(f"  User {user.id}"))
        else:
            self.stdout.write(self.style.SUCCESS("  ✓ All updates audited"))

        # Check 2: deleted profiles have a DELETE entry
        self.stdout.write("\n[2] Checking soft deletes...")
        missing_deletes = User.objects.filter(is_deleted=True).exclude(
            Exists(
                AuditLog.objects.filter(
                    user_id=OuterRef("pk"), action=AuditAction.DELETE
                )
            )
        )
        if missing_deletes.exists():
            errors.append(
                f"Found {missing_deletes.count()} deleted users without DELETE entries"
            )
            for user in missing_deletes[:10]:
                self.stdout.write(self.style.ERROR(f"  User {user.id}"))
        else:
            self.stdout.write(self.style.SUCCESS("  ✓ All deletes audited"))

        # Check 3: no empty diffs
        self.stdout.write("\n[3] Checking for empty change sets...")
        empty = AuditLog.objects.filter(changes={})
        if empty.exists():
            errors.append(f"Found {empty.count()} audit entries with no changes")
        else:
            self.stdout.write(self.style.SUCCESS("  ✓ No empty change sets"))

        if errors:
            for error in errors:
                self.stderr.write(self.style.ERROR(error))
            raise CommandError("Audit trail verification failed")

        self.stdout.write(self.style.SUCCESS("\nAudit trail verified"))
