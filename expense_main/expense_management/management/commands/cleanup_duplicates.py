from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from expense_management.duplicates import cleanup_duplicates

User = get_user_model()


class Command(BaseCommand):
    help = "Remove duplicate transactions, keeping the oldest row of each group."

    def add_arguments(self, parser):
        parser.add_argument("--user", help="Only clean this username.")
        parser.add_argument("--dry-run", action="store_true", help="Report duplicates without deleting.")

    def handle(self, *args, **options):
        user = None
        if options["user"]:
            try:
                user = User.objects.get(username=options["user"])
            except User.DoesNotExist:
                raise CommandError(f"Unknown user {options['user']!r}")

        groups, deleted = cleanup_duplicates(user=user, dry_run=options["dry_run"])

        if not groups:
            self.stdout.write(self.style.SUCCESS("No duplicate transactions found."))
            return

        for g in groups:
            self.stdout.write(
                f"user={g['user_id']} {g['date']} {g['type']} {g['amount']} "
                f"{g['description']!r}: {g['count']} rows"
            )

        if options["dry_run"]:
            self.stdout.write(f"{len(groups)} duplicate group(s) found (dry run).")
        else:
            self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} duplicate transaction(s)."))
