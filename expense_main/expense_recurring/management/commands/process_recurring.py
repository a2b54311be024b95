from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from expense_core.errors import ValidationError
from expense_core.validators import parse_date
from expense_recurring.materializer import process_recurring

User = get_user_model()


class Command(BaseCommand):
    help = "Materialize recurring transactions due on a date (default: today) for every active user."

    def add_arguments(self, parser):
        parser.add_argument("--date", help="Process as of this date (YYYY-MM-DD).")
        parser.add_argument("--user", help="Only process this username.")

    def handle(self, *args, **options):
        as_of = None
        if options["date"]:
            try:
                as_of = parse_date(options["date"])
            except ValidationError as e:
                raise CommandError(e.message)

        users = User.objects.filter(is_active=True)
        if options["user"]:
            users = users.filter(username=options["user"])
            if not users.exists():
                raise CommandError(f"Unknown user {options['user']!r}")

        total_processed = total_created = 0
        for user in users.order_by("id"):
            result = process_recurring(user, as_of=as_of)
            total_processed += result.processed_count
            total_created += result.created_count

        self.stdout.write(self.style.SUCCESS(
            f"Processed {total_processed} recurring definition(s), created {total_created} transaction(s)."
        ))
