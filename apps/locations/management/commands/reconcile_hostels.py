from django.core.management.base import BaseCommand

from apps.locations.reconcile import reconcile_order_hostels


class Command(BaseCommand):
    help = "Link orders without a hostel to the best-matching registered hostel (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--show-unresolved", action="store_true", help="List order numbers left unresolved")

    def handle(self, *args, **options):
        res = reconcile_order_hostels()
        self.stdout.write(
            self.style.SUCCESS(
                f"OK: {res.migrated} migrated, {res.not_found} not found, {res.errors} errors (of {res.total})"
            )
        )
        if options.get("show_unresolved"):
            for number in res.unresolved:
                self.stdout.write(f"  unresolved: {number}")
