from django.core.management.base import BaseCommand

from apps.locations.models import Hostel
from apps.locations.reconcile import analyze_hostel_data, suggest_mappings


class Command(BaseCommand):
    help = "Match distinct order delivery locations against the hostel registry and report the result."

    def add_arguments(self, parser):
        parser.add_argument(
            "--create-mappings",
            action="store_true",
            help="Persist matches as exact/partial delivery-location mappings",
        )

    def handle(self, *args, **options):
        for hostel in Hostel.objects.order_by("name"):
            self.stdout.write(f"hostel: {hostel.name!r} | address: {hostel.address!r}")

        res = suggest_mappings(persist=options.get("create_mappings", False))
        for m in res["matched"]:
            self.stdout.write(f"{m['delivery_location']!r} → {m['hostel_name']!r} ({m['match_type']})")
        for loc in res["unmatched"]:
            self.stdout.write(self.style.WARNING(f"{loc!r} → no match, needs a manual mapping"))

        total = len(res["matched"]) + len(res["unmatched"])
        if total:
            pct = round(len(res["matched"]) / total * 100)
            self.stdout.write(f"Matched {len(res['matched'])}/{total} ({pct}%)")
        self.stdout.write(self.style.SUCCESS(f"OK: {analyze_hostel_data()}"))
