from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from apps.accounts.models import ApiToken


class Command(BaseCommand):
    help = "Issue a bearer token for the admin API and print it once."

    def add_arguments(self, parser):
        parser.add_argument("username")
        parser.add_argument("--name", dest="name", default="", help="Label shown in the admin")

    def handle(self, *args, **options):
        User = get_user_model()
        user = User.objects.filter(username=options["username"]).first()
        if not user:
            raise CommandError(f"user {options['username']!r} not found")
        if not user.is_admin:
            self.stdout.write(self.style.WARNING("User is not an admin; the token will get 403 on admin routes."))
        token, raw = ApiToken.issue(user, name=options["name"])
        self.stdout.write(self.style.SUCCESS(f"Token {token.id}: {raw}"))
