from django.core.management.base import BaseCommand

from accounts.seed import initialise_data


class Command(BaseCommand):
    help = "Create the first admin user if no users exist yet"

    def handle(self, *args, **options):
        created = initialise_data()

        if created is None:
            self.stdout.write(self.style.WARNING("Users already exist, nothing to do."))
            return

        email, password = created
        self.stdout.write(self.style.SUCCESS(f"User created: email: {email} password: {password}"))
