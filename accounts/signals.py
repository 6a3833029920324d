from django.conf import settings
from django.db.models.signals import post_migrate
from django.dispatch import receiver

from accounts.seed import initialise_data


@receiver(post_migrate)
def seed_initial_data(sender, **kwargs):
    """Seed the first admin once the accounts tables exist, unless turned off."""
    if sender.name != "accounts" or not settings.SEED_INITIAL_DATA:
        return
    initialise_data()
