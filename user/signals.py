# user/signals.py
import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import Profile

logger = logging.getLogger(__name__)


@receiver(post_save, sender=settings.AUTH_USER_MODEL, dispatch_uid="storefront_profile_autocreate")
def ensure_profile(sender, instance, created, raw=False, **kwargs):
    """Every customer gets a Profile row to hold the phone number used at checkout."""
    if created and not raw:
        _, made = Profile.objects.get_or_create(user=instance)
        if made:
            logger.debug("Profile created for user %s", instance.pk)
