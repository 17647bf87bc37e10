# orders/idgen.py
"""
Order identifiers: ``YYYYMMDD-HHMMSS-MMMRRRRRRR`` where MMM is the millisecond
and RRRRRRR a zero-padded random number, e.g. ``20260203-193302-4567894521``.
Only digits and hyphens, so ids are safe in URLs and gateway receipts.
"""

import logging
import random
import time

from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)


class OrderIdGenerationError(RuntimeError):
    pass


def _candidate(now=None):
    now = timezone.localtime(now)
    millis = now.microsecond // 1000
    return f"{now:%Y%m%d-%H%M%S}-{millis:03d}{random.randint(0, 9_999_999):07d}"


def generate_order_id():
    from .models import Order

    retries = settings.ORDER_ID_MAX_RETRIES
    for attempt in range(retries):
        order_id = _candidate()
        if not Order.objects.filter(pk=order_id).exists():
            return order_id
        logger.warning("Order id collision on %s (attempt %s/%s)", order_id, attempt + 1, retries)
        time.sleep(random.random() / 100)

    raise OrderIdGenerationError("Failed to generate unique Order ID after maximum retries")
