"""Human-readable order numbers: ``<PREFIX>-YYYYMMDD-XXXXXX``.

The suffix is six random hex digits.  Uniqueness is checked through the
caller-supplied ``is_taken`` predicate; the DB unique constraint on
``Order.order_number`` remains the final guard.
"""

from __future__ import annotations

import secrets
from typing import Callable, Optional

import structlog
from django.conf import settings
from django.utils import timezone

from modules.orders.constants import ORDER_NUMBER_MAX_RETRIES

logger = structlog.get_logger(__name__)


def format_order_number(prefix: str, suffix: str) -> str:
    return f"{prefix}-{timezone.now():%Y%m%d}-{suffix}"


def generate_order_number(
    is_taken: Callable[[str], bool],
    prefix: Optional[str] = None,
    max_retries: int = ORDER_NUMBER_MAX_RETRIES,
) -> str:
    """Return an order number for which ``is_taken`` is false.

    Raises:
        RuntimeError: every one of the ``max_retries`` candidates was taken.
    """
    prefix = prefix or settings.ORDER_NUMBER_PREFIX
    for attempt in range(1, max_retries + 1):
        candidate = format_order_number(prefix, secrets.token_hex(3).upper())
        if not is_taken(candidate):
            return candidate
        logger.warning("order.number_collision", candidate=candidate, attempt=attempt)

    raise RuntimeError(
        f"Failed to generate unique order_number after {max_retries} attempts"
    )
