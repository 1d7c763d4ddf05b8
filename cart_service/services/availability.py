"""Checkout pre-flight: wait for variants to show up as available"""

import asyncio
import logging

from .platform_client import PlatformAPIError, StorefrontClient

logger = logging.getLogger(__name__)


async def wait_for_variants_available(
    storefront: StorefrontClient,
    variant_ids: list[str],
    max_attempts: int = 4,
    delay_seconds: float = 1.5,
    backoff: float = 2.0,
) -> tuple[bool, list[str]]:
    """
    Poll the storefront until every variant is available for sale.

    Freshly provisioned variants take a moment to be indexed, so unavailable
    IDs are re-checked with a growing delay. Returns (ok, unavailable_ids).
    If the check itself fails, checkout proceeds rather than blocking.
    """
    unique_ids = list(dict.fromkeys(variant_ids))
    if not unique_ids:
        return True, []

    unavailable: list[str] = []
    delay = delay_seconds

    for attempt in range(1, max_attempts + 1):
        try:
            statuses = await storefront.query_availability(unique_ids)
        except PlatformAPIError as exc:
            logger.error(f"Availability check failed, proceeding with checkout: {exc}")
            return True, []

        available = {
            s.id for s in statuses
            if s.available and (s.quantity is None or s.quantity > 0)
        }
        unavailable = [vid for vid in unique_ids if vid not in available]
        if not unavailable:
            return True, []

        if attempt < max_attempts:
            logger.warning(
                f"Variants not yet available (attempt {attempt}/{max_attempts}): {unavailable}"
            )
            await asyncio.sleep(delay)
            delay *= backoff

    return False, unavailable
