"""
Catalog Placeholder Provisioner

Gives every external item a platform variant it can be checked out with.
Items are grouped by source type under one placeholder container product;
each external ID maps to exactly one variant under its container, found by
its SKU tag before anything is created.
"""

import asyncio
import json
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Optional

from ..models.cart import SourceType
from ..models.catalog import VariantInput
from .money import format_amount
from .platform_client import (
    PlatformAdminClient,
    PlatformAPIError,
    PlatformConflictError,
    container_tag,
    external_sku,
)

logger = logging.getLogger(__name__)

# Payload field aliases seen across feeds, per descriptive metafield
METADATA_FIELDS: dict[str, tuple[str, ...]] = {
    "carat": ("carat", "diamond_carat", "Diamond Carat"),
    "color": ("color", "diamond_color", "Diamond Color"),
    "clarity": ("clarity", "diamond_clarity", "Diamond Clarity"),
    "cut_grade": ("cut_grade", "Cut Grade", "cutGrade", "cut"),
    "certificate_type": ("certificate_type", "Certificate Type", "grading_lab", "Grading Lab", "lab"),
    "certificate_number": ("certificate_number", "Certificate Number", "certificate_no", "cert_number"),
}


class ProvisioningError(Exception):
    """A placeholder step could not be completed"""
    pass


@dataclass
class ProvisioningResult:
    variant_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.variant_id is not None and self.error is None


def variant_metafields(payload: Optional[dict[str, Any]]) -> dict[str, str]:
    """Descriptive metafields for a placeholder variant, from the item payload"""
    if not payload:
        return {}

    metafields = {"payload": json.dumps(payload, sort_keys=True, default=str)}
    for name, aliases in METADATA_FIELDS.items():
        for alias in aliases:
            value = payload.get(alias) or payload.get(alias.lower()) or payload.get(alias.upper())
            if value:
                metafields[name] = str(value)
                break
    return metafields


@dataclass
class _KeyedLock:
    lock: asyncio.Lock
    users: int = 0


@asynccontextmanager
async def _locked(locks: dict, key):
    """Hold the lock for `key`; the entry is dropped once nobody holds or waits on it"""
    entry = locks.get(key)
    if entry is None:
        entry = locks[key] = _KeyedLock(asyncio.Lock())
    entry.users += 1
    try:
        async with entry.lock:
            yield
    finally:
        entry.users -= 1
        if entry.users == 0:
            locks.pop(key, None)


class PlaceholderProvisioner:
    """Finds or creates placeholder containers and variants for external items"""

    def __init__(
        self,
        admin: PlatformAdminClient,
        cache_ttl_seconds: float = 60 * 60,
        max_conflict_retries: int = 3,
        conflict_retry_delay: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.admin = admin
        self.cache_ttl_seconds = cache_ttl_seconds
        self.max_conflict_retries = max_conflict_retries
        self.conflict_retry_delay = conflict_retry_delay
        self.clock = clock
        self._containers: dict[SourceType, tuple[str, float]] = {}
        self._variants: dict[str, tuple[str, str, float]] = {}
        self._container_locks: dict[SourceType, _KeyedLock] = {}
        self._variant_locks: dict[str, _KeyedLock] = {}

    # ==================== Cache ====================

    def _cached_container(self, source_type: SourceType) -> Optional[str]:
        cached = self._containers.get(source_type)
        if not cached:
            return None
        container_id, expires_at = cached
        if self.clock() > expires_at:
            del self._containers[source_type]
            return None
        return container_id

    def _remember_container(self, source_type: SourceType, container_id: str) -> None:
        self._containers[source_type] = (container_id, self.clock() + self.cache_ttl_seconds)

    def _cached_variant(self, container_id: str, external_id: str) -> Optional[str]:
        cached = self._variants.get(external_id)
        if not cached:
            return None
        cached_container, variant_id, expires_at = cached
        if self.clock() > expires_at or cached_container != container_id:
            del self._variants[external_id]
            return None
        return variant_id

    def _remember_variant(self, container_id: str, external_id: str, variant_id: str) -> None:
        now = self.clock()
        expired = [key for key, (_, _, expires_at) in self._variants.items() if now > expires_at]
        for key in expired:
            del self._variants[key]
        self._variants[external_id] = (
            container_id,
            variant_id,
            now + self.cache_ttl_seconds,
        )

    # ==================== Containers ====================

    async def find_placeholder_container(self, source_type: SourceType) -> Optional[str]:
        """
        Existing container for a source type, or None.

        A container that exists but is not visible to the storefront is
        published on the way out; if that fails it is an error, not a miss.
        """
        cached = self._cached_container(source_type)
        if cached:
            return cached

        container_id = await self.admin.find_container_by_tag(container_tag(source_type.value))
        if not container_id:
            return None

        if not await self.admin.ensure_published(container_id):
            raise ProvisioningError(
                f"Placeholder container {container_id} for {source_type.value} is not published"
            )

        self._remember_container(source_type, container_id)
        return container_id

    async def create_placeholder_container(self, source_type: SourceType) -> str:
        """Create a container, always with one initial variant"""
        initial_variant = VariantInput(
            price="0.00",
            sku=f"PLACEHOLDER-{source_type.value}",
            external_tag="placeholder",
        )
        container_id = await self.admin.create_container(
            container_tag(source_type.value),
            f"External Placeholder - {source_type.value}",
            initial_variant,
        )

        if not await self.admin.ensure_published(container_id):
            raise ProvisioningError(
                f"Placeholder container {container_id} for {source_type.value} could not be published"
            )

        self._remember_container(source_type, container_id)
        return container_id

    async def ensure_container(self, source_type: SourceType) -> str:
        """Find the container for a source type, creating it if needed"""
        async with _locked(self._container_locks, source_type):
            container_id = await self.find_placeholder_container(source_type)
            if container_id:
                return container_id

            try:
                return await self.create_placeholder_container(source_type)
            except PlatformConflictError:
                logger.warning(f"Container for {source_type.value} created concurrently, looking it up")
                container_id = await self.find_placeholder_container(source_type)
                if not container_id:
                    raise
                return container_id

    # ==================== Variants ====================

    async def find_or_create_variant(
        self,
        container_id: str,
        external_id: str,
        unit_price: Decimal,
        title: str,
        image_url: Optional[str] = None,
        payload: Optional[dict[str, Any]] = None,
    ) -> str:
        """
        Variant for `external_id` under `container_id`.

        The same external ID always resolves to the same variant. The price
        is only set when the variant is created; later lookups do not update
        it. A duplicate conflict on create means another request got there
        first, so the lookup is retried instead of failing.
        """
        async with _locked(self._variant_locks, external_id):
            cached = self._cached_variant(container_id, external_id)
            if cached:
                return cached

            existing = await self.admin.find_variant_by_external_tag(container_id, external_id)
            if existing:
                self._remember_variant(container_id, external_id, existing)
                return existing

            variant = VariantInput(
                price=format_amount(unit_price),
                sku=external_sku(external_id),
                external_tag=external_id,
                title=title,
                image_url=image_url,
                metafields=variant_metafields(payload),
            )

            for attempt in range(1, self.max_conflict_retries + 1):
                try:
                    variant_id = await self.admin.create_variant(container_id, variant)
                except PlatformConflictError:
                    logger.warning(
                        f"Variant for {external_id} already exists "
                        f"(attempt {attempt}/{self.max_conflict_retries}), looking it up"
                    )
                    existing = await self.admin.find_variant_by_external_tag(container_id, external_id)
                    if existing:
                        self._remember_variant(container_id, external_id, existing)
                        return existing
                    await asyncio.sleep(self.conflict_retry_delay * attempt)
                    continue

                self._remember_variant(container_id, external_id, variant_id)
                return variant_id

            raise ProvisioningError(
                f"Variant for {external_id} conflicts with an existing variant that could not be found"
            )

    async def resolve(
        self,
        external_id: str,
        source_type: SourceType,
        unit_price: Decimal,
        title: str,
        image_url: Optional[str] = None,
        payload: Optional[dict[str, Any]] = None,
    ) -> ProvisioningResult:
        """Container then variant for one external item, as a result value"""
        try:
            container_id = await self.ensure_container(source_type)
        except (PlatformAPIError, ProvisioningError) as exc:
            logger.error(f"Placeholder container for {source_type.value} failed: {exc}")
            return ProvisioningResult(
                error=f'Failed to prepare placeholder product for "{title}" ({external_id}): {exc}'
            )

        try:
            variant_id = await self.find_or_create_variant(
                container_id,
                external_id,
                unit_price,
                title,
                image_url,
                payload,
            )
        except (PlatformAPIError, ProvisioningError) as exc:
            logger.error(f"Placeholder variant for {external_id} failed: {exc}")
            return ProvisioningResult(
                error=f'Failed to create variant for external item "{title}" ({external_id}): {exc}'
            )

        return ProvisioningResult(variant_id=variant_id)
