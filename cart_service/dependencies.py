"""
Service wiring

Stores and clients are built once per application and kept on
`app.state.services`; routes receive them through `Depends(get_services)`.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from .core.config import Settings
from .database.carts import CartDatabase
from .database.deposit_sessions import DepositSessionDatabase
from .models.cart import SourceType
from .services.catalog_search import CatalogSearchClient
from .services.legacy import coerce_source_type
from .services.line_builder import CheckoutLineBuilder
from .services.platform_client import PlatformAdminClient, StorefrontClient
from .services.provisioner import PlaceholderProvisioner


@dataclass
class ServiceContainer:
    settings: Settings
    carts: CartDatabase
    deposit_sessions: DepositSessionDatabase
    admin: PlatformAdminClient
    storefront: StorefrontClient
    catalog: CatalogSearchClient
    provisioner: PlaceholderProvisioner
    line_builder: CheckoutLineBuilder

    @property
    def default_source_type(self) -> SourceType:
        return coerce_source_type(self.settings.default_source_type) or SourceType.LABGROWN

    async def close(self) -> None:
        """Close HTTP clients"""
        await self.admin.close()
        await self.storefront.close()
        await self.catalog.close()


def build_services(
    settings: Settings,
    carts: Optional[CartDatabase] = None,
    admin: Optional[PlatformAdminClient] = None,
    storefront: Optional[StorefrontClient] = None,
    catalog: Optional[CatalogSearchClient] = None,
) -> ServiceContainer:
    """Construct every store and client from settings; any piece can be supplied"""
    carts = carts or CartDatabase(ttl_seconds=settings.cart_ttl_seconds)
    admin = admin or PlatformAdminClient(
        settings.admin_api_url,
        settings.shopify_admin_access_token,
        timeout=settings.platform_timeout_seconds,
    )
    storefront = storefront or StorefrontClient(
        settings.storefront_api_url,
        settings.shopify_storefront_access_token,
        timeout=settings.platform_timeout_seconds,
    )
    catalog = catalog or CatalogSearchClient(
        settings.catalog_search_base_url,
        settings.catalog_search_api_key,
        timeout=settings.platform_timeout_seconds,
    )
    provisioner = PlaceholderProvisioner(
        admin,
        cache_ttl_seconds=settings.provisioning_cache_ttl_seconds,
    )
    default_source_type = coerce_source_type(settings.default_source_type) or SourceType.LABGROWN

    return ServiceContainer(
        settings=settings,
        carts=carts,
        deposit_sessions=DepositSessionDatabase(ttl_seconds=settings.deposit_session_ttl_seconds),
        admin=admin,
        storefront=storefront,
        catalog=catalog,
        provisioner=provisioner,
        line_builder=CheckoutLineBuilder(carts, provisioner, default_source_type),
    )


def get_services(request: Request) -> ServiceContainer:
    """FastAPI dependency returning the application's services"""
    return request.app.state.services
