# Service modules

from .cart_view import compile_cart_view
from .deposit import derive_deposit_plan
from .line_builder import BuildErrorKind, BuildLinesResult, CheckoutLineBuilder
from .provisioner import PlaceholderProvisioner, ProvisioningError, ProvisioningResult
from .platform_client import (
    PlatformAdminClient,
    StorefrontClient,
    PlatformAPIError,
    PlatformConflictError,
    PlatformTimeoutError,
)
from .catalog_search import CatalogSearchClient, CatalogSearchError
from .availability import wait_for_variants_available

__all__ = [
    "compile_cart_view",
    "derive_deposit_plan",
    "BuildErrorKind",
    "BuildLinesResult",
    "CheckoutLineBuilder",
    "PlaceholderProvisioner",
    "ProvisioningError",
    "ProvisioningResult",
    "PlatformAdminClient",
    "StorefrontClient",
    "PlatformAPIError",
    "PlatformConflictError",
    "PlatformTimeoutError",
    "CatalogSearchClient",
    "CatalogSearchError",
    "wait_for_variants_available",
]
