"""Checkout API routes"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import ServiceContainer, get_services
from ..models.checkout import CheckoutRequest, CheckoutResponse
from ..services.availability import wait_for_variants_available
from ..services.line_builder import BuildErrorKind, BuildLinesResult
from ..services.platform_client import PlatformAPIError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/checkout", tags=["Checkout"])

_BUILD_ERROR_STATUS = {
    BuildErrorKind.NOT_FOUND: 404,
    BuildErrorKind.EMPTY: 400,
    BuildErrorKind.VALIDATION: 400,
    BuildErrorKind.PROVISIONING: 502,
}


def raise_for_build_error(result: BuildLinesResult) -> None:
    """Turn a failed line build into the matching HTTP error"""
    if result.ok:
        return
    status_code = _BUILD_ERROR_STATUS.get(result.error_kind, 400)
    raise HTTPException(status_code=status_code, detail=result.error)


@router.post("", response_model=CheckoutResponse)
async def checkout(
    request: CheckoutRequest,
    services: ServiceContainer = Depends(get_services),
):
    """
    Start platform checkout for an internal cart.

    Every line is resolved to a platform variant first; if any line fails,
    no checkout is created. Freshly provisioned variants are polled until
    the storefront reports them available.
    """
    if not request.cart_id and request.cart is None:
        raise HTTPException(status_code=400, detail="cart_id or cart snapshot is required")

    result = await services.line_builder.build_lines(request.cart_id, request.cart)
    raise_for_build_error(result)

    settings = services.settings
    ok, unavailable = await wait_for_variants_available(
        services.storefront,
        [line.merchandise_id for line in result.lines],
        max_attempts=settings.availability_max_attempts,
        delay_seconds=settings.availability_delay_seconds,
    )
    if not ok:
        raise HTTPException(
            status_code=409,
            detail={
                "message": "Some items are not available for checkout yet, please try again",
                "unavailable_variant_ids": unavailable,
            },
        )

    try:
        checkout_url = await services.storefront.create_checkout(result.lines)
    except PlatformAPIError as exc:
        logger.error(f"Checkout creation failed for cart {request.cart_id}: {exc}")
        raise HTTPException(status_code=502, detail=f"Failed to create checkout: {exc}")

    logger.info(
        f"Checkout created for cart {request.cart_id}: {len(result.lines)} lines, "
        f"{result.total_amount} {result.currency_code}"
    )
    return CheckoutResponse(checkout_url=checkout_url)
