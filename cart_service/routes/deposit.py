"""Partial-payment (deposit) session routes"""

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException

from ..database.deposit_sessions import generate_session_id
from ..dependencies import ServiceContainer, get_services
from ..models.cart import CartItemAttribute
from ..models.checkout import (
    DepositSession,
    DepositSessionCreateRequest,
    DepositSessionItem,
    DepositSessionResponse,
)
from ..services.deposit import derive_deposit_plan
from ..services.money import format_amount
from ..services.platform_client import PlatformAPIError
from .checkout import raise_for_build_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/deposit-session", tags=["Deposit"])

DRAFT_ORDER_TAG = "partial-payment"


@router.post("/create-from-cart", response_model=DepositSessionResponse)
async def create_from_cart(
    request: DepositSessionCreateRequest,
    services: ServiceContainer = Depends(get_services),
):
    """
    Open a deposit session for a cart.

    The full cart is held in a draft order; the customer pays the deposit
    now and the remaining balance later.
    """
    if not request.cart_id and request.cart is None:
        raise HTTPException(status_code=400, detail="cart_id or cart snapshot is required")

    result = await services.line_builder.build_lines(request.cart_id, request.cart)
    raise_for_build_error(result)

    settings = services.settings
    plan = derive_deposit_plan(
        result.total_amount,
        result.currency_code,
        ratio=Decimal(str(settings.deposit_ratio)),
        minimum=Decimal(str(settings.deposit_minimum)),
    )
    if not plan.allows_partial_payment:
        raise HTTPException(
            status_code=400,
            detail=(
                f"Cart total {format_amount(plan.total_amount)} {plan.currency_code} "
                "is too low for a partial payment"
            ),
        )

    session_id = generate_session_id()
    try:
        draft_order_id = await services.admin.create_draft_order(
            result.lines,
            customer_id=request.customer_id,
            tags=[DRAFT_ORDER_TAG],
            custom_attributes=[CartItemAttribute(key="deposit_session_id", value=session_id)],
        )
    except PlatformAPIError as exc:
        logger.error(f"Draft order creation failed for cart {request.cart_id}: {exc}")
        raise HTTPException(status_code=502, detail=f"Failed to create draft order: {exc}")

    sessions = services.deposit_sessions
    now = sessions.clock()
    session = sessions.create_session(
        DepositSession(
            session_id=session_id,
            customer_id=request.customer_id,
            items=[
                DepositSessionItem(variant_id=line.merchandise_id, quantity=line.quantity)
                for line in result.lines
            ],
            total_amount=plan.total_amount,
            deposit_amount=plan.deposit_amount,
            remaining_amount=plan.remaining_amount,
            currency_code=plan.currency_code,
            draft_order_id=draft_order_id,
            created_at=now,
            expires_at=sessions.expiry_from_now(),
        )
    )

    logger.info(
        f"Deposit session {session_id} created: deposit {plan.deposit_amount} of "
        f"{plan.total_amount} {plan.currency_code}"
    )
    return DepositSessionResponse(
        session_id=session.session_id,
        deposit_session_url=f"/deposit-session/{session.session_id}",
        plan=plan,
    )


@router.get("/{session_id}", response_model=DepositSession)
async def get_session(
    session_id: str,
    services: ServiceContainer = Depends(get_services),
):
    """Get a deposit session by ID"""
    session = services.deposit_sessions.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Deposit session not found or expired")
    return session
