import logging
from typing import Optional

from fastapi import APIRouter, Depends

from core.config import Settings, get_settings
from core.exceptions import ApiError
from core.logging import bind_checkout_session
from core.money import Money
from schemas.checkout import CheckoutSessionCreate
from services.checkout import (
    DEFAULT_AMOUNT_CENTS,
    DEFAULT_COUNTRY,
    DEFAULT_CURRENCY,
    build_order,
    extract_session_id,
    field_at,
    vendor_message,
)
from services.yuno import YunoApiError, YunoClient, get_yuno_client

logger = logging.getLogger("checkout")

router = APIRouter(prefix="/checkout", tags=["checkout"])

SESSION_HINT = (
    "Check ACCOUNT_CODE, CUSTOMER_ID, PUBLIC_API_KEY, PRIVATE_SECRET_KEY and API_URL (sandbox), "
    "and that the Yuno account is enabled for the requested country/currency."
)


@router.post("/sessions")
def create_checkout_session(
    data: Optional[CheckoutSessionCreate] = None,
    settings: Settings = Depends(get_settings),
    yuno: YunoClient = Depends(get_yuno_client),
):
    data = data or CheckoutSessionCreate()
    country = data.country or DEFAULT_COUNTRY
    currency = data.currency or DEFAULT_CURRENCY
    amount = Money.minor(data.amount if data.amount is not None else DEFAULT_AMOUNT_CENTS, currency)

    order = build_order(settings, amount, country, f"{settings.STORE_NAME} - Checkout")

    try:
        response = yuno.create_checkout_session(order)
    except YunoApiError as e:
        status = e.status if e.status and e.status >= 400 else 502
        logger.error(f"create_checkout_session failed: {e.message} {e.body}")
        raise ApiError(status, {
            **e.body,
            "error": "Failed to create checkout session",
            "message": e.message,
            "code": e.code or e.body.get("code"),
            "messages": e.body.get("messages"),
            "hint": SESSION_HINT,
        })

    session_id = extract_session_id(response)
    if not session_id:
        raise ApiError(400, {
            **response,
            "error": "Invalid checkout session",
            "message": vendor_message(response, "Checkout session is empty or invalid."),
            "hint": SESSION_HINT,
        })
    bind_checkout_session(session_id)
    logger.info("Checkout session created")

    return {
        "checkout_session": session_id,
        "country": response.get("country") or country,
        "currency": field_at(response, "amount", "currency") or currency,
        **response,
    }


@router.post("/sessions/br")
def create_br_test_session(settings: Settings = Depends(get_settings), yuno: YunoClient = Depends(get_yuno_client)):
    order = build_order(
        settings,
        Money.minor(DEFAULT_AMOUNT_CENTS, "BRL"),
        "BR",
        "Test BR checkout",
    )

    try:
        response = yuno.create_checkout_session(order)
    except YunoApiError as e:
        logger.error(f"create_br_test_session failed: {e.message}")
        raise ApiError(502, {"error": "Failed to create BR checkout session", "message": e.message})

    if not response.get("checkout_session"):
        raise ApiError(400, {
            **response,
            "error": "BR checkout session rejected",
            "message": vendor_message(response),
        })
    return response
