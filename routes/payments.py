import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request

from core.config import Settings, get_settings
from core.exceptions import ApiError
from core.logging import bind_checkout_session
from core.money import Money
from schemas.payment import PaymentCreate, PayPalRedirectRequest
from services.checkout import (
    DEFAULT_AMOUNT_CENTS,
    DEFAULT_COUNTRY,
    DEFAULT_CURRENCY,
    PAYPAL_LINK_METHODS,
    PAYPAL_LINK_RETRY_METHODS,
    PAYPAL_SESSION_ID_ACCESSORS,
    PaymentExtras,
    PaymentMethodKind,
    PaymentRequest,
    build_order,
    build_payment,
    build_payment_link,
    build_paypal_redirect_payment,
    callback_url,
    extract_payment_link_url,
    extract_redirect_url,
    extract_session_id,
    new_idempotency_key,
    new_merchant_order_id,
    paypal_fallback_amount,
    resolve_payment_method,
    vendor_message,
    vendor_rejected,
)
from services.yuno import YunoApiError, YunoClient, get_yuno_client

logger = logging.getLogger("checkout")

router = APIRouter(prefix="/payments", tags=["payments"])
methods_router = APIRouter(tags=["payments"])


def request_origin(request: Request) -> str:
    host = request.headers.get("host") or request.url.netloc
    return f"{request.url.scheme}://{host}"


@router.post("")
def create_payment(
    data: PaymentCreate,
    request: Request,
    settings: Settings = Depends(get_settings),
    yuno: YunoClient = Depends(get_yuno_client),
):
    bind_checkout_session(data.checkout_session)
    currency = data.currency or DEFAULT_CURRENCY
    extras = PaymentExtras(
        installments=data.installments,
        installments_type=data.installments_type,
        nupay=data.nupay_data.model_dump(by_alias=True) if data.nupay_data else None,
    )
    method = resolve_payment_method(data.payment_method_type, extras)

    payment = build_payment(
        settings,
        PaymentRequest(
            checkout_session=data.checkout_session,
            amount=Money.minor(data.amount if data.amount is not None else DEFAULT_AMOUNT_CENTS, currency),
            country=data.country or DEFAULT_COUNTRY,
            token=data.one_time_token,
            document=data.document_number,
            method=method,
            callback_url=callback_url(settings, request_origin(request)) if method.kind is PaymentMethodKind.PAYPAL else None,
        ),
        f"{settings.STORE_NAME} - Payment",
    )

    try:
        response = yuno.create_payment(new_idempotency_key(), payment)
    except YunoApiError as e:
        logger.error(f"Yuno create_payment error for session {data.checkout_session}: {e.message}")
        raise ApiError(502, {
            "error": "Error calling Yuno API",
            "message": e.message,
            "checkout_session_id": data.checkout_session,
        })

    if vendor_rejected(response, include_messages=True):
        logger.warning(f"Yuno payment rejected for session {data.checkout_session}: {response}")
        raise ApiError(400, {
            "error": "Payment rejected",
            "message": vendor_message(response, response.get("error")),
            "checkout_session_id": data.checkout_session,
            "yuno": response,
        })

    # Expose redirect_url at the top level so the front-end can redirect
    if method.kind is PaymentMethodKind.PAYPAL and not response.get("redirect_url"):
        redirect_url = extract_redirect_url(response)
        if redirect_url:
            response["redirect_url"] = redirect_url

    return response


def _paypal_link_fallback(settings: Settings, yuno: YunoClient, amount: Money) -> Optional[str]:
    """Create a payment link when the REDIRECT payment came back without a URL."""
    link = build_payment_link(
        settings,
        paypal_fallback_amount(amount),
        f"PayPal payment - {settings.STORE_NAME}",
        PAYPAL_LINK_METHODS,
        merchant_order_id=new_merchant_order_id("paypal"),
    )
    response = yuno.create_payment_link(link)
    if vendor_rejected(response):
        logger.warning(f"PayPal-only payment link rejected, retrying with {PAYPAL_LINK_RETRY_METHODS}")
        response = yuno.create_payment_link({
            **link,
            "payment_method_types": list(PAYPAL_LINK_RETRY_METHODS),
            "merchant_order_id": new_merchant_order_id("paypal"),
        })
    return extract_payment_link_url(response)


@router.post("/paypal/redirect")
def start_paypal_redirect(
    request: Request,
    data: Optional[PayPalRedirectRequest] = None,
    settings: Settings = Depends(get_settings),
    yuno: YunoClient = Depends(get_yuno_client),
):
    data = data or PayPalRedirectRequest()
    try:
        currency = data.currency or DEFAULT_CURRENCY
        amount = Money.minor(data.amount if data.amount is not None else DEFAULT_AMOUNT_CENTS, currency)
        merchant_order_id = new_merchant_order_id("order-paypal")

        order = build_order(
            settings,
            amount,
            DEFAULT_COUNTRY,
            f"PayPal payment - {settings.STORE_NAME}",
            merchant_order_id=merchant_order_id,
        )
        session_response = yuno.create_checkout_session(order)
        checkout_session = extract_session_id(session_response, PAYPAL_SESSION_ID_ACCESSORS)
        if not checkout_session:
            raise ApiError(400, {
                "success": False,
                "error": "Failed to create checkout session",
                "fullResponse": session_response,
            })
        bind_checkout_session(checkout_session)

        payment = build_paypal_redirect_payment(
            settings,
            checkout_session,
            amount,
            merchant_order_id,
            callback_url(settings, request_origin(request)),
        )
        payment_response = yuno.create_payment(new_idempotency_key(), payment)

        if vendor_rejected(payment_response):
            raise ApiError(400, {
                "success": False,
                "error": payment_response.get("messages") or payment_response.get("message") or "Error creating PayPal payment",
                "fullResponse": payment_response,
            })

        redirect_url = extract_redirect_url(payment_response)
        if not redirect_url:
            try:
                redirect_url = _paypal_link_fallback(settings, yuno, amount)
            except YunoApiError as e:
                logger.exception(f"PayPal fallback payment link error: {e}")

        if not redirect_url:
            raise ApiError(500, {
                "success": False,
                "error": "Yuno did not return a redirect_url",
                "fullResponse": payment_response,
            })
        return {"success": True, "redirect_url": redirect_url}
    except ApiError:
        raise
    except Exception as e:
        logger.exception(f"PayPal redirect error: {e}")
        raise ApiError(500, {"success": False, "error": "Error starting PayPal", "details": str(e)})


@methods_router.get("/payment-methods/{checkout_session}")
def list_payment_methods(checkout_session: str, yuno: YunoClient = Depends(get_yuno_client)):
    bind_checkout_session(checkout_session)
    return yuno.get_payment_methods(checkout_session)
