import logging
from typing import Optional

from fastapi import APIRouter, Depends

from core.config import Settings, get_settings
from core.exceptions import ApiError
from core.money import Money
from schemas.payment import PaymentLinkCreate
from services.checkout import (
    DEFAULT_CURRENCY,
    DEFAULT_LINK_METHODS,
    build_payment_link,
    extract_payment_link_url,
    vendor_rejected,
)
from services.yuno import YunoClient, get_yuno_client

logger = logging.getLogger("checkout")

router = APIRouter(prefix="/payment-link", tags=["payment-links"])

DEFAULT_PRODUCT_NAME = "Urban Textures T-Shirt"
DEFAULT_LINK_AMOUNT = 20.00


@router.post("")
def create_payment_link(
    data: Optional[PaymentLinkCreate] = None,
    settings: Settings = Depends(get_settings),
    yuno: YunoClient = Depends(get_yuno_client),
):
    data = data or PaymentLinkCreate()
    try:
        product_name = data.product_name or DEFAULT_PRODUCT_NAME
        amount = data.amount if data.amount is not None else DEFAULT_LINK_AMOUNT
        currency = data.currency or DEFAULT_CURRENCY
        methods = data.payment_method_types or DEFAULT_LINK_METHODS

        link = build_payment_link(
            settings,
            Money.major(amount, currency),
            f"Payment {product_name} - {settings.STORE_NAME}",
            methods,
        )
        logger.info(f"Creating payment link {link['merchant_order_id']} for {product_name}")

        response = yuno.create_payment_link(link)

        if vendor_rejected(response):
            raise ApiError(400, {
                "success": False,
                "error": response.get("messages") or response.get("message") or "Error creating payment link",
                "fullResponse": response,
            })

        return {
            "success": True,
            "paymentLink": extract_payment_link_url(response),
            "linkId": response.get("id"),
            "amount": amount,
            "currency": currency,
            "productName": product_name,
            "fullResponse": response,
        }
    except ApiError:
        raise
    except Exception as e:
        logger.exception(f"Payment link error: {e}")
        raise ApiError(500, {"success": False, "error": "Error generating payment link", "details": str(e)})
