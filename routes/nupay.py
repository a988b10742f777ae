import logging
from typing import Optional

from fastapi import APIRouter

from core.exceptions import ApiError
from schemas.nupay import PaymentConditionsRequest
from services.nupay import get_payment_conditions

logger = logging.getLogger("checkout")

router = APIRouter(prefix="/nupay", tags=["nupay"])


@router.post("/payment-conditions")
def payment_conditions(data: Optional[PaymentConditionsRequest] = None):
    data = data or PaymentConditionsRequest()
    try:
        return get_payment_conditions(data.amount, data.document)
    except (TypeError, ValueError) as e:
        logger.error(f"NuPay payment conditions error: {e}")
        raise ApiError(400, {"status": 400, "message": "Payment options not available", "details": {}})
