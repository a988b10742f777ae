"""
NuPay payment conditions.

Fixed installment menu standing in for the SpinPay payment-conditions API.
The rates are sandbox fixtures, not real financial figures.
"""
import math
from typing import Any, Dict, List, Optional

ADDITIONAL_LIMIT_MESSAGE = "Não consome o limite do cartão"


def parse_amount(raw: Any) -> float:
    """Accept numbers and numeric strings; reject anything non-finite."""
    if raw is None or isinstance(raw, bool):
        raise ValueError("A finite amount is required")
    if isinstance(raw, (int, float)):
        amount = raw
    elif isinstance(raw, str):
        amount = float(raw.strip())
    else:
        raise ValueError(f"Unsupported amount: {raw!r}")
    if not math.isfinite(amount):
        raise ValueError("A finite amount is required")
    return amount


def get_payment_conditions(raw_amount: Any, document: Optional[str] = None) -> List[Dict[str, Any]]:
    amount = parse_amount(raw_amount)

    return [
        {
            "type": "debit",
            "installmentPlans": [
                {"amount": amount, "number": 1},
            ],
        },
        {
            "type": "credit",
            "installmentPlans": [
                {"amount": amount, "number": 1},
                {"amount": amount / 2, "number": 2},
                {
                    "amount": amount / 3,
                    "number": 3,
                    "interest": 0.05,
                    "interestAmount": amount * 0.05,
                    "iof": amount * 0.008,
                    "iofPercentage": 0.008,
                    "totalAmount": amount * 1.08,
                    "cet": 0.88,
                },
            ],
        },
        {
            "type": "credit_with_additional_limit",
            "amount": amount,
            "additionalLimitMessage": ADDITIONAL_LIMIT_MESSAGE,
            "installmentPlans": [
                {
                    "amount": amount * 1.01,
                    "interestAmount": amount * 0.02,
                    "number": 1,
                    "interest": 0.0499,
                    "iof": amount * 0.0038,
                    "iofPercentage": 0.0055,
                    "cet": 0.939,
                    "totalAmount": amount * 1.039,
                },
            ],
        },
    ]
