from pydantic import BaseModel
from typing import Any, Optional


class PaymentConditionsRequest(BaseModel):
    # Validated by the conditions service so bad amounts get the NuPay error body
    amount: Any = None
    document: Optional[str] = None
