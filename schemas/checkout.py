from pydantic import BaseModel
from typing import Optional


class CheckoutSessionCreate(BaseModel):
    country: Optional[str] = None
    currency: Optional[str] = None
    amount: Optional[int] = None  # cents
