from pydantic import BaseModel, Field
from typing import List, Optional


class NuPayData(BaseModel):
    funding_source: Optional[str] = Field(default=None, alias="fundingSource")
    installments: Optional[int] = None
    authorization_type: Optional[str] = Field(default=None, alias="authorizationType")

    class Config:
        populate_by_name = True


class PaymentCreate(BaseModel):
    checkout_session: str = Field(alias="checkoutSession")
    one_time_token: Optional[str] = Field(default=None, alias="oneTimeToken")
    payment_method_type: Optional[str] = Field(default=None, alias="paymentMethodType")
    nupay_data: Optional[NuPayData] = Field(default=None, alias="nuPayData")
    document_number: Optional[str] = Field(default=None, alias="documentNumber")
    installments: Optional[int] = None
    installments_type: Optional[str] = Field(default=None, alias="installmentsType")
    amount: Optional[int] = None  # cents
    currency: Optional[str] = None
    country: Optional[str] = None

    class Config:
        populate_by_name = True


class PayPalRedirectRequest(BaseModel):
    amount: Optional[int] = None  # cents
    currency: Optional[str] = None


class PaymentLinkCreate(BaseModel):
    product_name: Optional[str] = Field(default=None, alias="productName")
    amount: Optional[float] = None  # major units, e.g. 20.00
    currency: Optional[str] = None
    payment_method_types: Optional[List[str]] = None

    class Config:
        populate_by_name = True

