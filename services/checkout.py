"""
Payload builders and response normalizers for the Yuno checkout flow.

Builders turn storefront input into Yuno request bodies; extractors read
fields that Yuno returns in different places depending on the payment
method and API version.
"""
import re
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from core.config import Settings
from core.money import AmountUnit, Money
from services.yuno import first_message

DEFAULT_COUNTRY = "BR"
DEFAULT_CURRENCY = "BRL"
DEFAULT_AMOUNT_CENTS = 2000  # R$ 20,00

DEFAULT_CPF = "35104075397"
CARD_METADATA_FALLBACK_CPF = "13842438605"
CPF_LENGTH = 11

DEFAULT_LINK_METHODS = ["CARD", "PIX", "BOLETO"]
PAYPAL_LINK_METHODS = ["PAYPAL"]
PAYPAL_LINK_RETRY_METHODS = ["CARD", "PIX", "BOLETO", "PAYPAL"]

PLACEHOLDER_ADDRESS = {
    "address_line_1": "123 Example St",
    "address_line_2": "Apt 502",
    "city": "New York",
    "state": "NY",
    "zip_code": "10001",
}

Accessor = Tuple[str, Callable[[Dict[str, Any]], Any]]


def new_merchant_order_id(prefix: str = "order") -> str:
    """Merchant order id unique per attempt; Yuno rejects reused ids for new sessions."""
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


def new_idempotency_key() -> str:
    return str(uuid.uuid4())


def clean_document(document: Optional[str]) -> str:
    """Digits-only CPF, at most 11 characters, with a sandbox fallback."""
    return re.sub(r"\D", "", document or DEFAULT_CPF)[:CPF_LENGTH]


def callback_url(settings: Settings, request_origin: str) -> str:
    base = settings.BASE_URL or request_origin
    return f"{base.rstrip('/')}/payment-success?provider=paypal"


def _is_set(value: Any) -> bool:
    """Field presence as Yuno clients check it: containers count even when empty."""
    if isinstance(value, (list, dict)):
        return True
    return bool(value)


def vendor_rejected(response: Any, include_messages: bool = False) -> bool:
    """True when a Yuno body carries error fields instead of a result."""
    if not isinstance(response, dict):
        return False
    keys = ("code", "error", "messages") if include_messages else ("code", "error")
    return any(_is_set(response.get(key)) for key in keys)


def vendor_message(response: Dict[str, Any], *fallbacks: Optional[str]) -> Optional[str]:
    candidates = [first_message(response), response.get("message"), *fallbacks]
    for candidate in candidates:
        if candidate:
            return candidate
    return None


# ----------------------------------------------------------------------------
# Payment method variants
# ----------------------------------------------------------------------------

class PaymentMethodKind(str, Enum):
    CARD = "CARD"
    NU_PAY = "NU_PAY"
    PAYPAL = "PAYPAL"
    OTHER = "OTHER"


PAYPAL_ALIASES = {"PAYPAL", "PAYPAL_WALLET", "PAY_PAL"}


@dataclass(frozen=True)
class PaymentMethod:
    kind: PaymentMethodKind
    type: str  # value sent as payment_method.type
    detail: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class PaymentExtras:
    installments: Optional[int] = None
    installments_type: Optional[str] = None
    nupay: Optional[Dict[str, Any]] = None


def resolve_payment_method(method_type: Optional[str], extras: PaymentExtras) -> PaymentMethod:
    raw = method_type or PaymentMethodKind.CARD.value

    if raw in PAYPAL_ALIASES:
        return PaymentMethod(PaymentMethodKind.PAYPAL, "PAYPAL", {"paypal": {}})

    if raw == PaymentMethodKind.CARD.value:
        detail = None
        if extras.installments:
            detail = {
                "card": {
                    "installments": extras.installments,
                    "installments_type": extras.installments_type or "MERCHANT",
                }
            }
        return PaymentMethod(PaymentMethodKind.CARD, raw, detail)

    if raw == PaymentMethodKind.NU_PAY.value:
        detail = None
        if extras.nupay:
            detail = {
                "nupay": {
                    "funding_source": extras.nupay.get("fundingSource"),
                    "installments": extras.nupay.get("installments"),
                    "authorization_type": extras.nupay.get("authorizationType"),
                }
            }
        return PaymentMethod(PaymentMethodKind.NU_PAY, raw, detail)

    return PaymentMethod(PaymentMethodKind.OTHER, raw)


# ----------------------------------------------------------------------------
# Payload builders
# ----------------------------------------------------------------------------

def build_order(settings: Settings, amount: Money, country: str, description: str, merchant_order_id: Optional[str] = None) -> Dict[str, Any]:
    order = {
        "account_id": settings.ACCOUNT_CODE,
        "merchant_order_id": merchant_order_id or new_merchant_order_id(),
        "payment_description": description,
        "country": country,
        "amount": amount.as_payload(),
    }
    if settings.CUSTOMER_ID:
        order["customer_id"] = settings.CUSTOMER_ID
    return order


@dataclass
class PaymentRequest:
    checkout_session: str
    amount: Money
    country: str = DEFAULT_COUNTRY
    token: Optional[str] = None
    document: Optional[str] = None
    method: PaymentMethod = field(default_factory=lambda: PaymentMethod(PaymentMethodKind.CARD, "CARD"))
    callback_url: Optional[str] = None


def build_payment(settings: Settings, req: PaymentRequest, description: str) -> Dict[str, Any]:
    document_number = clean_document(req.document)
    address = {**PLACEHOLDER_ADDRESS, "country": req.country}

    payment_method: Dict[str, Any] = {
        "type": req.method.type,
        "token": req.token,
        "vaulted_token": None,
    }
    if req.method.detail is not None:
        payment_method["detail"] = req.method.detail

    payment: Dict[str, Any] = {
        "description": description,
        "account_id": settings.ACCOUNT_CODE,
        "merchant_order_id": new_merchant_order_id(),
        "country": req.country,
        "amount": req.amount.as_payload(),
        "checkout": {"session": req.checkout_session},
        "customer_payer": {
            "billing_address": dict(address),
            "shipping_address": dict(address),
            "document": {"document_type": "CPF", "document_number": document_number},
            "id": settings.CUSTOMER_ID,
            "nationality": "BR",
        },
        "payment_method": payment_method,
    }

    if req.method.kind is PaymentMethodKind.CARD:
        payment["metadata"] = [
            {"key": "cpf", "value": document_number or CARD_METADATA_FALLBACK_CPF},
            {"key": "type", "value": "card"},
        ]
    elif req.method.kind is PaymentMethodKind.PAYPAL:
        payment["workflow"] = "REDIRECT"
        payment["callback_url"] = req.callback_url
        payment["metadata"] = [
            {"key": "payment_method", "value": "paypal"},
            {"key": "type", "value": "wallet"},
        ]
    return payment


def build_paypal_redirect_payment(settings: Settings, checkout_session: str, amount: Money, merchant_order_id: str, callback: str) -> Dict[str, Any]:
    """Minimal REDIRECT payment used by the one-click PayPal flow."""
    return {
        "description": f"{settings.STORE_NAME} - PayPal",
        "account_id": settings.ACCOUNT_CODE,
        "merchant_order_id": merchant_order_id,
        "country": DEFAULT_COUNTRY,
        "amount": amount.as_payload(),
        "checkout": {"session": checkout_session},
        "payment_method": {"type": "PAYPAL", "detail": {"paypal": {}}},
        "callback_url": callback,
        "workflow": "REDIRECT",
        "customer_payer": {
            "id": settings.CUSTOMER_ID,
            "document": {"document_type": "CPF", "document_number": DEFAULT_CPF},
            "nationality": "BR",
        },
    }


def build_payment_link(settings: Settings, amount: Money, description: str, payment_method_types: Sequence[str], merchant_order_id: Optional[str] = None) -> Dict[str, Any]:
    if amount.unit is not AmountUnit.MAJOR:
        raise ValueError("Payment link amounts must be in major units")
    return {
        "account_id": settings.ACCOUNT_CODE,
        "merchant_order_id": merchant_order_id or new_merchant_order_id("ORDER"),
        "description": description,
        "country": DEFAULT_COUNTRY,
        "amount": amount.as_payload(),
        "payment_method_types": list(payment_method_types),
    }


# ----------------------------------------------------------------------------
# Response extractors
# ----------------------------------------------------------------------------

def field_at(obj: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def _coalesce(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def _payment_method(resp: Dict[str, Any]) -> Any:
    return _coalesce(field_at(resp, "payment_method"), field_at(resp, "data", "payment_method"))


def _method_detail(resp: Dict[str, Any]) -> Any:
    pm = _payment_method(resp)
    return _coalesce(field_at(pm, "payment_method_detail"), field_at(pm, "detail"))


def _wallet(resp: Dict[str, Any]) -> Any:
    detail = _method_detail(resp)
    return _coalesce(field_at(detail, "wallet"), field_at(detail, "paypal"))


SESSION_ID_ACCESSORS: List[Accessor] = [
    ("checkout_session", lambda r: field_at(r, "checkout_session")),
    ("data.checkout_session", lambda r: field_at(r, "data", "checkout_session")),
    ("id", lambda r: field_at(r, "id")),
]

# One-click PayPal flow reads the top-level id before the nested session
PAYPAL_SESSION_ID_ACCESSORS: List[Accessor] = [
    ("checkout_session", lambda r: field_at(r, "checkout_session")),
    ("id", lambda r: field_at(r, "id")),
    ("data.checkout_session", lambda r: field_at(r, "data", "checkout_session")),
]

# Order matters: Yuno puts the redirect in different places per method/API version
REDIRECT_URL_ACCESSORS: List[Accessor] = [
    ("redirect_url", lambda r: field_at(r, "redirect_url")),
    ("data.redirect_url", lambda r: field_at(r, "data", "redirect_url")),
    ("payment_method.redirect_url", lambda r: field_at(_payment_method(r), "redirect_url")),
    ("detail.redirect_url", lambda r: field_at(_method_detail(r), "redirect_url")),
    ("wallet.redirect_url", lambda r: field_at(_wallet(r), "redirect_url")),
    ("detail.paypal.redirect_url", lambda r: field_at(_method_detail(r), "paypal", "redirect_url")),
    ("approval_url", lambda r: field_at(r, "approval_url")),
    ("payment_method.approval_url", lambda r: field_at(_payment_method(r), "approval_url")),
    ("checkout_url", lambda r: field_at(r, "checkout_url")),
]

PAYMENT_LINK_URL_ACCESSORS: List[Accessor] = [
    ("checkout_url", lambda r: field_at(r, "checkout_url")),
    ("payment_link", lambda r: field_at(r, "payment_link")),
    ("url", lambda r: field_at(r, "url")),
    ("link", lambda r: field_at(r, "link")),
]


def first_present(response: Any, accessors: Sequence[Accessor]) -> Any:
    """Return the first non-empty value produced by ``accessors``."""
    if not isinstance(response, dict):
        return None
    for _name, accessor in accessors:
        value = accessor(response)
        if value:
            return value
    return None


def extract_session_id(response: Any, accessors: Sequence[Accessor] = SESSION_ID_ACCESSORS) -> Optional[str]:
    return first_present(response, accessors)


def extract_redirect_url(response: Any) -> Optional[str]:
    return first_present(response, REDIRECT_URL_ACCESSORS)


def extract_payment_link_url(response: Any) -> Optional[str]:
    return first_present(response, PAYMENT_LINK_URL_ACCESSORS)


def paypal_fallback_amount(amount: Money) -> Money:
    """Amounts of at least 100 are taken as cents; smaller ones as already major."""
    if amount.value >= 100:
        return amount.to_major()
    return Money.major(amount.value, amount.currency)
