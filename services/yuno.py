import json
import logging
from typing import Any, Dict, Optional

import requests
from fastapi import Depends

from core.config import Settings, get_settings

logger = logging.getLogger("checkout.yuno")


def first_message(body: Any) -> Any:
    """First entry of a Yuno `messages` list, if there is one."""
    messages = body.get("messages") if isinstance(body, dict) else None
    if isinstance(messages, list) and messages:
        return messages[0]
    return None


class YunoApiError(Exception):
    """Failure talking to the Yuno API.

    ``status`` is the HTTP status when Yuno answered, ``None`` for transport
    or decoding failures.
    """

    def __init__(self, message: str, status: Optional[int] = None, code: Optional[str] = None, body: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.body = body or {}


class YunoClient:
    def __init__(self, settings: Settings):
        self.settings = settings

    def _headers(self, idempotency_key: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "public-api-key": self.settings.PUBLIC_API_KEY,
            "private-secret-key": self.settings.PRIVATE_SECRET_KEY,
            "Content-Type": "application/json",
        }
        if idempotency_key:
            headers["X-idempotency-key"] = idempotency_key
        return headers

    def _url(self, path: str) -> str:
        return f"{self.settings.API_URL}{path}"

    def _send(self, name: str, method: str, path: str, payload: Optional[Dict[str, Any]] = None, idempotency_key: Optional[str] = None) -> requests.Response:
        url = self._url(path)
        try:
            if method == "GET":
                resp = requests.get(url, headers=self._headers(), timeout=self.settings.YUNO_TIMEOUT_SECONDS)
            else:
                resp = requests.post(
                    url,
                    json=payload,
                    headers=self._headers(idempotency_key),
                    timeout=self.settings.YUNO_TIMEOUT_SECONDS,
                )
        except requests.RequestException as e:
            logger.error(f"Yuno {name} {method} {url} failed: {e}")
            raise YunoApiError(str(e)) from e

        logger.info(f"Yuno {name} {method} {url} -> {resp.status_code}")
        if payload is not None:
            logger.debug(f"Yuno {name} request: {json.dumps(payload, default=str)}")
        return resp

    @staticmethod
    def _decode(name: str, resp: requests.Response) -> Dict[str, Any]:
        try:
            data = resp.json()
        except ValueError as e:
            raise YunoApiError(f"Invalid JSON from Yuno ({name}): {e}", status=resp.status_code) from e
        logger.debug(f"Yuno {name} response: {json.dumps(data, default=str)}")
        return data

    def create_checkout_session(self, order: Dict[str, Any]) -> Dict[str, Any]:
        resp = self._send("create checkout session", "POST", "/v1/checkout/sessions", order)
        data = self._decode("create checkout session", resp)
        if not resp.ok:
            body = data if isinstance(data, dict) else {}
            message = first_message(body) or body.get("message") or resp.reason
            raise YunoApiError(message, status=resp.status_code, code=body.get("code"), body=body)
        return data

    def create_payment(self, idempotency_key: str, payment: Dict[str, Any]) -> Dict[str, Any]:
        resp = self._send("create payment", "POST", "/v1/payments", payment, idempotency_key=idempotency_key)
        return self._decode("create payment", resp)

    def get_payment_methods(self, checkout_session: str) -> Dict[str, Any]:
        resp = self._send("get payment methods", "GET", f"/v1/checkout/sessions/{checkout_session}/payment-methods")
        return self._decode("get payment methods", resp)

    def create_payment_link(self, payment_link: Dict[str, Any]) -> Dict[str, Any]:
        resp = self._send("create payment link", "POST", "/v1/payment-links", payment_link)
        return self._decode("create payment link", resp)


def get_yuno_client(settings: Settings = Depends(get_settings)) -> YunoClient:
    return YunoClient(settings)
