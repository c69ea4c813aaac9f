"""Tabby (buy now, pay later) gateway adapter over Tabby's REST API.

Tabby authorizes a payment when the shopper completes the hosted flow and
expects the merchant to capture it. Webhooks carry a shared secret in a
merchant-defined header.
"""

import hmac
import json

import requests

from storefront.domain import logger
from storefront.payments.gateway.port import (
    CaptureResult,
    CheckoutSession,
    PaymentGateway,
    PaymentStatus,
    PaymentVerification,
    WebhookNotification,
)
from storefront.shared.errors import ErrorCode, PaymentProviderError
from storefront.utils import settings
from storefront.utils.http import http_retry

_STATUS_MAP = {
    "CREATED": PaymentStatus.PENDING,
    "AUTHORIZED": PaymentStatus.AUTHORIZED,
    "CLOSED": PaymentStatus.CAPTURED,
    "REJECTED": PaymentStatus.FAILED,
    "EXPIRED": PaymentStatus.EXPIRED,
}


class TabbyGateway(PaymentGateway):
    provider = "tabby"

    def __init__(
        self,
        secret_key: str,
        merchant_code: str,
        webhook_secret: str,
        api_url: str = "https://api.tabby.ai",
        timeout: int = 10,
    ) -> None:
        self.secret_key = secret_key
        self.merchant_code = merchant_code
        self.webhook_secret = webhook_secret
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    @property
    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.secret_key}", "Content-Type": "application/json"}

    @http_retry()
    def _get(self, path: str) -> requests.Response:
        return requests.get(f"{self.api_url}{path}", headers=self._headers, timeout=self.timeout)

    @http_retry()
    def _post(self, path: str, body: dict) -> requests.Response:
        return requests.post(f"{self.api_url}{path}", headers=self._headers, json=body, timeout=self.timeout)

    def create_checkout(self, order) -> CheckoutSession:
        billing = order.billing_details
        body = {
            "payment": {
                "amount": f"{order.total_amount:.2f}",
                "currency": order.currency,
                "buyer": {
                    "email": billing.email if billing else None,
                    "phone": billing.phone if billing else None,
                    "name": f"{billing.first_name} {billing.last_name}" if billing else None,
                },
                "order": {
                    "reference_id": str(order.id),
                    "items": [
                        {
                            "title": item.product_name,
                            "quantity": item.quantity,
                            "unit_price": f"{item.unit_price:.2f}",
                            "reference_id": str(item.product_id),
                        }
                        for item in order.items
                    ],
                },
            },
            "lang": "en",
            "merchant_code": self.merchant_code,
            "merchant_urls": {
                "success": f"{settings.STOREFRONT_BASE_URL}/checkout/success?order={order.id}",
                "cancel": f"{settings.STOREFRONT_BASE_URL}/checkout/cancel?order={order.id}",
                "failure": f"{settings.STOREFRONT_BASE_URL}/checkout/failure?order={order.id}",
            },
        }
        try:
            resp = self._post("/api/v2/checkout", body)
            resp.raise_for_status()
            data = resp.json()
            installments = data["configuration"]["available_products"]["installments"]
            return CheckoutSession(provider_session_id=data["payment"]["id"], redirect_url=installments[0]["web_url"])
        except (requests.RequestException, KeyError, IndexError) as exc:
            logger.error("tabby_checkout_failed", order_id=str(order.id), error=str(exc))
            raise PaymentProviderError(ErrorCode.PAYMENT_VERIFICATION_FAILED, "Could not open Tabby checkout") from exc

    def retrieve_payment(self, payment_id: str) -> PaymentVerification:
        try:
            resp = self._get(f"/api/v2/payments/{payment_id}")
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.error("tabby_retrieve_failed", payment_id=payment_id, error=str(exc))
            raise PaymentProviderError(
                ErrorCode.PAYMENT_VERIFICATION_FAILED, "Could not verify Tabby payment", payment_id=payment_id
            ) from exc

        data = resp.json()
        status = _STATUS_MAP.get(str(data.get("status", "")).upper(), PaymentStatus.PENDING)
        amount = data.get("amount")
        return PaymentVerification(
            payment_id=data.get("id", payment_id),
            status=status,
            reference_id=(data.get("order") or {}).get("reference_id"),
            amount=float(amount) if amount is not None else None,
            currency=data.get("currency"),
        )

    def capture_payment(self, payment_id: str, amount: float, currency: str) -> CaptureResult:
        try:
            resp = self._post(f"/api/v1/payments/{payment_id}/captures", {"amount": f"{amount:.2f}"})
        except requests.RequestException as exc:
            logger.error("tabby_capture_failed", payment_id=payment_id, error=str(exc))
            return CaptureResult(success=False, failure_reason=str(exc))

        if not resp.ok:
            return CaptureResult(success=False, failure_reason=f"Tabby responded {resp.status_code}: {resp.text}")

        captures = resp.json().get("captures") or [{}]
        return CaptureResult(success=True, capture_id=captures[-1].get("id"))

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:  # noqa: ARG002
        if not self.webhook_secret or not signature:
            return False
        return hmac.compare_digest(signature, self.webhook_secret)

    def parse_webhook(self, payload: bytes) -> WebhookNotification | None:
        body = json.loads(payload)
        if not body.get("id"):
            return None
        return WebhookNotification(
            payment_id=body["id"],
            reference_id=(body.get("order") or {}).get("reference_id"),
            event_type=body.get("status"),
        )
