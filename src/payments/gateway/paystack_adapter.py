"""Paystack adapter (reference + redirect model).

The customer is sent to Paystack's hosted page; the outcome arrives later as a
``charge.*`` webhook signed with an HMAC-SHA512 of the raw body.
"""

import hashlib
import hmac

import httpx
import structlog
from pydantic import ValidationError

from payments.api.schemas import PaystackEvent, PaystackInitializeResponse
from payments.gateway.port import (
    INVALID_RESPONSE,
    PaymentGateway,
    PaymentGatewayError,
    PaymentLink,
    PaymentOutcome,
    WebhookEvent,
)

logger = structlog.get_logger(__name__)

SIGNATURE_HEADER = "x-paystack-signature"

_EVENT_OUTCOMES = {
    "charge.success": PaymentOutcome.SUCCESS,
    "charge.failed": PaymentOutcome.FAILED,
    "charge.dispute": PaymentOutcome.FAILED,
}


class PaystackGateway(PaymentGateway):
    name = "paystack"
    reference_prefix = "ps"

    def __init__(
        self,
        secret_key: str,
        base_url: str = "https://api.paystack.co",
        callback_url: str | None = None,
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.secret_key = secret_key
        self.callback_url = callback_url
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Authorization": f"Bearer {secret_key}"},
        )

    def initialize_payment(self, email: str, amount: float, reference: str, metadata: dict) -> PaymentLink:
        body = {
            "email": email,
            # Paystack expects minor units (kobo)
            "amount": int(round(amount * 100)),
            "reference": reference,
            "metadata": metadata,
        }
        if self.callback_url:
            body["callback_url"] = self.callback_url

        try:
            response = self._client.post("/transaction/initialize", json=body)
        except httpx.HTTPError as exc:
            logger.error("Paystack initialization failed", reference=reference, error=str(exc))
            raise PaymentGatewayError(f"Payment initialization failed: {exc}") from exc

        try:
            envelope = PaystackInitializeResponse.model_validate_json(response.content)
        except ValidationError as exc:
            logger.error(
                "Paystack returned an invalid response",
                reference=reference,
                status_code=response.status_code,
                errors=exc.error_count(),
            )
            raise PaymentGatewayError(INVALID_RESPONSE) from exc

        if response.is_error or not envelope.status:
            message = envelope.message or f"HTTP {response.status_code}"
            logger.error("Paystack rejected initialization", reference=reference, message=message)
            raise PaymentGatewayError(f"Payment initialization failed: {message}")

        if envelope.data is None:
            logger.error("Paystack response carried no payment link", reference=reference)
            raise PaymentGatewayError(INVALID_RESPONSE)

        return PaymentLink(
            authorization_url=envelope.data.authorization_url,
            reference=envelope.data.reference or reference,
        )

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        if not signature or not self.secret_key:
            return False
        expected = hmac.new(self.secret_key.encode(), payload, hashlib.sha512).hexdigest()
        return hmac.compare_digest(expected, signature)

    def parse_event(self, payload: dict) -> WebhookEvent:
        try:
            envelope = PaystackEvent.model_validate(payload)
        except ValidationError as exc:
            logger.warning("Malformed Paystack webhook ignored", errors=exc.error_count())
            return WebhookEvent.ignored()

        data = envelope.data
        return WebhookEvent(
            reference=data.reference,
            outcome=_EVENT_OUTCOMES.get(envelope.event, PaymentOutcome.IGNORED),
            transaction_id=str(data.id) if data.id is not None else None,
            brand=data.authorization.brand if data.authorization else None,
            event_type=envelope.event,
        )
