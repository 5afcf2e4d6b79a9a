"""Flutterwave adapter (charge event model).

Payments are opened with ``tx_ref`` as our reference. Webhooks carry a
``verif-hash`` header that must equal the secret hash configured on the
Flutterwave dashboard.
"""

import hmac

import httpx
import structlog
from pydantic import ValidationError

from payments.api.schemas import FlutterwaveEvent, FlutterwaveInitializeResponse
from payments.gateway.port import (
    INVALID_RESPONSE,
    PaymentGateway,
    PaymentGatewayError,
    PaymentLink,
    PaymentOutcome,
    WebhookEvent,
)

logger = structlog.get_logger(__name__)

SIGNATURE_HEADER = "verif-hash"


class FlutterwaveGateway(PaymentGateway):
    name = "flutterwave"
    reference_prefix = "flw"

    def __init__(
        self,
        secret_key: str,
        secret_hash: str,
        base_url: str = "https://api.flutterwave.com/v3",
        redirect_url: str | None = None,
        currency: str = "NGN",
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.secret_hash = secret_hash
        self.redirect_url = redirect_url
        self.currency = currency
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Authorization": f"Bearer {secret_key}"},
        )

    def initialize_payment(self, email: str, amount: float, reference: str, metadata: dict) -> PaymentLink:
        body = {
            "tx_ref": reference,
            "amount": amount,
            "currency": self.currency,
            "customer": {"email": email},
            "meta": metadata,
        }
        if self.redirect_url:
            body["redirect_url"] = self.redirect_url

        try:
            response = self._client.post("/payments", json=body)
        except httpx.HTTPError as exc:
            logger.error("Flutterwave initialization failed", reference=reference, error=str(exc))
            raise PaymentGatewayError(f"Payment initialization failed: {exc}") from exc

        try:
            envelope = FlutterwaveInitializeResponse.model_validate_json(response.content)
        except ValidationError as exc:
            logger.error(
                "Flutterwave returned an invalid response",
                reference=reference,
                status_code=response.status_code,
                errors=exc.error_count(),
            )
            raise PaymentGatewayError(INVALID_RESPONSE) from exc

        if response.is_error or envelope.status != "success":
            message = envelope.message or f"HTTP {response.status_code}"
            logger.error("Flutterwave rejected initialization", reference=reference, message=message)
            raise PaymentGatewayError(f"Payment initialization failed: {message}")

        if envelope.data is None:
            logger.error("Flutterwave response carried no payment link", reference=reference)
            raise PaymentGatewayError(INVALID_RESPONSE)

        return PaymentLink(authorization_url=envelope.data.link, reference=reference)

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:  # noqa: ARG002
        if not signature or not self.secret_hash:
            return False
        return hmac.compare_digest(signature, self.secret_hash)

    def parse_event(self, payload: dict) -> WebhookEvent:
        try:
            envelope = FlutterwaveEvent.model_validate(payload)
        except ValidationError as exc:
            logger.warning("Malformed Flutterwave webhook ignored", errors=exc.error_count())
            return WebhookEvent.ignored()

        data = envelope.data
        if data.status == "successful":
            outcome = PaymentOutcome.SUCCESS
        elif data.tx_ref:
            outcome = PaymentOutcome.FAILED
        else:
            outcome = PaymentOutcome.IGNORED

        return WebhookEvent(
            reference=data.tx_ref,
            outcome=outcome,
            transaction_id=str(data.id) if data.id is not None else None,
            brand=data.card.type if data.card else None,
            event_type=envelope.event,
        )
