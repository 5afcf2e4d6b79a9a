"""Configurable fake payment gateway for development and testing.

Simulates a hosted payment page without any external calls. It can be told
to fail initialization, and records every call it receives so tests can
assert on amounts, references and metadata. Webhooks signed with
``test-signature`` are accepted.
"""

import structlog
from pydantic import ValidationError

from payments.api.schemas import FakeGatewayEvent
from payments.gateway.port import PaymentGateway, PaymentGatewayError, PaymentLink, PaymentOutcome, WebhookEvent

logger = structlog.get_logger(__name__)

TEST_SIGNATURE = "test-signature"


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    name = "fake"
    reference_prefix = "fake"

    def __init__(self, name: str = "fake") -> None:
        self.name = name
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def initialize_payment(self, email: str, amount: float, reference: str, metadata: dict) -> PaymentLink:
        self.calls.append(
            {
                "method": "initialize_payment",
                "email": email,
                "amount": amount,
                "reference": reference,
                "metadata": metadata,
            }
        )
        if not self.should_succeed:
            raise PaymentGatewayError(f"Payment initialization failed: {self.failure_reason}")
        return PaymentLink(authorization_url=f"https://pay.example.test/{reference}", reference=reference)

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:  # noqa: ARG002
        return signature == TEST_SIGNATURE

    def parse_event(self, payload: dict) -> WebhookEvent:
        try:
            envelope = FakeGatewayEvent.model_validate(payload)
        except ValidationError as exc:
            logger.warning("Malformed fake gateway webhook ignored", errors=exc.error_count())
            return WebhookEvent.ignored()

        outcome = {
            "success": PaymentOutcome.SUCCESS,
            "failed": PaymentOutcome.FAILED,
        }.get(envelope.status, PaymentOutcome.IGNORED)
        return WebhookEvent(
            reference=envelope.reference,
            outcome=outcome,
            transaction_id=envelope.transaction_id,
            brand=envelope.brand,
            event_type=envelope.status,
        )
