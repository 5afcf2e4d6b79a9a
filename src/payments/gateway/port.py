"""Payment gateway port (abstract interface).

Defines the contract every payment provider adapter implements: issuing a
reference, opening a hosted payment page, authenticating webhook callbacks
and translating the provider's event payload into a ``WebhookEvent``. The
ordering engine only talks to this interface.
"""

import secrets
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from shared.exceptions import BadRequestError


class PaymentGatewayError(BadRequestError):
    """The provider could not be reached or refused the request."""


INVALID_RESPONSE = "Payment initialization failed: invalid gateway response"


class PaymentOutcome(Enum):
    SUCCESS = "success"
    FAILED = "failed"
    IGNORED = "ignored"


@dataclass(frozen=True)
class PaymentLink:
    """Where to send the customer to pay, and the reference it pays."""

    authorization_url: str
    reference: str


@dataclass(frozen=True)
class WebhookEvent:
    """A provider callback reduced to what reconciliation needs."""

    reference: str | None
    outcome: PaymentOutcome
    transaction_id: str | None = None
    brand: str | None = None
    event_type: str | None = None

    @classmethod
    def ignored(cls, event_type: str | None = None) -> "WebhookEvent":
        return cls(reference=None, outcome=PaymentOutcome.IGNORED, event_type=event_type)


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    name: str = ""
    reference_prefix: str = "ref"

    def generate_reference(self) -> str:
        """``<prefix>_<epoch-ms>_<random>``; uniqueness is also enforced by the order store."""
        return f"{self.reference_prefix}_{int(time.time() * 1000)}_{secrets.token_hex(6)}"

    @abstractmethod
    def initialize_payment(self, email: str, amount: float, reference: str, metadata: dict) -> PaymentLink:
        """Open a payment for ``amount`` (major units) and return the customer-facing URL."""
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        """Verify that a raw webhook body is authentically from the gateway."""
        ...

    @abstractmethod
    def parse_event(self, payload: dict) -> WebhookEvent:
        """Translate a verified webhook body into a ``WebhookEvent``."""
        ...
