"""Pydantic schemas for gateway traffic.

Provider responses to payment initialization and the webhook envelopes they
post back are validated here before any field is read. Unknown keys are
ignored; missing required keys fail validation.
"""

from pydantic import BaseModel


class WebhookAckResponse(BaseModel):
    message: str = "Webhook processed successfully"


# ---------------------------------------------------------------------------
# Paystack
# ---------------------------------------------------------------------------
class PaystackInitializeData(BaseModel):
    authorization_url: str
    reference: str | None = None


class PaystackInitializeResponse(BaseModel):
    status: bool
    message: str | None = None
    data: PaystackInitializeData | None = None


class PaystackAuthorization(BaseModel):
    brand: str | None = None


class PaystackChargeData(BaseModel):
    id: int | str | None = None
    reference: str | None = None
    authorization: PaystackAuthorization | None = None


class PaystackEvent(BaseModel):
    event: str
    data: PaystackChargeData


# ---------------------------------------------------------------------------
# Flutterwave
# ---------------------------------------------------------------------------
class FlutterwaveInitializeData(BaseModel):
    link: str


class FlutterwaveInitializeResponse(BaseModel):
    status: str
    message: str | None = None
    data: FlutterwaveInitializeData | None = None


class FlutterwaveCard(BaseModel):
    type: str | None = None


class FlutterwaveChargeData(BaseModel):
    id: int | str | None = None
    tx_ref: str | None = None
    status: str | None = None
    card: FlutterwaveCard | None = None


class FlutterwaveEvent(BaseModel):
    event: str | None = None
    data: FlutterwaveChargeData


# ---------------------------------------------------------------------------
# Fake gateway
# ---------------------------------------------------------------------------
class FakeGatewayEvent(BaseModel):
    reference: str | None = None
    status: str | None = None
    transaction_id: str | None = None
    brand: str | None = None
