"""FastAPI routes for payment gateway callbacks.

The signature is checked against the exact raw body before anything is
parsed. After that every outcome is acknowledged with 200 so the provider
stops retrying; problems are logged instead.
"""

import json

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from ordering.api.dependencies import get_engine
from ordering.order.engine import OrderLifecycleEngine
from payments.api.schemas import WebhookAckResponse
from payments.gateway import flutterwave_adapter, paystack_adapter
from shared.exceptions import ShopError

logger = structlog.get_logger(__name__)

webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])


async def _process_webhook(
    request: Request,
    gateway_name: str,
    signature_header: str,
    engine: OrderLifecycleEngine,
) -> WebhookAckResponse:
    gateways = request.app.state.gateways
    if gateway_name not in gateways:
        logger.warning("Webhook for unconfigured gateway", gateway=gateway_name)
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    gateway = gateways.get(gateway_name)
    raw_body = await request.body()
    if not gateway.verify_webhook_signature(raw_body, request.headers.get(signature_header, "")):
        logger.warning("Webhook signature rejected", gateway=gateway_name)
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    try:
        event = gateway.parse_event(json.loads(raw_body))
        logger.info(
            "Webhook received",
            gateway=gateway_name,
            event_type=event.event_type,
            reference=event.reference,
            outcome=event.outcome.value,
        )
        await run_in_threadpool(engine.handle_webhook, gateway_name, event)
    except ShopError as exc:
        logger.warning("Webhook not applied", gateway=gateway_name, error=exc.kind, message=exc.message)
    except Exception:
        logger.exception("Webhook processing failed", gateway=gateway_name)

    return WebhookAckResponse()


@webhook_router.post("/paystack", response_model=WebhookAckResponse)
async def paystack_webhook(request: Request, engine: OrderLifecycleEngine = Depends(get_engine)) -> WebhookAckResponse:
    """Paystack ``charge.*`` events, signed with ``x-paystack-signature``."""
    return await _process_webhook(request, "paystack", paystack_adapter.SIGNATURE_HEADER, engine)


@webhook_router.post("/flutterwave", response_model=WebhookAckResponse)
async def flutterwave_webhook(
    request: Request, engine: OrderLifecycleEngine = Depends(get_engine)
) -> WebhookAckResponse:
    """Flutterwave charge events, authenticated by the ``verif-hash`` header."""
    return await _process_webhook(request, "flutterwave", flutterwave_adapter.SIGNATURE_HEADER, engine)
