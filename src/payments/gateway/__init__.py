"""Payment gateway registry.

Adapters are registered by name. The ordering engine picks one from the
order's payment method; webhook routes pick the one for their provider.
- PaystackGateway / FlutterwaveGateway when credentials are configured
- FakeGateway in every non-production environment
"""

import structlog

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.flutterwave_adapter import FlutterwaveGateway
from payments.gateway.paystack_adapter import PaystackGateway
from payments.gateway.port import PaymentGateway, PaymentGatewayError
from shared.config import Settings

logger = structlog.get_logger(__name__)


class GatewayRegistry:
    def __init__(self, gateways: dict[str, PaymentGateway] | None = None):
        self._gateways: dict[str, PaymentGateway] = dict(gateways or {})

    def register(self, gateway: PaymentGateway, name: str | None = None) -> None:
        self._gateways[name or gateway.name] = gateway

    def names(self) -> list[str]:
        return sorted(self._gateways)

    def __contains__(self, name: str) -> bool:
        return name in self._gateways

    def get(self, name: str) -> PaymentGateway:
        try:
            return self._gateways[name]
        except KeyError:
            raise PaymentGatewayError(f"Unsupported payment method: {name}") from None


def build_gateways(settings: Settings) -> GatewayRegistry:
    """Register every adapter the settings provide credentials for."""
    registry = GatewayRegistry()

    if settings.paystack_secret_key:
        registry.register(
            PaystackGateway(
                secret_key=settings.paystack_secret_key,
                base_url=settings.paystack_base_url,
                callback_url=settings.payment_callback_url,
                timeout=settings.gateway_timeout,
            )
        )

    if settings.flutterwave_secret_key:
        registry.register(
            FlutterwaveGateway(
                secret_key=settings.flutterwave_secret_key,
                secret_hash=settings.flutterwave_secret_hash,
                base_url=settings.flutterwave_base_url,
                redirect_url=settings.payment_callback_url,
                currency=settings.currency,
                timeout=settings.gateway_timeout,
            )
        )

    if not settings.is_production:
        registry.register(FakeGateway())

    logger.info("Payment gateways registered", gateways=registry.names())
    return registry
