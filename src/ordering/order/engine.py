"""Order lifecycle engine.

Turns a cart into an order, opens a payment for it with the chosen gateway,
and reconciles the order's payment status from gateway webhooks. Webhooks may
be repeated or name a reference that has since been replaced, so every
transition is a conditional write in ``OrderStore`` and side
effects only run when that write actually matched.
"""

import structlog
from sqlalchemy.exc import IntegrityError

from catalogue.product.product import ProductCatalog
from identity.user.user import User, UserDirectory
from ordering.cart.store import CartStore
from ordering.order.hooks import OrderHooks, shipping_name
from ordering.order.order import (
    TERMINAL_STATES,
    Order,
    OrderStatus,
    PaymentStatus,
    is_valid_transition,
)
from ordering.order.store import OrderStore
from payments.gateway import GatewayRegistry
from payments.gateway.port import PaymentGateway, PaymentGatewayError, PaymentOutcome, WebhookEvent
from shared.exceptions import BadRequestError, NotFoundError

logger = structlog.get_logger(__name__)

_REFERENCE_ATTEMPTS = 3


class OrderLifecycleEngine:
    def __init__(
        self,
        orders: OrderStore,
        carts: CartStore,
        catalog: ProductCatalog,
        users: UserDirectory,
        gateways: GatewayRegistry,
        hooks: OrderHooks,
        default_payment_method: str = "paystack",
    ):
        self.orders = orders
        self.carts = carts
        self.catalog = catalog
        self.users = users
        self.gateways = gateways
        self.hooks = hooks
        self.default_payment_method = default_payment_method

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def create_order(self, user_id: str, shipping_address: dict, payment_method: str | None = None) -> dict:
        """Create a pending order from the user's cart and open a payment for it.

        Prices and names are read from the catalogue now, not from the cart.
        Any missing or out-of-stock product rejects the whole request before
        anything is written. Once the order is stored the cart is cleared,
        even if the gateway then fails: the order can be paid later through
        ``reinitialize_payment``.
        """
        user = self.users.get(user_id)
        method = payment_method or self.default_payment_method
        gateway = self.gateways.get(method)

        cart = self.carts.find(user.id)
        if cart is None or cart.is_empty:
            raise BadRequestError("Cart is empty")

        lines = []
        for item in cart.items:
            product = self.catalog.find(item.product_id)
            if product is None:
                raise BadRequestError(f"Product {item.product_id} not found")
            if product.out_of_stock:
                raise BadRequestError(f"Product {product.name} is out of stock")
            lines.append(
                {"product_id": product.id, "name": product.name, "quantity": item.quantity, "price": product.price}
            )

        order = self._persist_order(user.id, lines, shipping_address, method, gateway)
        logger.info(
            "Order created",
            order_id=order.id,
            user_id=user.id,
            total_amount=order.total_amount,
            payment_method=method,
            reference=order.payment_reference,
        )

        self.carts.clear(user.id)

        try:
            link = gateway.initialize_payment(
                email=user.email,
                amount=order.total_amount,
                reference=order.payment_reference,
                metadata=self._payment_metadata(order, user),
            )
        except PaymentGatewayError as exc:
            logger.warning(
                "Payment initialization failed, order left pending",
                order_id=order.id,
                reference=order.payment_reference,
                error=exc.message,
            )
            raise

        return {"payment_url": link.authorization_url, "order_id": order.id, "reference": order.payment_reference}

    def _persist_order(
        self, user_id: str, lines: list[dict], shipping_address: dict, method: str, gateway: PaymentGateway
    ) -> Order:
        for attempt in range(1, _REFERENCE_ATTEMPTS + 1):
            order = Order.create(
                user_id=user_id,
                lines=lines,
                shipping_address=shipping_address,
                payment_method=method,
                reference=gateway.generate_reference(),
                gateway=method,
            )
            try:
                return self.orders.add(order)
            except IntegrityError:
                self.orders.session.rollback()
                logger.warning("Payment reference collision", attempt=attempt)
        raise BadRequestError("Could not allocate a payment reference, please retry")

    @staticmethod
    def _payment_metadata(order: Order, user: User) -> dict:
        return {"order_id": order.id, "user_id": user.id, "customer_name": shipping_name(order) or user.name}

    def reinitialize_payment(self, order_id: str, user_id: str) -> dict:
        """Issue a fresh reference and payment URL for an unpaid order.

        The previous reference is superseded only if it is still the active
        one when the new reference is written.
        """
        user = self.users.get(user_id)
        order = self.orders.find(order_id, user_id=user.id)
        if order is None:
            raise NotFoundError("Order not found")
        if order.is_paid:
            raise BadRequestError("Order already paid")
        if order.payment_status == PaymentStatus.REFUNDED.value:
            raise BadRequestError("Order has been refunded")
        if order.order_status == OrderStatus.CANCELLED.value:
            raise BadRequestError("Cancelled orders cannot be paid")

        attempt = order.active_attempt
        gateway_name = attempt.gateway if attempt else order.payment_method
        gateway = self.gateways.get(gateway_name)

        old_reference = order.payment_reference
        new_reference = gateway.generate_reference()
        link = gateway.initialize_payment(
            email=user.email,
            amount=order.total_amount,
            reference=new_reference,
            metadata=self._payment_metadata(order, user),
        )

        if not self.orders.swap_reference(order.id, old_reference, new_reference, gateway_name):
            logger.warning("Payment reinitialization lost a race", order_id=order.id, reference=old_reference)
            raise BadRequestError("Order payment changed while reinitializing, please retry")

        logger.info("Payment reinitialized", order_id=order.id, old_reference=old_reference, reference=new_reference)
        return {"payment_url": link.authorization_url, "order_id": order.id, "reference": new_reference}

    # -------------------------------------------------------------------
    # Webhook reconciliation
    # -------------------------------------------------------------------
    def handle_webhook(self, gateway_name: str, event: WebhookEvent) -> Order | None:
        """Apply a verified gateway event; ignored event types return ``None``."""
        if event.outcome is PaymentOutcome.IGNORED or not event.reference:
            logger.info("Webhook event ignored", gateway=gateway_name, event_type=event.event_type)
            return None
        if event.outcome is PaymentOutcome.SUCCESS:
            return self.handle_successful_payment(event.reference, event.transaction_id, event.brand)
        return self.handle_failed_payment(event.reference, event.transaction_id)

    def handle_successful_payment(
        self,
        reference: str,
        transaction_id: str | None = None,
        brand: str | None = None,
    ) -> Order:
        order = self._resolve(reference)
        if order.payment_reference != reference:
            # Money was captured on an older attempt; it still settles the order
            logger.warning("Payment succeeded on superseded reference", order_id=order.id, reference=reference)

        applied = self.orders.mark_paid(order.id, reference, transaction_id=transaction_id, payment_method=brand)
        order = self.orders.find(order.id)
        if not applied:
            logger.info(
                "Duplicate payment notification ignored",
                order_id=order.id,
                reference=reference,
                payment_status=order.payment_status,
            )
            return order

        logger.info(
            "Payment succeeded",
            order_id=order.id,
            reference=reference,
            transaction_id=transaction_id,
            order_status=order.order_status,
        )
        if order.order_status == OrderStatus.CANCELLED.value:
            logger.warning("Payment received for cancelled order", order_id=order.id, reference=reference)

        self.hooks.on_payment_succeeded(order, self.users.find(order.user_id))
        return order

    def handle_failed_payment(self, reference: str, transaction_id: str | None = None) -> Order:
        order = self._resolve(reference)
        if order.payment_reference != reference:
            logger.info("Failure for superseded reference ignored", order_id=order.id, reference=reference)
            return order

        applied = self.orders.mark_failed(order.id, reference, transaction_id=transaction_id)
        order = self.orders.find(order.id)
        if not applied:
            logger.info(
                "Duplicate payment notification ignored",
                order_id=order.id,
                reference=reference,
                payment_status=order.payment_status,
            )
            return order

        logger.info("Payment failed", order_id=order.id, reference=reference, transaction_id=transaction_id)
        self.hooks.on_payment_failed(order, self.users.find(order.user_id))
        return order

    def _resolve(self, reference: str) -> Order:
        order = self.orders.find_by_reference(reference)
        if order is None:
            raise NotFoundError(f"Order not found for reference {reference}")
        return order

    def get_payment_status(self, reference: str) -> dict:
        order = self._resolve(reference)
        return {
            "reference": reference,
            "order_id": order.id,
            "payment_status": order.payment_status,
            "order_status": order.order_status,
            "is_paid": order.payment_status == PaymentStatus.SUCCESS.value,
            "is_failed": order.payment_status == PaymentStatus.FAILED.value,
        }

    # -------------------------------------------------------------------
    # Status changes
    # -------------------------------------------------------------------
    def cancel_order(self, order_id: str, scope_user_id: str | None = None) -> Order:
        if not self.orders.cancel(order_id, user_id=scope_user_id):
            if self.orders.find(order_id, user_id=scope_user_id) is None:
                raise NotFoundError("Order not found")
            raise BadRequestError("Order cannot be cancelled at this stage")

        order = self.orders.find(order_id)
        logger.info("Order cancelled", order_id=order.id, scoped_to=scope_user_id, payment_status=order.payment_status)
        return order

    def update_order_status(self, order_id: str, new_status: OrderStatus) -> Order:
        """Admin overwrite. Always applied; unusual moves are logged for audit."""
        order = self.orders.find(order_id)
        if order is None:
            raise NotFoundError("Order not found")

        previous = OrderStatus(order.order_status)
        if previous != new_status and (previous in TERMINAL_STATES or not is_valid_transition(previous, new_status)):
            logger.warning(
                "Order status overwritten outside the usual lifecycle",
                order_id=order.id,
                previous_status=previous.value,
                new_status=new_status.value,
                payment_status=order.payment_status,
            )

        order = self.orders.overwrite_status(order, new_status)
        logger.info("Order status updated", order_id=order.id, previous_status=previous.value, status=new_status.value)
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_order(self, order_id: str, scope_user_id: str | None = None) -> Order:
        order = self.orders.find(order_id, user_id=scope_user_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    def get_user_orders(self, user_id: str, page: int = 1, limit: int = 10) -> dict:
        user = self.users.get(user_id)
        orders, pagination = self.orders.search(user_id=user.id, page=page, limit=limit)
        return {"orders": orders, "pagination": pagination}

    def get_all_orders(self, page: int = 1, limit: int = 10, **filters) -> dict:
        orders, pagination = self.orders.search(page=page, limit=limit, **filters)
        return {"orders": orders, "pagination": pagination}

    def get_last_shipping_address(self, user_id: str) -> dict:
        address = self.orders.last_shipping_address(user_id)
        if address is None:
            raise NotFoundError("No previous orders found")
        return address
