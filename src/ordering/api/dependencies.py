"""Per-request assembly of the ordering services."""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from catalogue.product.product import ProductCatalog
from identity.user.user import UserDirectory
from ordering.cart.store import CartStore
from ordering.order.engine import OrderLifecycleEngine
from ordering.order.hooks import OrderHooks
from ordering.order.store import OrderStore
from ordering.reporting.dashboard import DashboardAggregator
from shared.api import get_session


def get_cart_store(session: Session = Depends(get_session)) -> CartStore:
    return CartStore(session, ProductCatalog(session))


def get_engine(request: Request, session: Session = Depends(get_session)) -> OrderLifecycleEngine:
    state = request.app.state
    catalog = ProductCatalog(session)
    return OrderLifecycleEngine(
        orders=OrderStore(session),
        carts=CartStore(session, catalog),
        catalog=catalog,
        users=UserDirectory(session),
        gateways=state.gateways,
        hooks=OrderHooks(currency=state.settings.currency),
        default_payment_method=state.settings.default_payment_method,
    )


def get_dashboard(request: Request, session: Session = Depends(get_session)) -> DashboardAggregator:
    return DashboardAggregator(session, ProductCatalog(session), clock=request.app.state.clock)
