"""Storefront FastAPI application.

Serves the cart, order, admin reporting and payment webhook endpoints. All
collaborators (database sessions, payment gateways, email channel, clock)
hang off ``app.state`` and are assembled per request, so tests can build an
app around a throwaway database and fake adapters.

Usage:
    uvicorn app:create_app --factory --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from collections.abc import Callable
from datetime import datetime
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import sessionmaker

from notifications.channel import build_email_channel, set_channel
from notifications.channel.email_port import EmailPort
from notifications.domain import notifications
from notifications.notification.notification import NotificationChannel
from ordering.api.routes import cart_router, order_router
from payments.api.routes import webhook_router
from payments.gateway import GatewayRegistry, build_gateways
from shared.api import register_exception_handlers
from shared.config import Settings, get_settings
from shared.db import build_engine, build_session_factory, setup_db, utcnow
from shared.logging import add_context, clear_context, configure_logging

logger = structlog.get_logger(__name__)

# The Notifications domain is initialized at module level so uvicorn workers
# share its registry; each payment hook pushes its own domain context.
notifications.init()


def create_app(
    settings: Settings | None = None,
    session_factory: sessionmaker | None = None,
    gateways: GatewayRegistry | None = None,
    email: EmailPort | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    if session_factory is None:
        engine = build_engine(settings.database_url)
        setup_db(engine)
        session_factory = build_session_factory(engine)

    app = FastAPI(
        title="Storefront API",
        description="E-commerce backend: carts, orders, payments and admin reporting",
    )
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.gateways = gateways if gateways is not None else build_gateways(settings)
    app.state.email = email if email is not None else build_email_channel(settings)
    set_channel(NotificationChannel.EMAIL.value, app.state.email)
    app.state.clock = clock

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.app_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.middleware("http")
    async def bind_request_context(request: Request, call_next):
        clear_context()
        add_context(
            request_id=request.headers.get("x-request-id") or uuid4().hex,
            method=request.method,
            path=request.url.path,
        )
        try:
            return await call_next(request)
        finally:
            clear_context()

    app.include_router(cart_router)
    app.include_router(order_router)
    app.include_router(webhook_router)

    @app.get("/health")
    async def health():
        return JSONResponse(content={"status": "ok", "env": settings.env, "gateways": app.state.gateways.names()})

    logger.info("Application created", env=settings.env)
    return app
