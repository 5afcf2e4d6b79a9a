"""FastAPI plumbing shared by all routers: DB session dependency and error mapping."""

from collections.abc import Iterator

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from shared.exceptions import ShopError

logger = structlog.get_logger(__name__)


def get_session(request: Request) -> Iterator[Session]:
    """Request-scoped session; anything not committed is rolled back on close."""
    session = request.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


async def _shop_error_handler(request: Request, exc: ShopError) -> JSONResponse:
    logger.info(
        "Request rejected",
        path=request.url.path,
        status_code=exc.status_code,
        error=exc.kind,
        message=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    """Render ``ShopError`` subclasses as structured JSON error responses."""
    app.add_exception_handler(ShopError, _shop_error_handler)
