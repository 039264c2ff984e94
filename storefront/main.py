# storefront/main.py
import uvicorn
from redis.exceptions import RedisError
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from storefront.api.routers import addresses, auth, carts, catalog, favorites, health, orders, shared_orders
from storefront.data import models  # noqa: F401  registers every table on Base.metadata
from storefront.data.database import Base, engine
from storefront.domain.errors import (
    AuthRequiredError,
    ExpiredError,
    InactiveError,
    InsufficientStockError,
    NotFoundError,
    NothingAvailableError,
    PaymentError,
    RemoteOperationError,
    StorefrontError,
    ValidationError,
)
from storefront.utils.logging import get_logger
from storefront.utils.settings import DATA_BACKEND

logger = get_logger(__name__)

STATUS_CODES = (
    (ValidationError, 400),
    (InsufficientStockError, 409),
    (NotFoundError, 404),
    (ExpiredError, 410),
    (InactiveError, 410),
    (NothingAvailableError, 422),
    (AuthRequiredError, 401),
    (PaymentError, 402),
)


def _status_for(exc: StorefrontError) -> int:
    for error_type, status in STATUS_CODES:
        if isinstance(exc, error_type):
            return status
    return 400


async def storefront_error_handler(request: Request, exc: StorefrontError):
    body = {"detail": exc.message}
    if isinstance(exc, ValidationError):
        if exc.field:
            body["field"] = exc.field
        if exc.incomplete_categories:
            body["incomplete_categories"] = exc.incomplete_categories
    elif isinstance(exc, InsufficientStockError):
        body.update(product_id=exc.product_id, requested=exc.requested, available=exc.available)
    elif isinstance(exc, NothingAvailableError):
        body["skipped"] = exc.skipped

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthRequiredError) else None
    return JSONResponse(status_code=_status_for(exc), content=body, headers=headers)


async def remote_error_handler(request: Request, exc: RemoteOperationError):
    logger.error(f"{request.method} {request.url.path} failed remotely: {exc.message}")
    return JSONResponse(status_code=502, content={"detail": "Something went wrong, please try again later"})


async def session_store_error_handler(request: Request, exc: RedisError):
    logger.error(f"{request.method} {request.url.path} session store unavailable: {exc}")
    return JSONResponse(status_code=502, content={"detail": "Something went wrong, please try again later"})


async def permission_error_handler(request: Request, exc: PermissionError):
    return JSONResponse(status_code=403, content={"detail": str(exc)})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront",
        version="1.0.0",
    )

    if DATA_BACKEND == "sql":
        Base.metadata.create_all(bind=engine)
        logger.info(f"Tables ready: {sorted(Base.metadata.tables)}")

    app.add_exception_handler(RemoteOperationError, remote_error_handler)
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(PermissionError, permission_error_handler)
    app.add_exception_handler(RedisError, session_store_error_handler)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(catalog.router)
    app.include_router(carts.router)
    app.include_router(shared_orders.router)
    app.include_router(favorites.router)
    app.include_router(addresses.router)
    app.include_router(orders.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
