"""Application factory and top-level wiring.

``create_app`` brings together logging, the request-id middleware, the JSON
error envelope and the API routers. Tables are created (and older databases
migrated) when the app starts, not on import.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .core.config import settings
from .core.errors import factory_exception_handler, http_exception_handler, validation_exception_handler
from .core.exceptions import FactoryError
from .core.logging import configure_logging
from .db.base import init_db
from .db.session import engine
from .middlewares import RequestIdMiddleware
from .routers import api_customers as api_customers_router
from .routers import api_inventory as api_inventory_router
from .routers import api_notifications as api_notifications_router
from .routers import api_orders as api_orders_router
from .routers import api_productions as api_productions_router
from .routers import api_reports as api_reports_router
from .routers import api_sales as api_sales_router


def create_app(*, initialize_db: bool = True) -> FastAPI:
    configure_logging()
    app = FastAPI(title=settings.APP_NAME, version=__version__)
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(FactoryError, factory_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    for module in (
        api_orders_router,
        api_inventory_router,
        api_sales_router,
        api_productions_router,
        api_customers_router,
        api_notifications_router,
        api_reports_router,
    ):
        app.include_router(module.router)

    @app.get("/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    instrumentator = Instrumentator()
    instrumentator.instrument(app).expose(app)

    if initialize_db:
        @app.on_event("startup")
        async def _init_db() -> None:
            init_db(engine)

    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("sofa_factory.main:app", host=settings.HOST, port=settings.PORT)
