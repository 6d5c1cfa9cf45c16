from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from catalog.authz.errors import AuthzError
from catalog.db import filters as _filters  # noqa: F401  (register SQLAlchemy filters)
from catalog.db.init_db import init_db
from catalog.logging_config import configure_app_logging
from catalog.routers import auth, categories, health, inventory, products, reports, users
from catalog.settings import get_settings

logger = logging.getLogger(__name__)


async def authz_error_handler(request: Request, exc: AuthzError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    if exc.status_code >= 500:
        logger.error("Authorization failure path=%s method=%s: %s", request.url.path, request.method, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)


def create_app(*, init_database: bool = True) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        settings = get_settings()
        configure_app_logging(settings.log_level)
        logger.info("App startup beginning")

        if init_database:
            init_db(seed=settings.seed_demo_data)
            logger.info("Database initialized (tables ensured + seed if enabled)")

        yield

    app = FastAPI(title="Product Catalog API", lifespan=lifespan)
    app.add_exception_handler(AuthzError, authz_error_handler)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(categories.router)
    app.include_router(products.router)
    app.include_router(inventory.router)
    app.include_router(users.router)
    app.include_router(reports.router)

    return app


app = create_app()
