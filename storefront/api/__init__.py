# storefront/api/__init__.py
from fastapi import FastAPI

from storefront.api.routers import health, orders, registration, webhooks


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront",
        version="1.0.0",
    )

    app.include_router(health.router)
    app.include_router(registration.router)
    app.include_router(webhooks.router)
    app.include_router(orders.router)

    return app
