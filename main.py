"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from careconnect.core.cache import cache
from careconnect.core.config import settings
from careconnect.core.exceptions import register_exception_handlers
from careconnect.core.logging_config import configure_logging
from careconnect.modules.appointments.router import admin_router as admin_appointments_router
from careconnect.modules.appointments.router import router as appointments_router
from careconnect.modules.chat.router import router as chat_router
from careconnect.modules.payments.router import admin_router as admin_payments_router
from careconnect.modules.payments.router import router as payments_router
from careconnect.modules.payments.router import wallet_router
from careconnect.modules.pricing.admin_router import router as admin_pricing_router
from careconnect.modules.pricing.router import router as pricing_router
from careconnect.modules.providers.admin_router import router as admin_providers_router
from careconnect.modules.providers.router import router as providers_router
from careconnect.modules.reviews.router import router as reviews_router
from careconnect.modules.schedule.router import router as schedule_router
from careconnect.modules.users.admin_router import router as admin_users_router
from careconnect.modules.users.router import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    if cache.enabled:
        logger.info("Read cache enabled (ttl %ss)", cache.ttl)
    else:
        logger.info("REDIS_URL not set, read cache disabled")
    yield
    await cache.close()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version="0.1.0",
        lifespan=lifespan,
    )
    register_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(users_router)
    app.include_router(providers_router)
    app.include_router(schedule_router)
    app.include_router(pricing_router)
    app.include_router(appointments_router)
    app.include_router(payments_router)
    app.include_router(wallet_router)
    app.include_router(reviews_router)
    app.include_router(chat_router)
    app.include_router(admin_users_router)
    app.include_router(admin_providers_router)
    app.include_router(admin_pricing_router)
    app.include_router(admin_appointments_router)
    app.include_router(admin_payments_router)

    return app


app = create_app()
