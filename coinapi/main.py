import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from mangum import Mangum
from starlette.middleware.cors import CORSMiddleware

from coinapi import containers
from coinapi.config import settings
from coinapi.core.exception_handlers import register_exception_handlers
from coinapi.core.logging_middleware import LoggingMiddleware
from coinapi.logging_config import setup_logging
from coinapi.routers import (
    discount_router,
    health_router,
    payment_router,
    webhook_router,
)

load_dotenv("coinapi/.env")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"{settings.APP_NAME} starting ({settings.ENVIRONMENT})")
    yield
    await app.container.gateways.payment_gateway().aclose()  # type: ignore[attr-defined]
    logger.info(f"{settings.APP_NAME} stopped")


def create_app() -> FastAPI:
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    app.container = containers.Container()  # type: ignore[attr-defined]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(health_router.router)
    app.include_router(payment_router.router, prefix=settings.API_V1_STR)
    app.include_router(discount_router.router, prefix=settings.API_V1_STR)
    app.include_router(webhook_router.router, prefix=settings.API_V1_STR)

    return app


app = create_app()

handler = Mangum(app)
