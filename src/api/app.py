"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.error import ClientError, client_error_handler
from src.api.routes.premium import router as premium_router
from src.depends import PremiumContainer, build_container

logger = logging.getLogger(__name__)


def create_app(config, container: Optional[PremiumContainer] = None) -> FastAPI:
    """
    Build the API

    Args:
        config: ApplicationConfig (or any object with the same attributes)
        container: Pre-wired components; built from config when omitted
    """
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        container = app.state.container
        if config.CREATE_TABLES_ON_STARTUP:
            await container.create_tables()
        if config.PREMIUM_SWEEP_ENABLED:
            container.sweeper.start()
        yield
        await container.shutdown()

    app = FastAPI(title="Premium Entitlement Service", lifespan=lifespan)
    app.state.container = container or build_container(config)

    if config.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.CORS_ORIGINS,
            allow_credentials=config.CORS_ALLOW_CREDENTIALS,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(ClientError, client_error_handler)
    app.include_router(premium_router, prefix=config.API_PREFIX)

    return app
