from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from photogram.auth.deps import IdentityGateway, build_identity_gateway
from photogram.core.envelope import install_error_handlers
from photogram.core.settings import S, Settings
from photogram.dependencies import build_services, build_store
from photogram.metrics import metrics_endpoint, metrics_middleware, set_app_info
from photogram.routers.comments import router as comments_router
from photogram.routers.likes import router as likes_router
from photogram.routers.misc import router as misc_router
from photogram.routers.photos import router as photos_router
from photogram.routers.users import router as users_router
from photogram.store.base import Store

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[Store] = None,
    identity: Optional[IdentityGateway] = None,
) -> FastAPI:
    settings = settings or S
    logging.basicConfig(level=settings.log_level)

    store = store if store is not None else build_store(settings)
    identity = identity if identity is not None else build_identity_gateway(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("photogram API starting (store=%s)", store.__class__.__name__)
        try:
            yield
        finally:
            await store.close()

    app = FastAPI(title="Photogram API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.identity = identity
    app.state.services = build_services(store)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    if settings.metrics_enabled:
        app.middleware("http")(metrics_middleware)
        set_app_info(app.title, app.version)
        app.get("/metrics", include_in_schema=False)(metrics_endpoint)

    install_error_handlers(app)

    app.include_router(misc_router)
    app.include_router(photos_router, prefix=settings.api_prefix)
    app.include_router(likes_router, prefix=settings.api_prefix)
    app.include_router(comments_router, prefix=settings.api_prefix)
    app.include_router(users_router, prefix=settings.api_prefix)

    return app
