from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import exports
from core.config import get_settings
from core.db.session import init_models

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="signal-media-dump",
        version=settings.version,
        docs_url="/docs" if settings.environment != "production" else None,
        redoc_url=None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.trusted_hosts,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/healthz", tags=["system"])
    async def health_check():
        return {"status": "ok"}

    @app.get("/", include_in_schema=False)
    async def root():
        return {"name": "signal-media-dump", "status": "ok"}

    if settings.environment != "production":
        # Development deployments rely on init_models() instead of Alembic.
        @app.on_event("startup")
        async def ensure_schema() -> None:
            await init_models()
            logger.info("Database schema ensured via init_models()")

    app.include_router(exports.router)

    return app


def run() -> None:  # pragma: no cover
    import uvicorn

    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=8080)
