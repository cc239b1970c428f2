import logging
from typing import Optional

from fastapi import FastAPI
from app.api.routes import router as api_router
from app.core.config import Settings, settings as default_settings
from app.core.logging import configure_logging
from app.middleware.auth import AuthMiddleware
from app.middleware.metrics import Metrics, MetricsMiddleware
from app.middleware.request_id import RequestIDMiddleware
from app.services.key_store import build_key_store


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)
    app = FastAPI(title="keygate", version="1.0.0")

    app.state.settings = settings
    app.state.key_store = build_key_store(settings)
    app.state.metrics = Metrics()

    # Last added runs first: request id -> metrics -> auth
    app.add_middleware(AuthMiddleware, key_store=app.state.key_store)
    app.add_middleware(MetricsMiddleware, metrics=app.state.metrics)
    app.add_middleware(RequestIDMiddleware)

    app.include_router(api_router, prefix="/api/v1")

    @app.on_event("startup")
    async def startup_event():
        logging.info("keygate starting port=%s", settings.PORT)

    return app


app = create_app()
