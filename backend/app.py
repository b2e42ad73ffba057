"""FastAPI application entry point for the AQI proxy."""

import logging
import sys

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from config import Settings, settings
from errors import register_error_handlers
from services.aqi import AqiClient

# Structured logging: JSON for production, human-readable for local
if settings.is_production:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format='{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}',
        stream=sys.stdout,
    )
else:
    logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

logger = logging.getLogger(__name__)


def create_app(app_settings: Settings | None = None, aqi_client: AqiClient | None = None) -> FastAPI:
    app_settings = app_settings or settings
    app = FastAPI(title="AQI Proxy", version="1.0.0")
    app.state.settings = app_settings
    app.state.aqi_client = aqi_client or AqiClient(app_settings)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Security headers
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        if app_settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    # Centralized error handlers
    register_error_handlers(app)

    from routes.aqi import router as aqi_router
    from routes.frontend import router as frontend_router
    from routes.health import router as health_router

    app.include_router(health_router)
    app.include_router(aqi_router)
    # Catch-all; must stay last
    app.include_router(frontend_router)

    @app.on_event("startup")
    async def _validate_config() -> None:
        missing = app_settings.validate()
        if missing:
            logger.warning("Missing env vars (AQI lookups will fail): %s", ", ".join(missing))
        logger.info(
            "Cache configured: max_entries=%d ttl_ms=%d",
            app_settings.cache_max_entries,
            app_settings.cache_ttl_ms,
        )

    return app


app = create_app()


if __name__ == "__main__":
    logger.info("AQI service listening on http://localhost:%d", settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
