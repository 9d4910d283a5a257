import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool

from clinic_api import __version__
from clinic_api.config import Settings, settings
from clinic_api.errors import register_exception_handlers
from clinic_api.models.common import utcnow
from clinic_api.rate_limiter import (
    RateLimiter,
    get_client_ip,
    rate_limit_exceeded_response,
    rate_limit_headers,
)
from clinic_api.routers import appointment, blog, contact, subscriber
from clinic_api.security_headers import SecurityHeadersMiddleware
from clinic_api.services.database_service import DatabaseService
from clinic_api.services.email_service import EmailService

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
# Quieter third-party loggers
logging.getLogger("pymongo").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def create_app(
    app_settings: Optional[Settings] = None,
    database: Optional[DatabaseService] = None,
    email_service: Optional[EmailService] = None,
) -> FastAPI:
    """
    Build the API application

    Args:
        app_settings: Settings to use (defaults to the environment-loaded singleton)
        database: Store to use; a MongoDB-backed one is created from settings if omitted
        email_service: Notification sender; an SMTP one is created from settings if omitted
    """
    app_settings = app_settings or settings
    database = database or DatabaseService(app_settings.MONGODB_URI, app_settings.MONGODB_DB_NAME)
    email_service = email_service or EmailService(app_settings)
    rate_limiter = RateLimiter(
        limit=app_settings.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=app_settings.RATE_LIMIT_WINDOW_SECONDS,
        redis_url=app_settings.REDIS_URL,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Connects to MongoDB ONCE and releases it on shutdown."""
        logger.info(f"🚀 Starting {app_settings.CLINIC_NAME} API ({app_settings.ENVIRONMENT})")
        await run_in_threadpool(database.init)
        if app_settings.EMAIL_VERIFY_CONNECTION:
            await run_in_threadpool(email_service.verify_connection)
        yield
        logger.info("🛑 Shutting down...")
        await run_in_threadpool(database.close)

    app = FastAPI(
        title=f"{app_settings.CLINIC_NAME} API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.database = database
    app.state.email_service = email_service

    register_exception_handlers(app)

    @app.middleware("http")
    async def rate_limit(request: Request, call_next):
        if request.method == "OPTIONS":
            return await call_next(request)

        result = rate_limiter.hit(get_client_ip(request))
        if not result.allowed:
            logger.warning(f"🚫 Rate limit exceeded for {get_client_ip(request)} on {request.url.path}")
            return rate_limit_exceeded_response(result)

        response = await call_next(request)
        response.headers.update(rate_limit_headers(result))
        return response

    if app_settings.SECURITY_HEADERS_ENABLED:
        app.add_middleware(
            SecurityHeadersMiddleware,
            is_production=app_settings.IS_PRODUCTION,
            exclude_paths=["/docs", "/redoc"],
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(f"{request.method} {request.url.path} {response.status_code} {duration_ms:.1f}ms")
        return response

    # CORS Middleware Setup (outermost, so 429s and errors carry CORS headers too)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(contact.router)
    app.include_router(appointment.router)
    app.include_router(blog.router)
    app.include_router(subscriber.router)

    @app.get("/")
    async def root():
        return {
            "success": True,
            "message": f"{app_settings.CLINIC_NAME} Backend API",
            "version": __version__,
            "health": "/health",
        }

    @app.get("/health")
    async def health():
        """Liveness plus database and email status"""
        return {
            "status": "OK",
            "message": f"{app_settings.CLINIC_NAME} Backend API is running",
            "timestamp": utcnow().isoformat() + "Z",
            "environment": app_settings.ENVIRONMENT,
            "database": await database.health_check(),
            "email": {"enabled": email_service.enabled},
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("clinic_api.app:app", host="0.0.0.0", port=settings.PORT)
