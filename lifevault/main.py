import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .auth.otp import LocalOTPProvider, OTPProvider
from .auth.tokens import SessionIssuer
from .core.database import build_engine, create_db_and_tables
from .core.handlers import register_exception_handlers
from .core.init_db import init_db
from .core.log import configure_logging
from .core.ratelimit import init_rate_limit
from .core.settings import Settings
from .storage.base import BlobStorage
from .storage.local import LocalBlobStorage
from .models.User import User # Import models to register them with SQLModel
from .models.Asset import Asset, Document
from .models.Nominee import Nominee, NomineeLink
from .models.Audit import AuditLog
from .models.OTPChallenge import OTPChallenge

from .auth.router import router as auth_router
from .assets.router import router as assets_router
from .documents.router import router as documents_router
from .nominees.router import router as nominees_router
from .admin.router import router as admin_router
from .storage.router import router as storage_router

logger = logging.getLogger(__name__)

DEV_ORIGINS = ["http://localhost:3000", "http://localhost:5173", "http://localhost:8080"]


def create_app(
    settings: Settings | None = None,
    storage: BlobStorage | None = None,
    otp_provider: OTPProvider | None = None,
) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings.LOG_LEVEL)

    engine = build_engine(settings.DATABASE_URL)
    issuer = SessionIssuer(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        create_db_and_tables(engine)
        init_db(engine, settings)
        logger.info("%s started (%s)", settings.PROJECT_NAME, settings.ENVIRONMENT)
        yield
        engine.dispose()

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

    app.state.settings = settings
    app.state.engine = engine
    app.state.issuer = issuer
    app.state.storage = storage or LocalBlobStorage(settings.STORAGE_DIR, issuer, settings.PUBLIC_BASE_URL)
    app.state.otp_provider = otp_provider or LocalOTPProvider(settings)

    register_exception_handlers(app, settings)
    limiter = init_rate_limit(app, settings)

    @app.middleware("http")
    async def request_timeout(request: Request, call_next):
        try:
            return await asyncio.wait_for(call_next(request), timeout=settings.REQUEST_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            logger.warning("Request timed out: %s %s", request.method, request.url.path)
            return JSONResponse(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                content={"success": False, "error": "Request timed out"},
            )

    origins = [settings.FRONTEND_URL]
    if settings.is_development:
        origins += [origin for origin in DEV_ORIGINS if origin != settings.FRONTEND_URL]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.include_router(auth_router)
    app.include_router(assets_router)
    app.include_router(documents_router)
    app.include_router(nominees_router)
    app.include_router(admin_router)
    app.include_router(storage_router)

    @app.get("/health")
    @limiter.exempt
    async def health():
        return {
            "success": True,
            "status": "ok",
            "message": f"{settings.PROJECT_NAME} API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app
