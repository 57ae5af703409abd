"""
EduForge student-information API: JWT auth, institution tenant scoping,
request display ids and attendance/fee summaries.
"""
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text

import config
from core.errors import AppError, ValidationError
from core.logger import logger
from database.connection import Database
from middleware.security import SecurityHeadersMiddleware, setup_cors, setup_trusted_hosts
from routers.auth import router as auth_router
from routers.institution import router as institution_router
from routers.student import router as student_router


def init_database() -> Database:
    """Create the global database (tables included) unless one is already installed."""
    if config.db is None:
        config.db = Database(
            database_url=config.DATABASE_URL,
            pool_size=config.DB_POOL_SIZE,
            max_overflow=config.DB_MAX_OVERFLOW
        )
        config.db.create_tables()
    return config.db


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {config.APP_NAME} v{config.APP_VERSION} ({config.ENVIRONMENT})")
    try:
        init_database()
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}", exc_info=True)
        raise
    logger.info("Server ready")

    yield

    logger.info("Shutting down")
    if config.db is not None:
        config.db.engine.dispose()


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    """Uniform error body: ``{"ok": false, "error": code, "detail": message}``."""
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code,
        content={"ok": False, "error": code, "detail": message},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.code}")
        return error_response(exc.status_code, exc.code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        message = ValidationError.default_message
        errors = exc.errors()
        if errors:
            first = errors[0]
            field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
            message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
        return error_response(ValidationError.status_code, ValidationError.code, message)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        # Details stay in the log; clients only get the generic message
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
        return error_response(500, "internal_error", "Internal server error")


def create_app() -> FastAPI:
    app = FastAPI(
        title=config.APP_NAME,
        description="Multi-tenant student-information API",
        version=config.APP_VERSION,
        lifespan=lifespan
    )

    app.add_middleware(SecurityHeadersMiddleware)
    setup_cors(app, config.CORS_ORIGINS)
    if config.ENVIRONMENT == "production":
        setup_trusted_hosts(app, config.TRUSTED_HOSTS)

    app.include_router(auth_router)
    app.include_router(student_router)
    app.include_router(institution_router)
    register_exception_handlers(app)

    @app.get("/")
    async def root():
        """API information. Public endpoint."""
        return {
            "message": f"{config.APP_NAME} running",
            "version": config.APP_VERSION,
            "environment": config.ENVIRONMENT,
            "docs": "/docs",
        }

    @app.get("/health")
    def health_check():
        """Liveness plus a database probe. Public endpoint."""
        checks = {}
        if config.db is None:
            checks["database"] = {"status": "error", "error": "not initialized"}
        else:
            try:
                with config.db.get_session() as db:
                    db.execute(text("SELECT 1"))
                checks["database"] = {"status": "ok"}
            except Exception as e:
                logger.error(f"Health check database probe failed: {e}")
                checks["database"] = {"status": "error"}

        healthy = all(c["status"] == "ok" for c in checks.values())
        return {
            "status": "healthy" if healthy else "degraded",
            "timestamp": time.time(),
            "checks": checks,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
