import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from flow_reader.api.v1 import chat, documents, health
from flow_reader.api.v1 import settings as settings_api
from flow_reader.core.config import settings
from flow_reader.core.exceptions import (
    AppException,
    app_exception_handler,
    generic_exception_handler,
    validation_exception_handler,
)
from flow_reader.db.session import Database, create_database

# Configure logging
log_level = logging.DEBUG if settings.ENV == "development" else logging.INFO
logging.basicConfig(
    level=log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# Suppress verbose logging from third-party libraries
noisy_loggers = [
    "httpx",
    "httpcore",
    "multipart",
    "python_multipart",
]
for logger_name in noisy_loggers:
    logging.getLogger(logger_name).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        database: Store to use; by default one is created from DATABASE_URL
            at startup and closed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = database or create_database()
        db.init()
        app.state.database = db
        logger.info(f"Starting {settings.PROJECT_NAME} in {settings.ENV} mode")
        try:
            yield
        finally:
            if database is None:
                db.close()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Flow Reader - 선택한 텍스트에 고정된 AI 대화 세션",
        version="0.1.0",
        docs_url="/api/docs" if settings.ENV == "development" else None,
        redoc_url="/api/redoc" if settings.ENV == "development" else None,
        lifespan=lifespan,
    )

    # Register exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Requested-With"],
    )

    # API v1 routers
    app.include_router(health.router, prefix=settings.API_V1_PREFIX)
    app.include_router(documents.router, prefix=settings.API_V1_PREFIX)
    app.include_router(chat.router, prefix=settings.API_V1_PREFIX)
    app.include_router(settings_api.router, prefix=settings.API_V1_PREFIX)

    @app.get("/")
    def read_root():
        """Root endpoint - basic API status."""
        return {
            "message": "OK",
            "service": settings.PROJECT_NAME,
            "version": "0.1.0",
        }

    return app


app = create_app()


def run() -> None:
    """Serve the API on the loopback interface for the desktop shell."""
    import uvicorn

    uvicorn.run("flow_reader.main:app", host="127.0.0.1", port=8756)
