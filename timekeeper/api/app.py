"""
Time Tracker API - Application factory.

The storage handle is opened in the lifespan and disposed on shutdown.
Domain errors are mapped to HTTP responses here and nowhere else.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from timekeeper.api.routes.account import auth_router, user_router
from timekeeper.api.routes.catalog import projects_router, tags_router
from timekeeper.api.routes.time import router as time_router
from timekeeper.domain.errors import (ConflictError, EmailExistsError, InputValidationError,
                                      InvalidCredentialsError, InvalidStateError, NotFoundError,
                                      NotOwnedError, StorageError, TimeTrackingError)
from timekeeper.infra.config import Settings, get_settings
from timekeeper.infra.db import Database

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    InputValidationError: status.HTTP_400_BAD_REQUEST,
    ConflictError: status.HTTP_400_BAD_REQUEST,
    InvalidStateError: status.HTTP_400_BAD_REQUEST,
    NotOwnedError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    EmailExistsError: status.HTTP_409_CONFLICT,
    InvalidCredentialsError: status.HTTP_401_UNAUTHORIZED,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def configure_logging(level: str = "INFO"):
    """Install the root log format once at startup"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


async def tracking_error_handler(request: Request, exc: TimeTrackingError) -> JSONResponse:
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, StorageError):
        # Details stay in the log
        return JSONResponse(
            status_code=status_code,
            content={"message": "Internal server error", "error": exc.code},
        )
    if isinstance(exc, InputValidationError):
        return JSONResponse(
            status_code=status_code,
            content={"message": exc.message, "error": exc.code,
                     "errors": jsonable_encoder(exc.errors)},
        )
    return JSONResponse(
        status_code=status_code,
        content={"message": exc.message, "error": exc.code, "details": exc.details},
    )


async def request_validation_handler(request: Request,
                                     exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "message": "Validation error",
            "error": InputValidationError.code,
            "errors": jsonable_encoder(exc.errors()),
        },
    )


def create_app(settings: Optional[Settings] = None,
               database: Optional[Database] = None) -> FastAPI:
    """
    Build the API.

    Args:
        settings: Defaults to the global settings
        database: Pre-built storage handle; one is created from settings otherwise.
            The app disposes it on shutdown either way.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = database or Database(settings.get_db_url(), echo=settings.database_echo)
        await db.create_tables()
        app.state.database = db
        logger.info(f"{settings.app_name} started with database {db.engine.url!r}")

        yield

        logger.info(f"Shutting down {settings.app_name}")
        await db.dispose()

    app = FastAPI(
        title=settings.app_name,
        description="Multi-user time tracking with local-day summaries",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(TimeTrackingError, tracking_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(auth_router)
    app.include_router(user_router)
    app.include_router(time_router)
    app.include_router(projects_router)
    app.include_router(tags_router)

    @app.get("/health", tags=["Health"])
    async def health_check():
        return {"ok": True}

    return app
