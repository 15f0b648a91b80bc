"""
Main Application Entry Point

This module sets up the FastAPI application with:
- Logging configured from settings
- Database table creation on startup
- CORS for browser clients
- Mapping of application errors to HTTP responses
- Route registration (/api/users, /api/posts)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.database import engine
from app.exceptions import AppError, InternalError
from app.models import Base
from app.routes import posts, users


logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager - runs on startup and shutdown.

    Startup: create database tables that don't exist yet.
    Shutdown: dispose of the connection pool.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Postboard started ({settings.ENVIRONMENT})")

    yield

    await engine.dispose()


app = FastAPI(title="Postboard", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Answer with the status code carried by the error class."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Malformed or unexpected body fields are a plain 400
    detail = "Invalid updates!" if _has_extra_fields(exc) else "Invalid input"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": detail, "errors": _public_errors(exc)},
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error", exc_info=exc)
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content={"detail": error.message})


def _has_extra_fields(exc: RequestValidationError) -> bool:
    return any(err.get("type") == "extra_forbidden" for err in exc.errors())


def _public_errors(exc: RequestValidationError) -> list[dict]:
    """Error list without the raw input values (which may hold passwords)."""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


app.include_router(users.router)
app.include_router(posts.router)
