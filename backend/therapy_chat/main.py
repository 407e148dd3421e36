"""
Therapy Chat API - Main FastAPI Application
"""

import logging
import os
from contextlib import asynccontextmanager
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .api import auth_router, chat_router
from .core.errors import ChatError, MalformedRequest
from .core.logging_config import setup_logging
from .llm.factory import PROVIDERS
from .middleware import RequestLoggingMiddleware
from .storage import create_storage, init_stores

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and storage on startup."""
    if settings.llm_provider not in PROVIDERS:
        raise ValueError(
            f"Unsupported LLM provider: {settings.llm_provider} "
            f"(expected one of {', '.join(sorted(PROVIDERS))})"
        )

    setup_logging(settings)

    storage = create_storage(settings.storage_type, settings.local_storage_path)
    init_stores(storage)

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Storage: {settings.storage_type} at {settings.local_storage_path}")
    logger.info(f"LLM provider: {settings.llm_provider} (configured={bool(settings.llm_api_key)})")
    logger.info(f"Event relay: {settings.event_relay_url}")
    yield
    logger.info(f"Shutting down {settings.app_name}")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Chat backend for an AI-assisted support application",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.log_api_requests:
    app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(ChatError)
async def chat_error_handler(request: Request, exc: ChatError):
    """Stable kind and message for the caller, details for the log."""
    log_level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(
        log_level,
        f"{exc.kind} on {request.method} {request.url.path}: {exc.detail or exc.public_message}",
        exc_info=exc if exc.status_code >= 500 else None,
        extra={"extra_fields": {"error_kind": exc.kind, "path": request.url.path}},
    )
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_response(), headers=headers)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Framework errors (unknown route, wrong method) in the same body shape."""
    try:
        kind = HTTPStatus(exc.status_code).phrase.replace(" ", "")
    except ValueError:
        kind = "HTTPError"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": kind, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    error = MalformedRequest(str(exc.errors()))
    logger.warning(f"MalformedRequest on {request.method} {request.url.path}: {error.detail}")
    body = error.to_response()
    body["fields"] = [".".join(str(p) for p in e.get("loc", ())) for e in exc.errors()]
    return JSONResponse(status_code=error.status_code, content=body)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "InternalError", "message": "Internal server error"},
    )


app.include_router(auth_router)
app.include_router(chat_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "storage": settings.storage_type,
        "version": settings.app_version
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "therapy_chat.main:app",
        host="0.0.0.0",
        port=int(os.environ.get("PORT", 3001)),
        reload=settings.debug
    )
