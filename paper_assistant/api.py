"""FastAPI Server for the Paper Assistant API

Wires configuration, logging, the database handle and the external-service
clients into one application, and renders every error as ``{"error": ...}``.
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Dict, Optional

import httpx
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from .arxiv_client import ArxivClient
from .auth import TokenIssuer
from .chat import ChatService
from .config import AppConfig, load_config
from .database import Database
from .errors import AppError, Unauthorized
from .llm_client import LLMClient
from .logging_utils import setup_logging, request_id_ctx
from .models import ErrorResponse, HealthResponse
from .search import PaperSearchService
from .summarizer import Summarizer

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Acquire the database and HTTP client at startup, release them at shutdown."""
    config: AppConfig = app.state.config

    logger.info("Starting Paper Assistant API...")
    database = Database(config.database.url, echo=config.database.echo)
    database.init()

    http_client = httpx.AsyncClient(transport=app.state.http_transport, follow_redirects=True)
    llm_client = LLMClient(http_client, config.llm)
    arxiv_client = ArxivClient(http_client, config.search)

    app.state.database = database
    app.state.http_client = http_client
    app.state.token_issuer = TokenIssuer(
        config.auth.secret_key,
        algorithm=config.auth.algorithm,
        expire_minutes=config.auth.access_token_expire_minutes,
    )
    app.state.search_service = PaperSearchService(
        arxiv_client,
        Summarizer(llm_client, config.llm, config.search),
    )
    app.state.chat_service = ChatService(llm_client, config.llm.system_prompt)

    if config.auth.access_token_expire_minutes is None:
        logger.warning("Bearer tokens are issued without expiry")

    try:
        yield
    finally:
        logger.info("Shutting down Paper Assistant API")
        await http_client.aclose()
        database.dispose()


def _error_response(status_code: int, error: str, detail: Optional[str] = None,
                    headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, detail=detail).model_dump(exclude_none=True),
        headers=headers,
    )


def create_app(config: Optional[AppConfig] = None,
               http_transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """
    Build the application.

    Args:
        config: Loaded configuration (default: ``load_config()``)
        http_transport: Transport for outbound HTTP; tests pass an ``httpx.MockTransport``
    """
    if config is None:
        config = load_config()

    setup_logging(config.logging.level, config.logging.json_format)

    app = FastAPI(
        title=config.api.title,
        description=config.api.description,
        version=config.api.version,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.http_transport = http_transport

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=config.api.cors_credentials,
        allow_methods=config.api.cors_methods,
        allow_headers=config.api.cors_headers,
    )

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        token = request_id_ctx.set(request_id)
        start_time = time.time()
        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = int((time.time() - start_time) * 1000)
            status_code = response.status_code if response else 500
            if response is not None:
                response.headers["X-Request-Id"] = request_id
            logger.info(
                "request_completed",
                extra={
                    "event": "request_completed",
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": status_code,
                    "duration_ms": duration_ms
                }
            )
            request_id_ctx.reset(token)

    from .routers.auth import router as auth_router
    from .routers.user import router as user_router
    from .routers.search import router as search_router
    from .routers.chat import router as chat_router

    app.include_router(auth_router)
    app.include_router(user_router)
    app.include_router(search_router)
    app.include_router(chat_router)

    # ========================================================================
    # SERVICE ENDPOINTS
    # ========================================================================

    @app.get("/", response_model=Dict[str, str])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": config.api.title,
            "version": config.api.version,
            "docs": "/docs",
            "health": "/health"
        }

    @app.get("/health", response_model=HealthResponse)
    async def health_check(request: Request):
        database = getattr(request.app.state, "database", None)
        ready = database is not None and database.ping()
        return HealthResponse(status="healthy" if ready else "unhealthy", ready=ready)

    # ========================================================================
    # ERROR HANDLERS
    # ========================================================================

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        headers = None
        if isinstance(exc, Unauthorized):
            headers = {"WWW-Authenticate": "Bearer"}
        return _error_response(exc.status_code, exc.message, headers=headers)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        if exc.status_code >= 500:
            logger.error(f"HTTP {exc.status_code}: {exc.detail}")
            return _error_response(exc.status_code, "Server error")
        return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _error_response(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "Invalid request",
            detail="One or more request fields are invalid.",
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception: {exc}")
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error")

    return app


app = create_app()
