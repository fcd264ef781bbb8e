"""FastAPI application factory and configuration.

Main application entry point with lifespan management, middleware,
exception handlers and router registration.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from docchat.agent.chat_agent import ModelError
from docchat.agent.config import ConfigurationError, get_session_config
from docchat.agent.sessions import SessionNotFoundError, SessionRegistry
from docchat.api.chat import router as chat_router
from docchat.api.chat import summarize_router
from docchat.api.routes import router as upload_router
from docchat.models.schemas import ErrorRecord

logger = logging.getLogger(__name__)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorRecord(message=message).model_dump(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application startup and shutdown lifecycle."""
    logger.info("Starting document chat API...")
    yield
    logger.info(f"Shutting down document chat API ({len(app.state.sessions)} live sessions dropped)")


def create_app(sessions: SessionRegistry | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        sessions: Session registry to serve from. A new one sized from the
                  environment is created if not provided.

    Returns:
        Configured FastAPI application instance.
    """
    application = FastAPI(
        title="Document Chat API",
        description=(
            "Document-grounded chat assistant. Extracts text from uploaded "
            "documents, summarizes it, and streams markdown answers from a "
            "hosted model as newline-delimited JSON."
        ),
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    application.state.sessions = sessions or SessionRegistry(get_session_config())

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    @application.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
        logger.error(f"Configuration error: {exc}")
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    @application.exception_handler(SessionNotFoundError)
    async def session_not_found_handler(request: Request, exc: SessionNotFoundError) -> JSONResponse:
        logger.info(f"Unknown session requested: {exc.session_id or '<none>'}")
        return _error_response(status.HTTP_404_NOT_FOUND, str(exc))

    @application.exception_handler(ModelError)
    async def model_error_handler(request: Request, exc: ModelError) -> JSONResponse:
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    application.include_router(chat_router)
    application.include_router(summarize_router)
    application.include_router(upload_router)

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """Check service health status."""
        return {"status": "healthy", "service": "docchat"}

    return application


app = create_app()
