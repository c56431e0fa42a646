"""FastAPI application for ClauseSign."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clausesign import __version__
from clausesign.api.routes import router
from clausesign.config import configure_logging, get_settings
from clausesign.errors import (
    BindingMismatch,
    CollaboratorUnavailable,
    ContractError,
    ContractNotFound,
    DocumentFrozen,
    GenerationContractViolation,
    IncompleteSignatures,
    InvalidFieldValue,
    InvalidSignatureImage,
    NotEditable,
    OutOfRange,
    VersionConflict,
    WrongParty,
)

logger = structlog.get_logger(__name__)

STATUS_CODES: dict[type[ContractError], int] = {
    GenerationContractViolation: 502,
    BindingMismatch: 500,
    WrongParty: 403,
    OutOfRange: 404,
    ContractNotFound: 404,
    IncompleteSignatures: 409,
    DocumentFrozen: 409,
    NotEditable: 409,
    VersionConflict: 409,
    InvalidSignatureImage: 422,
    InvalidFieldValue: 422,
    CollaboratorUnavailable: 503,
}


def status_for(exc: ContractError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]
    return 400


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    configure_logging("DEBUG" if settings.debug else settings.log_level)
    logger.info(
        "application_starting",
        storage_backend=settings.storage_backend,
        mail_enabled=settings.mail_enabled,
        debug=settings.debug,
    )
    yield
    logger.info("application_shutting_down")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="ClauseSign API",
        description="AI-drafted contracts with inline, per-party signatures",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ContractError)
    async def contract_error_handler(request: Request, exc: ContractError) -> JSONResponse:
        status_code = status_for(exc)
        log = logger.error if status_code >= 500 else logger.info
        log(
            "request_failed",
            path=request.url.path,
            method=request.method,
            error=exc.code,
            detail=exc.message,
        )
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    app.include_router(router, prefix="/api")

    @app.get("/")
    async def root():
        """Service info."""
        return {
            "status": "healthy",
            "service": "clausesign-api",
            "version": __version__,
        }

    @app.get("/health")
    async def health():
        """Detailed health check."""
        from clausesign.services.llm_service import get_llm_service
        from clausesign.storage import get_contract_repository

        return {
            "status": "healthy",
            "storage": "ok" if get_contract_repository().health_check() else "unavailable",
            "llm": "configured" if get_llm_service().configured else "not_configured",
            "mail": "enabled" if settings.mail_enabled else "disabled",
        }

    return app


# Create app instance
app = create_app()
