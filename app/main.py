"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application.

Key Concepts:
=============

1. Application Factory Pattern
   - create_app(settings) returns a configured app
   - Settings are passed in explicitly; tests can build their own

2. One-time Initialization
   - Routers are included, then the version table and document partitions
     are built, all before create_app() returns
   - Nothing computed here changes after the app starts serving

3. Exception Handlers
   - Request validation errors are classified as malformed (400) or
     invalid (422)
   - Patch failures and unsupported versions are 400
   - Database errors are logged and hidden behind a 500
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware

from app.config import Settings, get_settings
from app.docs import docs_url, openapi_url, register_documentation
from app.routers import authors_router, books_router
from app.routing import configure_versioning, expected_parameters
from app.services.patching import PatchFailure
from app.services.validation import (
    ErrorCategory,
    InvalidRequest,
    ValidationOutcome,
    outcome_from_request_errors,
)
from app.services.versioning import InvalidApiVersion, NoMatchingVersion

# =============================================================================
# Logging Configuration
# =============================================================================
settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Error Responses
# =============================================================================
MALFORMED_DETAIL = "The request could not be parsed."
INVALID_DETAIL = "One or more validation errors occurred."


def validation_error_response(outcome: ValidationOutcome) -> JSONResponse:
    """
    Response for a rejected request, shaped by its error category.

    - StructurallyMalformed (400): echoes the raw binding failures
    - SemanticallyInvalid (422): field -> messages map
    """
    category = outcome.category or ErrorCategory.STRUCTURALLY_MALFORMED

    if category is ErrorCategory.SEMANTICALLY_INVALID:
        content = {
            "detail": INVALID_DETAIL,
            "errors": {field: list(messages) for field, messages in outcome.errors.items()},
        }
    else:
        content = {
            "detail": MALFORMED_DETAIL,
            "errors": list(outcome.raw_errors),
        }
    return JSONResponse(status_code=category.status_code, content=content)


# =============================================================================
# Lifespan Events
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Code before yield: Runs on startup
    Code after yield: Runs on shutdown
    """
    app_settings: Settings = app.state.settings
    versioning = app.state.api_versioning
    logger.info(f"Starting {app_settings.app_name}...")
    logger.info(f"Debug mode: {app_settings.debug}")
    logger.info(
        f"API versions: {', '.join(str(v) for v in versioning.document_versions)} "
        f"(default {versioning.table.default_version})"
    )

    yield  # Application runs here

    logger.info(f"Shutting down {app_settings.app_name}...")


# =============================================================================
# Application Factory
# =============================================================================
def create_app(app_settings: Settings | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings: Settings to use; defaults to get_settings()

    Returns:
        Configured FastAPI application instance

    Raises:
        AmbiguousVersionRegistration: If two endpoints claim the same
            method, path and version
    """
    app_settings = app_settings or get_settings()

    app = FastAPI(
        title=app_settings.app_name,
        description=app_settings.app_description,
        version=app_settings.default_api_version,
        # Replaced by one document per API version (app.docs)
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.settings = app_settings

    # -------------------------------------------------------------------------
    # Middleware
    # -------------------------------------------------------------------------
    if app_settings.force_https:
        app.add_middleware(HTTPSRedirectMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["api-supported-versions", "Location"],
    )

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """
        Classify request binding/validation failures.

        If every parameter the endpoint declares was bound, the request was
        understood but is invalid (422); otherwise it is malformed (400).
        """
        outcome = outcome_from_request_errors(
            exc.errors(),
            expected_parameters(request.scope.get("route")),
        )
        logger.info(
            f"{request.method} {request.url.path} rejected as {outcome.category}: "
            f"{outcome.bound_parameter_count}/{outcome.expected_parameter_count} parameters bound"
        )
        return validation_error_response(outcome)

    @app.exception_handler(InvalidRequest)
    async def invalid_request_exception_handler(
        request: Request,
        exc: InvalidRequest,
    ) -> JSONResponse:
        return validation_error_response(exc.outcome)

    @app.exception_handler(PatchFailure)
    async def patch_failure_exception_handler(
        request: Request,
        exc: PatchFailure,
    ) -> JSONResponse:
        """A patch document that cannot be applied is malformed input."""
        logger.info(f"Patch rejected on {request.url.path}: {exc.reason.value} at {exc.path}")
        return JSONResponse(
            status_code=ErrorCategory.STRUCTURALLY_MALFORMED.status_code,
            content={
                "detail": "The patch document could not be applied.",
                "errors": [exc.to_dict()],
            },
        )

    @app.exception_handler(NoMatchingVersion)
    async def unsupported_version_exception_handler(
        request: Request,
        exc: NoMatchingVersion,
    ) -> JSONResponse:
        logger.warning(f"{request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "detail": str(exc),
                "code": "UnsupportedApiVersion",
                "supported_versions": [str(v) for v in exc.supported],
            },
        )

    @app.exception_handler(InvalidApiVersion)
    async def invalid_version_exception_handler(
        request: Request,
        exc: InvalidApiVersion,
    ) -> JSONResponse:
        logger.warning(f"{request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": str(exc), "code": "InvalidApiVersion"},
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request,
        exc: SQLAlchemyError,
    ) -> JSONResponse:
        """
        Handle SQLAlchemy database errors.

        Logs the actual error for debugging while hiding details from users.
        """
        logger.error(f"Database error: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "detail": "A database error occurred. Please try again later."
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """
        Catch-all exception handler.

        In production, hide internal errors from users.
        In debug mode, show more details.
        """
        logger.error(f"Unhandled error: {exc}", exc_info=True)

        if app_settings.debug:
            return JSONResponse(
                status_code=500,
                content={"detail": str(exc)},
            )

        return JSONResponse(
            status_code=500,
            content={"detail": "An internal error occurred."},
        )

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    app.include_router(authors_router, prefix=app_settings.api_prefix)
    app.include_router(books_router, prefix=app_settings.api_prefix)

    # -------------------------------------------------------------------------
    # Health Check and Root
    # -------------------------------------------------------------------------
    # Plain routes: version-neutral, listed in every API document
    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check",
        description="Check if the API is running and healthy.",
    )
    async def health_check() -> dict:
        return {
            "status": "healthy",
            "app": app_settings.app_name,
            "default_api_version": app_settings.default_api_version,
        }

    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
        description="Welcome message and links to the API documents.",
    )
    async def root() -> dict:
        versions = app.state.api_versioning.document_versions
        return {
            "message": f"Welcome to {app_settings.app_name}",
            "default_api_version": app_settings.default_api_version,
            "docs": {f"v{v}": docs_url(v) for v in versions},
            "openapi": {f"v{v}": openapi_url(v) for v in versions},
            "health": "/health",
        }

    # -------------------------------------------------------------------------
    # Versioning and Documentation
    # -------------------------------------------------------------------------
    # Built last: every route above must already be registered
    versioning = configure_versioning(
        app,
        default_version=app_settings.default_version,
        document_versions=app_settings.document_versions,
        report_versions=app_settings.report_api_versions,
    )
    register_documentation(app, versioning, app_settings)

    return app


# =============================================================================
# Application Instance
# =============================================================================
# This is what uvicorn imports: uvicorn app.main:app
app = create_app(settings)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
