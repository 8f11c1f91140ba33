"""
API Documentation

One OpenAPI document per API version, each restricted to that version's
partition (see app.services.versioning.build_document_partitions):

    GET /openapi/v1.0.json    document for version 1.0
    GET /docs/v1.0            Swagger UI for it
    GET /docs                 redirect to the default version's UI

FastAPI's single built-in /openapi.json and /docs are disabled in
create_app(); these routes replace them.
"""

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, status
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.openapi.utils import get_openapi
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.routing import APIRoute

from app.config import Settings
from app.routing import ApiVersioning
from app.services.versioning import ApiVersion, InvalidApiVersion

logger = logging.getLogger(__name__)


def openapi_url(version: ApiVersion) -> str:
    return f"/openapi/v{version}.json"


def docs_url(version: ApiVersion) -> str:
    return f"/docs/v{version}"


def build_openapi_document(
    app: FastAPI,
    versioning: ApiVersioning,
    version: ApiVersion,
    settings: Settings,
) -> dict[str, Any]:
    """
    Render the OpenAPI document of one version.

    Raises:
        KeyError: If no document exists for the version
    """
    members = versioning.partitions[version]
    routes = [
        route for route in app.routes
        if isinstance(route, APIRoute) and route.unique_id in members
    ]
    return get_openapi(
        title=settings.app_name,
        version=str(version),
        description=settings.app_description,
        routes=routes,
        contact={
            "name": settings.contact_name,
            "email": settings.contact_email,
            "url": settings.contact_url,
        },
        license_info={
            "name": settings.license_name,
            "url": settings.license_url,
        },
    )


def register_documentation(app: FastAPI, versioning: ApiVersioning, settings: Settings) -> None:
    """Add the per-version document and Swagger UI routes to an app."""
    # Rendered documents, filled on first request per version
    documents: dict[ApiVersion, dict[str, Any]] = {}

    def resolve_document_version(version: str) -> ApiVersion:
        try:
            parsed = ApiVersion.parse(version)
        except InvalidApiVersion:
            parsed = None
        if parsed is None or parsed not in versioning.partitions:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"No API document for version {version}",
            )
        return parsed

    @app.get("/openapi/v{version}.json", include_in_schema=False)
    async def openapi_document(version: str) -> dict[str, Any]:
        document_version = resolve_document_version(version)
        if document_version not in documents:
            logger.info(f"Rendering API document v{document_version}")
            documents[document_version] = build_openapi_document(
                app, versioning, document_version, settings
            )
        return documents[document_version]

    @app.get("/docs/v{version}", include_in_schema=False)
    async def swagger_ui(version: str) -> HTMLResponse:
        document_version = resolve_document_version(version)
        return get_swagger_ui_html(
            openapi_url=openapi_url(document_version),
            title=f"{settings.app_name} - v{document_version}",
        )

    @app.get("/docs", include_in_schema=False)
    async def default_swagger_ui() -> RedirectResponse:
        return RedirectResponse(url=docs_url(versioning.table.default_version))
