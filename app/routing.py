"""
Versioned Routing

Lets several handlers share one method + path and picks between them by the
requested API version.

Declaring Versions
==================
Routers use VersionedAPIRoute as their route class. Each endpoint declares
its versions through openapi_extra, which also shows them in the API
documents:

    router = APIRouter(prefix="/authors", route_class=VersionedAPIRoute)

    @router.get("/", openapi_extra=api_versions("1.0"))
    def get_authors(): ...

    @router.get("/", openapi_extra=api_versions("2.0"))
    def get_authors_v2(): ...

An endpoint without api_versions(...) is version-neutral.

Dispatch
========
configure_versioning() reads every declaration once, builds the immutable
VersionTable and the document partitions, and stores them on app.state
before the first request. VersionedAPIRoute.matches() then only looks up
which variant the table selected for the request's ?api-version= value.
When no variant answers (or the value does not parse), the first variant
registered for that method + path claims the request and raises the
versioning error from its handler, so it reaches the exception handlers.
"""

import logging
from collections.abc import Callable, Coroutine, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI
from fastapi.dependencies.models import Dependant
from fastapi.routing import APIRoute
from starlette.datastructures import QueryParams
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import BaseRoute, Match
from starlette.types import Scope

from app.services.validation import BODY, Parameter
from app.services.versioning import (
    ApiVersion,
    VersionedOperation,
    VersioningError,
    VersionTable,
    build_document_partitions,
    parse_requested_version,
    version_set,
)

logger = logging.getLogger(__name__)

API_VERSION_PARAMETER = "api-version"
API_VERSIONS_EXTRA_KEY = "x-api-versions"
SUPPORTED_VERSIONS_HEADER = "api-supported-versions"

# Keys this module adds to the ASGI scope of a matched request
API_VERSION_SCOPE_KEY = "api_version"
VERSION_ERROR_SCOPE_KEY = "api_version_error"

OperationKey = tuple[str, str]


def api_versions(*versions: str) -> dict[str, list[str]]:
    """openapi_extra that declares the versions an endpoint belongs to."""
    return {API_VERSIONS_EXTRA_KEY: [str(v) for v in sorted(version_set(*versions))]}


def declared_versions(route: APIRoute) -> frozenset[ApiVersion]:
    extra = route.openapi_extra or {}
    return version_set(*extra.get(API_VERSIONS_EXTRA_KEY, ()))


def operation_key(route: APIRoute) -> OperationKey:
    return (",".join(sorted(route.methods)), route.path_format)


@dataclass(frozen=True)
class ApiVersioning:
    """
    Everything version dispatch and documentation need, computed once.

    Attributes:
        table: Version dispatch table keyed by (methods, path)
        partitions: Document version -> unique ids of its routes
        primary: Operation key -> unique id of the route that reports
            versioning errors for that key
        report_versions: Whether responses carry api-supported-versions
    """

    table: VersionTable[str]
    partitions: Mapping[ApiVersion, frozenset[str]]
    primary: Mapping[OperationKey, str]
    report_versions: bool = True

    @property
    def document_versions(self) -> list[ApiVersion]:
        return sorted(self.partitions)


def _api_versioning(scope: Scope) -> ApiVersioning | None:
    app = scope.get("app")
    if app is None:
        return None
    return getattr(app.state, "api_versioning", None)


class VersionedAPIRoute(APIRoute):
    """APIRoute that only matches requests for the versions it serves."""

    def matches(self, scope: Scope) -> tuple[Match, Scope]:
        match, child_scope = super().matches(scope)
        versioning = _api_versioning(scope)
        key = operation_key(self)
        if match is not Match.FULL or versioning is None or key not in versioning.table:
            return match, child_scope

        raw = QueryParams(scope.get("query_string", b"")).get(API_VERSION_PARAMETER)
        try:
            requested = parse_requested_version(raw)
            selected = versioning.table.resolve(key, requested)
        except VersioningError as exc:
            if versioning.primary.get(key) != self.unique_id:
                return Match.NONE, {}
            child_scope[VERSION_ERROR_SCOPE_KEY] = exc
            return Match.FULL, child_scope

        if selected != self.unique_id:
            return Match.NONE, {}
        child_scope[API_VERSION_SCOPE_KEY] = (
            versioning.table.default_version if requested is None else requested
        )
        return match, child_scope

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        handler = super().get_route_handler()

        async def versioned_route_handler(request: Request) -> Response:
            error = request.scope.get(VERSION_ERROR_SCOPE_KEY)
            if error is not None:
                raise error

            response = await handler(request)

            versioning = _api_versioning(request.scope)
            key = operation_key(self)
            if versioning is not None and versioning.report_versions and key in versioning.table:
                supported = sorted(versioning.table.versions_for(key))
                response.headers[SUPPORTED_VERSIONS_HEADER] = ", ".join(str(v) for v in supported)
            return response

        return versioned_route_handler


def collect_operations(routes: Iterable[BaseRoute]) -> list[VersionedOperation[str]]:
    """Versioned endpoints of an app, in registration order."""
    return [
        VersionedOperation(
            key=operation_key(route),
            versions=declared_versions(route),
            handler=route.unique_id,
        )
        for route in routes
        if isinstance(route, VersionedAPIRoute)
    ]


def collect_documented_operations(routes: Iterable[BaseRoute]) -> list[VersionedOperation[str]]:
    """
    Every endpoint that appears in API documents.

    Plain APIRoutes (health, root) carry no versions, so they are
    version-neutral and land in every document.
    """
    return [
        VersionedOperation(
            key=operation_key(route),
            versions=declared_versions(route),
            handler=route.unique_id,
        )
        for route in routes
        if isinstance(route, APIRoute) and route.include_in_schema
    ]


def configure_versioning(
    app: FastAPI,
    default_version: ApiVersion,
    document_versions: Iterable[ApiVersion],
    report_versions: bool = True,
) -> ApiVersioning:
    """
    Build the version table and document partitions for an app.

    Must run after every router is included and before the app serves
    requests.

    Raises:
        AmbiguousVersionRegistration: If two endpoints with the same method
            and path claim the same version
    """
    operations = collect_operations(app.routes)
    table = VersionTable.build(operations, default_version)

    primary: dict[OperationKey, str] = {}
    for operation in operations:
        primary.setdefault(operation.key, operation.handler)

    versions = set(document_versions) | table.supported_versions
    partitions = build_document_partitions(
        sorted(versions), collect_documented_operations(app.routes)
    )

    versioning = ApiVersioning(
        table=table,
        partitions=partitions,
        primary=primary,
        report_versions=report_versions,
    )
    app.state.api_versioning = versioning
    for version, members in partitions.items():
        logger.info(f"API document v{version}: {len(members)} operations")
    return versioning


def expected_parameters(route: BaseRoute | None) -> set[Parameter]:
    """
    (source, name) of every input an endpoint binds, dependencies included.

    The request body counts once, as ("body", None).
    """
    if not isinstance(route, APIRoute):
        return set()
    parameters: set[Parameter] = set()
    _collect_parameters(route.dependant, parameters)
    return parameters


def _collect_parameters(dependant: Dependant, parameters: set[Parameter]) -> None:
    for source, params in (
        ("path", dependant.path_params),
        ("query", dependant.query_params),
        ("header", dependant.header_params),
        ("cookie", dependant.cookie_params),
    ):
        parameters.update((source, param.alias) for param in params)
    if dependant.body_params:
        parameters.add((BODY, None))
    for sub_dependant in dependant.dependencies:
        _collect_parameters(sub_dependant, parameters)
