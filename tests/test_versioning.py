"""
Tests for API Versioning

Version tags, handler resolution, document partitions, and the routing
integration on small throwaway apps.
"""

import pytest
from fastapi import APIRouter, Depends, FastAPI, Header, Query, status
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient

from app.routing import (
    SUPPORTED_VERSIONS_HEADER,
    VersionedAPIRoute,
    api_versions,
    configure_versioning,
    expected_parameters,
)
from app.services.versioning import (
    AmbiguousVersionRegistration,
    ApiVersion,
    HandlerGroup,
    InvalidApiVersion,
    NoMatchingVersion,
    VersionedOperation,
    VersionTable,
    build_document_partitions,
    parse_requested_version,
    partition_for_document,
    resolve_handler,
    version_set,
)

V1 = ApiVersion(1, 0)
V2 = ApiVersion(2, 0)
V3 = ApiVersion(3, 0)


class TestApiVersion:
    @pytest.mark.parametrize(
        "text, expected",
        [("1.0", V1), ("2", V2), (" 2.0 ", V2), ("1.10", ApiVersion(1, 10))],
    )
    def test_parse(self, text, expected):
        assert ApiVersion.parse(text) == expected

    @pytest.mark.parametrize("text", ["abc", "1.0.0", "v1", "-1.0", "1."])
    def test_parse_invalid(self, text):
        with pytest.raises(InvalidApiVersion):
            ApiVersion.parse(text)

    def test_str(self):
        assert str(ApiVersion(2)) == "2.0"

    def test_ordering(self):
        assert sorted([V3, V1, ApiVersion(1, 5), V2]) == [V1, ApiVersion(1, 5), V2, V3]

    def test_requested_version_absent(self):
        assert parse_requested_version(None) is None
        assert parse_requested_version("") is None

    def test_version_set(self):
        assert version_set("1.0", V1, "2") == frozenset({V1, V2})


class TestResolveHandler:
    CANDIDATES = [({"1.0"}, "H1"), ({"2.0"}, "H2")]

    def test_no_version_uses_default(self):
        assert resolve_handler(None, self.CANDIDATES) == "H1"

    def test_exact_version(self):
        assert resolve_handler("2.0", self.CANDIDATES) == "H2"
        assert resolve_handler(V1, self.CANDIDATES) == "H1"

    def test_no_matching_version(self):
        with pytest.raises(NoMatchingVersion) as exc_info:
            resolve_handler("3.0", self.CANDIDATES)

        assert exc_info.value.requested == V3
        assert exc_info.value.supported == (V1, V2)

    def test_default_without_candidate(self):
        with pytest.raises(NoMatchingVersion):
            resolve_handler(None, [({"2.0"}, "H2")])

    def test_handler_with_several_versions(self):
        candidates = [({"1.0", "2.0"}, "H12")]

        assert resolve_handler("1.0", candidates) == "H12"
        assert resolve_handler("2.0", candidates) == "H12"

    def test_neutral_answers_unclaimed_versions(self):
        candidates = [({"2.0"}, "H2"), (set(), "HN")]

        assert resolve_handler("2.0", candidates) == "H2"
        assert resolve_handler("1.0", candidates) == "HN"
        assert resolve_handler("3.0", candidates) == "HN"

    def test_overlapping_versions_are_ambiguous(self):
        with pytest.raises(AmbiguousVersionRegistration):
            resolve_handler("1.0", [({"1.0"}, "H1"), ({"1.0", "2.0"}, "H2")])

    def test_two_neutral_candidates_are_ambiguous(self):
        with pytest.raises(AmbiguousVersionRegistration):
            HandlerGroup.build([(set(), "A"), ((), "B")])


class TestVersionTable:
    @pytest.fixture
    def table(self) -> VersionTable:
        return VersionTable.build(
            [
                VersionedOperation(("GET", "/authors/"), version_set("1.0"), "list_v1"),
                VersionedOperation(("GET", "/authors/"), version_set("2.0"), "list_v2"),
                VersionedOperation(("GET", "/authors/{id}"), version_set("1.0"), "get"),
                VersionedOperation(("GET", "/books/"), frozenset(), "books"),
            ]
        )

    def test_supported_versions(self, table):
        assert table.supported_versions == frozenset({V1, V2})

    def test_resolve(self, table):
        assert table.resolve(("GET", "/authors/"), None) == "list_v1"
        assert table.resolve(("GET", "/authors/"), V2) == "list_v2"
        assert table.resolve(("GET", "/books/"), V2) == "books"

    def test_operation_without_version(self, table):
        with pytest.raises(NoMatchingVersion) as exc_info:
            table.resolve(("GET", "/authors/{id}"), V2)

        assert exc_info.value.supported == (V1,)

    def test_version_unknown_to_application(self, table):
        """Even neutral operations reject versions nobody declares."""
        with pytest.raises(NoMatchingVersion) as exc_info:
            table.resolve(("GET", "/books/"), V3)

        assert exc_info.value.supported == (V1, V2)

    def test_versions_for(self, table):
        assert table.versions_for(("GET", "/authors/{id}")) == frozenset({V1})
        assert table.versions_for(("GET", "/books/")) == frozenset({V1, V2})

    def test_contains(self, table):
        assert ("GET", "/authors/") in table
        assert ("DELETE", "/authors/") not in table

    def test_ambiguous_registration(self):
        with pytest.raises(AmbiguousVersionRegistration) as exc_info:
            VersionTable.build(
                [
                    VersionedOperation(("GET", "/x"), version_set("1.0"), "a"),
                    VersionedOperation(("GET", "/x"), version_set("1.0"), "b"),
                ]
            )

        assert exc_info.value.key == ("GET", "/x")
        assert exc_info.value.version == V1


class TestDocumentPartitions:
    OPERATIONS = [
        VersionedOperation("list", version_set("1.0"), "list_v1"),
        VersionedOperation("list", version_set("2.0"), "list_v2"),
        VersionedOperation("get", version_set("1.0", "2.0"), "get"),
        VersionedOperation("health", frozenset(), "health"),
    ]

    def test_partition_for_document(self):
        assert partition_for_document(V1, self.OPERATIONS) == {"list_v1", "get", "health"}
        assert partition_for_document(V2, self.OPERATIONS) == {"list_v2", "get", "health"}

    def test_version_without_operations_keeps_neutral_ones(self):
        assert partition_for_document(V3, self.OPERATIONS) == {"health"}

    def test_build_document_partitions(self):
        partitions = build_document_partitions([V1, V2], self.OPERATIONS)

        assert set(partitions) == {V1, V2}
        assert "list_v2" not in partitions[V1]
        with pytest.raises(TypeError):
            partitions[V3] = frozenset()


def build_app(router: APIRouter) -> FastAPI:
    app = FastAPI()
    app.include_router(router)
    configure_versioning(app, default_version=V1, document_versions=[V1, V2])
    return app


class TestVersionedRouting:
    def test_dispatch_by_query_parameter(self):
        router = APIRouter(route_class=VersionedAPIRoute)

        @router.get("/items", openapi_extra=api_versions("1.0"))
        def items_v1():
            return {"version": 1}

        @router.get("/items", openapi_extra=api_versions("2.0"))
        def items_v2():
            return {"version": 2}

        client = TestClient(build_app(router))

        assert client.get("/items").json() == {"version": 1}
        assert client.get("/items?api-version=2.0").json() == {"version": 2}
        response = client.get("/items?api-version=2")
        assert response.json() == {"version": 2}
        assert response.headers[SUPPORTED_VERSIONS_HEADER] == "1.0, 2.0"

    def test_ambiguous_routes_fail_at_startup(self):
        router = APIRouter(route_class=VersionedAPIRoute)

        @router.get("/items", openapi_extra=api_versions("1.0"))
        def items_a():
            return {}

        @router.get("/items", openapi_extra=api_versions("1.0"))
        def items_b():
            return {}

        with pytest.raises(AmbiguousVersionRegistration):
            build_app(router)

    def test_versioning_errors_reach_exception_handlers(self):
        router = APIRouter(route_class=VersionedAPIRoute)

        @router.get("/items", openapi_extra=api_versions("1.0"))
        def items():
            return {}

        app = build_app(router)

        @app.exception_handler(NoMatchingVersion)
        async def no_matching_version(request, exc):
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"requested": str(exc.requested)},
            )

        @app.exception_handler(InvalidApiVersion)
        async def invalid_version(request, exc):
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"raw": exc.raw},
            )

        client = TestClient(app)

        response = client.get("/items?api-version=9.0")
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"requested": "9.0"}

        response = client.get("/items?api-version=latest")
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"raw": "latest"}

    def test_same_path_other_method_is_independent(self):
        router = APIRouter(route_class=VersionedAPIRoute)

        @router.get("/items", openapi_extra=api_versions("2.0"))
        def read_items():
            return {"method": "get"}

        @router.post("/items")
        def create_items():
            return {"method": "post"}

        client = TestClient(build_app(router))

        assert client.post("/items?api-version=2.0").json() == {"method": "post"}
        assert client.get("/items?api-version=2.0").json() == {"method": "get"}


class TestExpectedParameters:
    def test_parameters_of_dependencies_are_included(self):
        def page_size(size: int = Query(default=10)) -> int:
            return size

        def paging(page: int = 1, size: int = Depends(page_size)) -> tuple[int, int]:
            return page, size

        router = APIRouter(route_class=VersionedAPIRoute)

        @router.put("/items/{item_id}", dependencies=[Depends(paging)])
        def replace_item(item_id: int, item: dict, x_token: str | None = Header(default=None)):
            return item

        app = build_app(router)
        route = next(r for r in app.routes if getattr(r, "name", None) == "replace_item")

        assert expected_parameters(route) == {
            ("path", "item_id"),
            ("query", "page"),
            ("query", "size"),
            ("header", "x-token"),
            ("body", None),
        }

    def test_route_without_parameters(self):
        router = APIRouter(route_class=VersionedAPIRoute)

        @router.get("/ping")
        def ping():
            return {}

        app = build_app(router)
        route = next(r for r in app.routes if getattr(r, "name", None) == "ping")

        assert expected_parameters(route) == set()

    def test_non_api_route(self):
        assert expected_parameters(None) == set()
