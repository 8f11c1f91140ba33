"""
Authors Router

Endpoints for authors, in two API versions:

    GET    /authors/              1.0  list (first and last name)
    GET    /authors/              2.0  list (single display name)
    GET    /authors/{author_id}   1.0
    PUT    /authors/{author_id}   1.0  full update
    PATCH  /authors/{author_id}   1.0  partial update with a patch document

The version is chosen with ?api-version=; 1.0 is assumed when it is absent.
Responses are application/json only; any other Accept value gets 406.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, status

from app.dependencies import AuthorRepo, get_api_version, negotiate_media_type
from app.models import Author
from app.routing import VersionedAPIRoute, api_versions
from app.schemas import (
    AuthorForUpdate,
    AuthorResponse,
    AuthorV2Response,
    PatchOperation,
)
from app.services.mapping import merge_author_update, to_author_for_update, to_author_v2
from app.services.patching import apply_patch
from app.services.validation import validate_patched

router = APIRouter(
    prefix="/authors",
    tags=["Authors"],
    route_class=VersionedAPIRoute,
    dependencies=[Depends(get_api_version), Depends(negotiate_media_type)],
    responses={
        400: {"description": "Malformed request or unsupported API version"},
        406: {"description": "None of the accepted media types is available"},
        500: {"description": "Unexpected server error"},
    },
)


def get_author_or_404(authors: AuthorRepo, author_id: UUID) -> Author:
    """Get an author by ID or raise 404."""
    author = authors.get_author(author_id)
    if author is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Author with id {author_id} not found",
        )
    return author


@router.get(
    "/",
    response_model=List[AuthorResponse],
    summary="List all authors",
    description="Get a list of all authors, ordered by last name.",
    openapi_extra=api_versions("1.0"),
)
def get_authors(authors: AuthorRepo) -> List[AuthorResponse]:
    """List all authors."""
    return [AuthorResponse.model_validate(a) for a in authors.get_authors()]


@router.get(
    "/",
    response_model=List[AuthorV2Response],
    summary="List all authors (display names)",
    description="Get a list of all authors with their full name as a single field.",
    openapi_extra=api_versions("2.0"),
)
def get_authors_v2(authors: AuthorRepo) -> List[AuthorV2Response]:
    """List all authors, version 2.0 representation."""
    return [to_author_v2(a) for a in authors.get_authors()]


@router.get(
    "/{author_id}",
    response_model=AuthorResponse,
    summary="Get an author by ID",
    responses={404: {"description": "Author not found"}},
    openapi_extra=api_versions("1.0"),
)
def get_author(author_id: UUID, authors: AuthorRepo) -> AuthorResponse:
    """Get a single author by ID."""
    return AuthorResponse.model_validate(get_author_or_404(authors, author_id))


@router.put(
    "/{author_id}",
    response_model=AuthorResponse,
    summary="Update an author",
    description="Replace the first and last name of an existing author.",
    responses={
        404: {"description": "Author not found"},
        422: {"description": "The new values break validation rules"},
    },
    openapi_extra=api_versions("1.0"),
)
def update_author(
    author_id: UUID,
    author_for_update: AuthorForUpdate,
    authors: AuthorRepo,
) -> AuthorResponse:
    """Update an existing author."""
    author = get_author_or_404(authors, author_id)
    merge_author_update(author_for_update, author)
    authors.save(author)
    return AuthorResponse.model_validate(author)


@router.patch(
    "/{author_id}",
    response_model=AuthorResponse,
    summary="Partially update an author",
    description=(
        "Apply a patch document to an author. Operations run in order and "
        "the whole document fails if any operation fails."
    ),
    responses={
        404: {"description": "Author not found"},
        422: {"description": "The patched author breaks validation rules"},
    },
    openapi_extra=api_versions("1.0"),
)
def partially_update_author(
    author_id: UUID,
    authors: AuthorRepo,
    patch_document: List[PatchOperation] = Body(
        ...,
        examples=[
            [
                {"op": "replace", "path": "/first_name", "value": "Eric"},
                {"op": "replace", "path": "/last_name", "value": "Blair"},
            ]
        ],
    ),
) -> AuthorResponse:
    """
    Partially update an author.

    Flow:
    1. Load the author (404 if missing)
    2. Apply the patch to its update representation (400 on PatchFailure)
    3. Validate the patched representation (422 on InvalidRequest)
    4. Copy the result onto the author and save
    """
    author = get_author_or_404(authors, author_id)

    patched = apply_patch(to_author_for_update(author), patch_document)
    author_for_update = validate_patched(AuthorForUpdate, patched)

    merge_author_update(author_for_update, author)
    authors.save(author)
    return AuthorResponse.model_validate(author)
