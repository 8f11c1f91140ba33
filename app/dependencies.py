"""
FastAPI Dependencies Module

Dependencies are reusable components injected into route handlers.
FastAPI's Depends() function manages their lifecycle.

Common Dependency Patterns used here:
- Database sessions (per-request)
- Repositories wrapping the session
- The API version a request was dispatched under
- The response media type negotiated from the Accept header
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.repositories import AuthorRepository, BookRepository
from app.routing import API_VERSION_PARAMETER, API_VERSION_SCOPE_KEY
from app.services.versioning import DEFAULT_API_VERSION, ApiVersion
from app.utils.media_types import offered_media_types, select_media_type

# =============================================================================
# Type Aliases with Annotated
# =============================================================================
# Instead of writing:
#   def get_authors(db: Session = Depends(get_db)):
#
# You can write:
#   def get_authors(db: DbSession):

DbSession = Annotated[Session, Depends(get_db)]


# =============================================================================
# Repositories
# =============================================================================
def get_author_repository(db: DbSession) -> AuthorRepository:
    return AuthorRepository(db)


def get_book_repository(db: DbSession) -> BookRepository:
    return BookRepository(db)


AuthorRepo = Annotated[AuthorRepository, Depends(get_author_repository)]
BookRepo = Annotated[BookRepository, Depends(get_book_repository)]


# =============================================================================
# API Version
# =============================================================================
def get_api_version(
    request: Request,
    api_version: str | None = Query(
        default=None,
        alias=API_VERSION_PARAMETER,
        description="Requested API version; the default version is used when omitted",
        examples=["1.0", "2.0"],
    ),
) -> ApiVersion:
    """
    The version the request was dispatched under.

    The query value itself is parsed and resolved during routing (see
    app.routing.VersionedAPIRoute); declaring it here documents the
    parameter in every API document.
    """
    return request.scope.get(API_VERSION_SCOPE_KEY, DEFAULT_API_VERSION)


RequestedApiVersion = Annotated[ApiVersion, Depends(get_api_version)]


# =============================================================================
# Content Negotiation
# =============================================================================
def negotiate_media_type(
    request: Request,
    accept: str | None = Header(default=None, include_in_schema=False),
) -> str:
    """
    Media type of the response, chosen from the Accept header.

    An endpoint offers application/json plus whatever content its success
    response documents. Raises 406 when the client accepts none of them.
    """
    route = request.scope.get("route")
    offered = offered_media_types(getattr(route, "responses", None))
    media_type = select_media_type(accept, offered)
    if media_type is None:
        raise HTTPException(
            status_code=status.HTTP_406_NOT_ACCEPTABLE,
            detail=f"Supported media types: {', '.join(offered)}",
        )
    return media_type


NegotiatedMediaType = Annotated[str, Depends(negotiate_media_type)]
