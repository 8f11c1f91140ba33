"""
Books Router

Books are nested under their author:

    GET   /authors/{author_id}/books/
    GET   /authors/{author_id}/books/{book_id}
    POST  /authors/{author_id}/books/

These endpoints declare no API version, so they answer every version and
appear in every API document.

Representations of a single book (Accept header):
- application/json (default)
- application/vnd.marvin.book+json: same body as application/json
- application/vnd.marvin.bookwithconcatenatedauthorname+json: the author's
  full name instead of the author id
Listing and creating books only produce application/json. Every endpoint
answers 406 Not Acceptable when the Accept header rules out all it offers
(see app.dependencies.negotiate_media_type).
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.dependencies import (
    AuthorRepo,
    BookRepo,
    NegotiatedMediaType,
    get_api_version,
    negotiate_media_type,
)
from app.models import Book
from app.routing import VersionedAPIRoute
from app.schemas import BookForCreation, BookResponse, BookWithConcatenatedAuthorName
from app.services.mapping import to_book_with_author_name

BOOK_MEDIA_TYPE = "application/vnd.marvin.book+json"
BOOK_WITH_AUTHOR_NAME_MEDIA_TYPE = "application/vnd.marvin.bookwithconcatenatedauthorname+json"

router = APIRouter(
    prefix="/authors/{author_id}/books",
    tags=["Books"],
    route_class=VersionedAPIRoute,
    dependencies=[Depends(get_api_version), Depends(negotiate_media_type)],
    responses={
        400: {"description": "Malformed request or unsupported API version"},
        404: {"description": "Author or book not found"},
        406: {"description": "None of the accepted media types is available"},
        500: {"description": "Unexpected server error"},
    },
)


def ensure_author_exists(authors: AuthorRepo, author_id: UUID) -> None:
    if not authors.author_exists(author_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Author with id {author_id} not found",
        )


@router.get(
    "/",
    response_model=List[BookResponse],
    summary="List the books of an author",
)
def get_books(author_id: UUID, authors: AuthorRepo, books: BookRepo) -> List[BookResponse]:
    """List all books written by an author."""
    ensure_author_exists(authors, author_id)
    return [BookResponse.model_validate(b) for b in books.get_books(author_id)]


@router.get(
    "/{book_id}",
    response_model=BookResponse,
    summary="Get a book of an author",
    responses={
        200: {
            "content": {
                BOOK_MEDIA_TYPE: {
                    "schema": {"$ref": "#/components/schemas/BookResponse"}
                },
                BOOK_WITH_AUTHOR_NAME_MEDIA_TYPE: {
                    "schema": BookWithConcatenatedAuthorName.model_json_schema()
                },
            },
        },
    },
)
def get_book(
    author_id: UUID,
    book_id: UUID,
    authors: AuthorRepo,
    books: BookRepo,
    media_type: NegotiatedMediaType,
):
    """
    Get one book, in the representation the Accept header asks for.
    """
    ensure_author_exists(authors, author_id)
    book = books.get_book(author_id, book_id)
    if book is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Book with id {book_id} not found",
        )

    if media_type == BOOK_WITH_AUTHOR_NAME_MEDIA_TYPE:
        return JSONResponse(
            content=jsonable_encoder(to_book_with_author_name(book)),
            media_type=media_type,
        )
    if media_type == BOOK_MEDIA_TYPE:
        return JSONResponse(
            content=jsonable_encoder(BookResponse.model_validate(book)),
            media_type=media_type,
        )
    return BookResponse.model_validate(book)


@router.post(
    "/",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a book for an author",
    responses={422: {"description": "The book breaks validation rules"}},
)
def create_book(
    author_id: UUID,
    book_for_creation: BookForCreation,
    request: Request,
    response: Response,
    authors: AuthorRepo,
    books: BookRepo,
) -> BookResponse:
    """Create a new book; the Location header points at it."""
    ensure_author_exists(authors, author_id)

    book = Book(**book_for_creation.model_dump())
    books.add_book(author_id, book)
    books.save(book)

    response.headers["Location"] = str(
        request.url_for("get_book", author_id=str(author_id), book_id=str(book.id))
    )
    return BookResponse.model_validate(book)
