"""
Mapping Service

Conversions between SQLAlchemy records and wire schemas that are more than
a plain model_validate(record).
"""

from app.models import Author, Book
from app.schemas import (
    AuthorForUpdate,
    AuthorV2Response,
    BookWithConcatenatedAuthorName,
)


def full_name(author: Author) -> str:
    return f"{author.first_name} {author.last_name}"


def to_author_for_update(author: Author) -> AuthorForUpdate:
    """
    The update representation of a stored author, used as the document
    a patch is applied to.

    model_construct skips validation: stored values are taken as they are,
    and the patched result is validated afterwards.
    """
    return AuthorForUpdate.model_construct(
        first_name=author.first_name,
        last_name=author.last_name,
    )


def merge_author_update(update: AuthorForUpdate, author: Author) -> Author:
    """Copy every field of a validated update onto the stored author."""
    for field, value in update.model_dump().items():
        setattr(author, field, value)
    return author


def to_author_v2(author: Author) -> AuthorV2Response:
    return AuthorV2Response(id=author.id, name=full_name(author))


def to_book_with_author_name(book: Book) -> BookWithConcatenatedAuthorName:
    return BookWithConcatenatedAuthorName(
        id=book.id,
        author=full_name(book.author),
        title=book.title,
        description=book.description,
    )
