"""
Repositories

Thin wrappers around a request-scoped SQLAlchemy session. Routers talk to
storage only through these classes, so the queries for each resource live
in one place.

save() commits the session. A failed commit raises SQLAlchemyError, which
the application's exception handler turns into a 500 response.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.models import Author, Book

logger = logging.getLogger(__name__)


class AuthorRepository:
    """Find, list and save authors."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_authors(self) -> list[Author]:
        stmt = select(Author).order_by(Author.last_name, Author.first_name)
        return list(self.db.execute(stmt).scalars().all())

    def get_author(self, author_id: UUID) -> Author | None:
        return self.db.get(Author, author_id)

    def author_exists(self, author_id: UUID) -> bool:
        stmt = select(Author.id).where(Author.id == author_id)
        return self.db.execute(stmt).first() is not None

    def save(self, author: Author) -> None:
        self.db.add(author)
        self.db.commit()
        self.db.refresh(author)
        logger.debug(f"Saved {author!r}")


class BookRepository:
    """Find, list, add and save books of an author."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_books(self, author_id: UUID) -> list[Book]:
        stmt = (
            select(Book)
            .where(Book.author_id == author_id)
            .order_by(Book.title)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_book(self, author_id: UUID, book_id: UUID) -> Book | None:
        # selectinload: the concatenated-author-name representation needs it
        stmt = (
            select(Book)
            .options(selectinload(Book.author))
            .where(Book.author_id == author_id, Book.id == book_id)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def add_book(self, author_id: UUID, book: Book) -> None:
        book.author_id = author_id
        self.db.add(book)

    def save(self, book: Book) -> None:
        self.db.commit()
        self.db.refresh(book)
        logger.debug(f"Saved {book!r}")
