"""
Book Model

Represents a book written by one author.

Unlike authors, books are only reachable through their author:
    /api/authors/{author_id}/books/{book_id}
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.author import Author


class Book(Base):
    """
    Book model.

    Table: books

    Relationships:
    - author: Many-to-One back to the owning Author

    Indexes:
    - author_id: books are always queried per author
    """

    __tablename__ = "books"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # ondelete="CASCADE" removes books at the database level when the
    # author row goes away
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("authors.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )

    title: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
        comment="Book title"
    )

    description: Mapped[str | None] = mapped_column(
        String(2500),
        nullable=True,
        comment="Book description or summary"
    )

    amount_of_pages: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Number of pages"
    )

    author: Mapped["Author"] = relationship("Author", back_populates="books")

    def __repr__(self) -> str:
        return f"Book(id={self.id}, title='{self.title}')"
