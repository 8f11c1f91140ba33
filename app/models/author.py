"""
Author Model

Represents an author in the library database.

SQLAlchemy 2.0 Features Used:
- mapped_column(): New way to define columns with full type support
- Mapped[]: Type hint wrapper for SQLAlchemy columns
- relationship(): Define relationships between models
- back_populates: Two-way relationship binding
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

# TYPE_CHECKING is True only during type checking (mypy, IDE)
# This prevents circular imports at runtime while enabling type hints
if TYPE_CHECKING:
    from app.models.book import Book


class Author(Base):
    """
    Author model representing writers in the library.

    Table: authors

    Relationships:
    - books: One-to-Many, an author owns their books

    The id is generated on insert and never changes afterwards. Update
    payloads never carry it; routes take it from the URL path.

    Example:
        author = Author(first_name="George", last_name="Orwell")
        db.add(author)
        db.commit()
    """

    __tablename__ = "authors"

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------
    # Uuid maps to a native UUID column where the database has one and to
    # CHAR(32) elsewhere (SQLite)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # -------------------------------------------------------------------------
    # Basic Fields
    # -------------------------------------------------------------------------
    first_name: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
        comment="Author's first name"
    )

    last_name: Mapped[str] = mapped_column(
        String(150),
        index=True,
        nullable=False,
        comment="Author's last name"
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    # Books are removed together with their author
    books: Mapped[list["Book"]] = relationship(
        "Book",
        back_populates="author",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"Author(id={self.id}, name='{self.first_name} {self.last_name}')"
