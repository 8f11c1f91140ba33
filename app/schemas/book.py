"""
Book Pydantic Schemas

Book representations:
- BookResponse: default representation (application/json)
- BookWithConcatenatedAuthorName: returned when the client asks for
  application/vnd.marvin.bookwithconcatenatedauthorname+json
- BookForCreation: POST body
"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BookForCreation(BaseModel):
    """Schema for creating a book for an existing author."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=150,
        description="Book title",
        examples=["1984"],
    )

    description: str | None = Field(
        default=None,
        max_length=2500,
        description="Book description or summary",
    )

    amount_of_pages: int | None = Field(
        default=None,
        ge=1,
        description="Number of pages",
        examples=[328],
    )

    @field_validator("title")
    @classmethod
    def title_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title cannot be empty or whitespace")
        return v.strip()


class BookResponse(BaseModel):
    """Schema for book responses."""

    id: UUID = Field(..., description="Unique identifier")
    author_id: UUID = Field(..., description="Owning author")
    title: str
    description: str | None = None
    amount_of_pages: int | None = None

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "5b1c2b4d-48c7-402a-80c3-cc796ad49c6b",
                "author_id": "d28888e9-2ba9-473a-a40f-e38cb54f9b35",
                "title": "1984",
                "description": "A dystopian novel set in a totalitarian society.",
                "amount_of_pages": 328,
            }
        },
    )


class BookWithConcatenatedAuthorName(BaseModel):
    """A book with its author's full name instead of the author id."""

    id: UUID
    author: str = Field(..., description="First and last name of the author")
    title: str
    description: str | None = None
