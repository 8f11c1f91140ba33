"""
Author Pydantic Schemas

These schemas define the shape of data for Author-related API operations.

- AuthorResponse: version 1.0 representation
- AuthorV2Response: version 2.0 representation (single display name)
- AuthorForUpdate: full update (PUT) body, and the document a patch is
  applied to (PATCH)

AuthorForUpdate deliberately has no id field: the author being updated is
always identified by the URL path, never by the payload.
"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AuthorForUpdate(BaseModel):
    """
    Schema for updating an existing author.

    Both names are required: PUT replaces the whole representation, and a
    patched document must still be a complete author.
    """

    first_name: str = Field(
        ...,
        min_length=1,
        max_length=150,
        description="Author's first name",
        examples=["George"],
    )

    last_name: str = Field(
        ...,
        min_length=1,
        max_length=150,
        description="Author's last name",
        examples=["Orwell"],
    )

    @field_validator("first_name", "last_name")
    @classmethod
    def name_must_not_be_blank(cls, v: str) -> str:
        """Reject whitespace-only names and strip surrounding whitespace."""
        if not v.strip():
            raise ValueError("Name cannot be empty or whitespace")
        return v.strip()

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"first_name": "Eric", "last_name": "Blair"}
        },
    )


class AuthorResponse(BaseModel):
    """
    An author with first and last name (API version 1.0).

    model_config with from_attributes=True allows creating this schema
    straight from SQLAlchemy model instances.
    """

    id: UUID = Field(..., description="Unique identifier")
    first_name: str = Field(..., description="Author's first name")
    last_name: str = Field(..., description="Author's last name")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "d28888e9-2ba9-473a-a40f-e38cb54f9b35",
                "first_name": "George",
                "last_name": "Orwell",
            }
        },
    )


class AuthorV2Response(BaseModel):
    """An author with a single display name (API version 2.0)."""

    id: UUID = Field(..., description="Unique identifier")
    name: str = Field(..., description="First and last name", examples=["George Orwell"])
