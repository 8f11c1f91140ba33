"""
Pydantic Schemas Package

This package contains Pydantic models for request/response validation.

WHY Separate Schemas from SQLAlchemy Models?
============================================
1. Security: Control exactly what data is exposed in API responses
2. Validation: Different rules for create vs update vs response
3. Decoupling: Database schema can evolve independently of API
4. Documentation: Schemas generate the OpenAPI documents

Schema Naming Convention:
- XxxForCreation: Fields accepted when creating a record
- XxxForUpdate: Fields accepted when updating (never the id)
- XxxResponse: Fields returned in API responses
"""

from app.schemas.author import (
    AuthorForUpdate,
    AuthorResponse,
    AuthorV2Response,
)
from app.schemas.book import (
    BookForCreation,
    BookResponse,
    BookWithConcatenatedAuthorName,
)
from app.schemas.patch import (
    PatchOperation,
    PatchOperationType,
)

__all__ = [
    # Author schemas
    "AuthorForUpdate",
    "AuthorResponse",
    "AuthorV2Response",
    # Book schemas
    "BookForCreation",
    "BookResponse",
    "BookWithConcatenatedAuthorName",
    # Patch documents
    "PatchOperation",
    "PatchOperationType",
]
