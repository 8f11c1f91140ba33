"""
API Routers Package

This package contains FastAPI routers that handle API endpoints.

Router Structure:
- authors.py: /api/authors/* endpoints (versions 1.0 and 2.0)
- books.py: /api/authors/{author_id}/books/* endpoints (version-neutral)

Each router is imported and registered in main.py.
"""

from app.routers.authors import router as authors_router
from app.routers.books import router as books_router

__all__ = [
    "authors_router",
    "books_router",
]
