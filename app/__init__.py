"""
Library API Application Package

A versioned REST API over authors and their books.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy database connection and session management
- main.py: FastAPI application factory and exception handlers
- routing.py: Version-aware route class and version table setup
- docs.py: One OpenAPI document and Swagger UI per API version
- dependencies.py: Dependency injection functions
- repositories.py: Database access for authors and books
- models/: SQLAlchemy ORM models
- schemas/: Pydantic request/response schemas
- routers/: API route handlers
- services/: Versioning, patching, validation and mapping logic
- utils/: Helper functions
"""

__version__ = "0.1.0"
