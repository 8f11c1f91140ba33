"""
Test Suite for the Library API

Test Organization:
- conftest.py: Shared fixtures (test database, client, sample data)
- test_authors.py: /api/authors endpoints, versions 1.0 and 2.0
- test_books.py: /api/authors/{author_id}/books endpoints
- test_docs.py: per-version API documents and Swagger UI
- test_patching.py: patch engine
- test_validation.py: 400 vs 422 classification
- test_versioning.py: version tags, resolution and partitions

Running Tests:
    # Run all tests
    pytest

    # Run specific file
    pytest tests/test_patching.py

    # Run with verbose output
    pytest -v
"""
