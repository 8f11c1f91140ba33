"""
Services Package

This package contains business logic services that are:
- Separate from HTTP handling (routers)
- Reusable across different parts of the application
- Easier to test in isolation

Current services:
- versioning.py: API version tags, handler resolution, document partitions
- patching.py: Patch document engine for partial updates
- validation.py: Classifies rejected requests as malformed (400) or invalid (422)
- mapping.py: Conversions between database records and response schemas
"""
