"""
Utilities Package

This package contains helper functions used across the application.

- media_types.py: Accept header negotiation
"""
