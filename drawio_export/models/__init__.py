"""
Data Models
===========

Pydantic models for format directives, cached assets, rendered artifacts,
and API request/response schemas.
"""
