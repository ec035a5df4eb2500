"""
Configuration Management
=======================

Environment-based configuration using Pydantic Settings.

Components:
- settings: Application settings and cache directory resolution
- logging: Structured logging configuration
"""
