"""
FastAPI REST Endpoints
======================

REST API endpoints for HTTP access to diagram export.

Endpoints:
- POST /api/export: Export as a binary file
- POST /api/export/base64: Export as base64 JSON
- GET /health: Health check endpoint
"""
