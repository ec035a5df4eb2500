"""
Authentication Utilities
=======================

API key validation for the export endpoints. Keys are accepted from the
``X-API-Key`` header or the ``apiKey`` query parameter.
"""

from typing import Optional
from fastapi import Depends, HTTPException
from fastapi.security import APIKeyHeader, APIKeyQuery

from drawio_export.config.settings import get_settings

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)
api_key_query = APIKeyQuery(name="apiKey", auto_error=False)


async def validate_api_key(
    header_key: Optional[str] = Depends(api_key_header),
    query_key: Optional[str] = Depends(api_key_query),
) -> str:
    """
    Validate API key.

    Args:
        header_key: API key from the X-API-Key header
        query_key: API key from the apiKey query parameter

    Returns:
        API key if valid

    Raises:
        HTTPException: 401 if no key is given, 403 if the key is wrong
    """
    settings = get_settings()

    if settings.debug and settings.skip_api_key_validation:
        return "development_key"

    api_key = header_key or query_key
    if not api_key:
        raise HTTPException(
            status_code=401,
            detail="API key required. Provide X-API-Key header or ?apiKey= query parameter",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if api_key not in settings.api_keys:
        raise HTTPException(status_code=403, detail="Invalid API key")

    return api_key
