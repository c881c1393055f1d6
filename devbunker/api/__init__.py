"""
DevBunker API Package.

HTTP client for the DevBunker REST API and its error types.
"""

from devbunker.api.client import ApiClient, CONTENT_ENDPOINTS, CONTENT_TYPE_ALL, content_endpoint
from devbunker.api.errors import (
    ApiError,
    ApiUnavailableError,
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)

__all__ = [
    'ApiClient',
    'CONTENT_ENDPOINTS',
    'CONTENT_TYPE_ALL',
    'content_endpoint',
    'ApiError',
    'ApiUnavailableError',
    'AuthenticationError',
    'ConflictError',
    'NotFoundError',
    'PermissionDeniedError',
]
